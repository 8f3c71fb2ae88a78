import os
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from trojango.common import (
    Notifier,
    fetch_http_content,
    get_asset_location,
    get_program_dir,
    human_friendly_traffic,
    pick_port,
    sha224_string,
    write_all_bytes,
    write_file,
)
from trojango.errors import TrojanError


def test_sha224_empty_string():
    assert sha224_string("") == "d14a028c2a3a2bc9476102bb288234c415a2b01f828ea62ac5b3e42f"


def test_sha224_shape_and_determinism():
    digest = sha224_string("password")
    assert len(digest) == 56
    assert digest == digest.lower()
    assert digest == sha224_string("password")
    assert digest != sha224_string("secret")


def test_asset_location_absolute_passthrough(tmp_path):
    path = str(tmp_path / "geoip.dat")
    assert get_asset_location(path) == path


def test_asset_location_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TROJAN_GO_LOCATION_ASSET", str(tmp_path))
    assert get_asset_location("geosite.dat") == os.path.join(str(tmp_path), "geosite.dat")


def test_asset_location_program_dir(monkeypatch):
    monkeypatch.delenv("TROJAN_GO_LOCATION_ASSET", raising=False)
    assert get_asset_location("geoip.dat") == os.path.join(get_program_dir(), "geoip.dat")
    assert os.path.isabs(get_program_dir())


@pytest.mark.parametrize("count", [0, 512, 1024])
def test_traffic_bytes(count):
    assert human_friendly_traffic(count) == f"{count} B"


def test_traffic_kib():
    assert human_friendly_traffic(2048) == "2.00 KiB"


def test_traffic_units_ordering():
    assert human_friendly_traffic(1025).endswith(" KiB")
    assert human_friendly_traffic(1024 * 1024).endswith(" KiB")
    assert human_friendly_traffic(1024 * 1024 + 1).endswith(" MiB")
    assert human_friendly_traffic(1024 ** 3).endswith(" MiB")
    assert human_friendly_traffic(3 * 1024 ** 3) == "3.00 GiB"


def test_pick_port_tcp_is_bindable():
    port = pick_port("tcp", "127.0.0.1")
    assert 0 < port < 65536
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", port))
        assert sock.getsockname()[1] == port


def test_pick_port_udp():
    port = pick_port("udp", "127.0.0.1")
    assert 0 < port < 65536


def test_pick_port_unknown_network():
    assert pick_port("sctp", "127.0.0.1") == 0


class _ChunkWriter:
    def __init__(self, chunk):
        self.chunk = chunk
        self.data = bytearray()
        self.calls = 0

    def write(self, data):
        self.calls += 1
        part = bytes(data[: self.chunk])
        self.data += part
        return len(part)


def test_write_all_bytes_handles_short_writes():
    writer = _ChunkWriter(3)
    payload = bytes(range(20))
    write_all_bytes(writer, payload)
    assert bytes(writer.data) == payload
    assert writer.calls == 7


def test_write_file_round_trip(tmp_path):
    path = tmp_path / "out.bin"
    payload = os.urandom(300)
    write_file(str(path), payload)
    assert path.read_bytes() == payload


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == "/data":
            body = b"payload-body"
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        else:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()

    def log_message(self, *args):
        pass


@pytest.fixture
def http_base():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def test_fetch_http_content_ok(http_base):
    assert fetch_http_content(http_base + "/data") == b"payload-body"


def test_fetch_http_content_bad_status(http_base):
    with pytest.raises(TrojanError, match="unexpected HTTP status code: 404"):
        fetch_http_content(http_base + "/missing")


def test_fetch_http_content_bad_scheme():
    with pytest.raises(TrojanError, match="invalid scheme: ftp"):
        fetch_http_content("ftp://localhost/file")


def test_fetch_http_content_dial_failure():
    port = pick_port("tcp", "127.0.0.1")
    target = f"http://127.0.0.1:{port}/"
    with pytest.raises(TrojanError, match="failed to dial to"):
        fetch_http_content(target)


def test_notifier_coalesces_signals():
    notifier = Notifier()
    notifier.signal()
    notifier.signal()
    assert notifier.wait(0.5) is True
    assert notifier.wait(0.01) is False


def test_notifier_wakes_waiter_from_thread():
    notifier = Notifier()

    def delayed_signal():
        time.sleep(0.05)
        notifier.signal()

    producer = threading.Thread(target=delayed_signal)
    producer.start()
    woke = notifier.wait(5)
    producer.join(5)
    assert woke is True