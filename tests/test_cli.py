import io
import json

import pytest

from trojango import log
from trojango.cli import (
    VERSION,
    ConfigOption,
    EasyOption,
    StdinOption,
    client_config_json,
    detect_and_read_config,
    main,
    server_config_json,
)
from trojango.config import from_context
from trojango.errors import TrojanError
from trojango.proxy import NAME, register_proxy_creator


class RecordingLogger(log.EmptyLogger):
    def __init__(self):
        self.fatals = []

    def fatal(self, *args):
        self.fatals.append(args)
        super().fatal(*args)

    def fatalf(self, fmt, *args):
        self.fatals.append((fmt,) + args)
        super().fatalf(fmt, *args)


@pytest.fixture(autouse=True)
def recording_logger():
    previous = log.get_logger()
    logger = RecordingLogger()
    log.register_logger(logger)
    yield logger
    log.register_logger(previous)


class FakeProxy:
    def __init__(self, ctx):
        self.ctx = ctx
        self.ran = False

    def run(self):
        self.ran = True


@pytest.fixture
def made():
    proxies = []

    def creator(ctx):
        proxy = FakeProxy(ctx)
        proxies.append(proxy)
        return proxy

    for name in ("CLIENT", "SERVER", "CLI_TEST"):
        register_proxy_creator(name, creator)
    return proxies


def test_detect_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_bytes(b"{}")
    assert detect_and_read_config(str(path)) == (b"{}", True)


@pytest.mark.parametrize("name", ["config.yml", "config.yaml"])
def test_detect_yaml(tmp_path, name):
    path = tmp_path / name
    path.write_bytes(b"a: 1\n")
    assert detect_and_read_config(str(path)) == (b"a: 1\n", False)


def test_detect_unsupported(tmp_path):
    with pytest.raises(TrojanError, match="unsupported config format"):
        detect_and_read_config(str(tmp_path / "config.txt"))


def test_detect_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        detect_and_read_config(str(tmp_path / "absent.json"))


def test_client_config_defaults():
    password = "password"
    document = json.loads(client_config_json(password, "", "example.com:443"))
    assert list(document) == ["run_type", "local_addr", "local_port", "remote_addr", "remote_port", "password"]
    assert document["run_type"] == "client"
    assert document["local_addr"] == "127.0.0.1"
    assert document["local_port"] == 1080
    assert document["remote_addr"] == "example.com"
    assert document["remote_port"] == 443
    assert document["password"] == [password]


def test_client_config_ipv6():
    document = json.loads(client_config_json("password", "[::1]:1080", "example.com:443"))
    assert document["local_addr"] == "::1"


def test_client_config_bad_remote():
    with pytest.raises(TrojanError, match="invalid remote addr format:"):
        client_config_json("password", "127.0.0.1:1080", "")


def test_client_config_bad_port():
    with pytest.raises(TrojanError):
        client_config_json("password", "127.0.0.1:abc", "example.com:443")


def test_server_config_defaults():
    document = json.loads(server_config_json("password", "", "", "server.crt", "server.key"))
    assert document["run_type"] == "server"
    assert (document["local_addr"], document["local_port"]) == ("0.0.0.0", 443)
    assert (document["remote_addr"], document["remote_port"]) == ("127.0.0.1", 80)
    assert document["ssl"] == {"sni": "", "cert": "server.crt", "key": "server.key"}


def test_stdin_format():
    assert StdinOption("JSON").is_format_json() is True
    assert StdinOption("yaml").is_format_json() is False
    with pytest.raises(TrojanError, match="reading from stdin is disabled"):
        StdinOption("disabled").is_format_json()
    with pytest.raises(TrojanError, match="format specifier is nil"):
        StdinOption(None).is_format_json()


def test_priorities():
    assert EasyOption().priority > StdinOption().priority > ConfigOption().priority
    assert ConfigOption().name == NAME
    assert StdinOption().name == NAME + "_STDIN"


def test_stdin_handle(made):
    out = io.StringIO()
    handler = StdinOption("json", stdin=io.BytesIO(b'{"run_type": "cli_test"}'), stdout=out)
    assert handler.handle() is None
    assert f"Trojan-Go {VERSION}" in out.getvalue()
    assert "Reading JSON configuration from stdin." in out.getvalue()
    assert made[-1].ran
    assert from_context(made[-1].ctx, NAME).run_type == "cli_test"


def test_easy_empty():
    with pytest.raises(TrojanError, match="empty"):
        EasyOption().handle()


def test_easy_empty_password(recording_logger):
    with pytest.raises(SystemExit):
        EasyOption(client=True, remote="example.com:443").handle()
    assert recording_logger.fatals == [("empty password is not allowed",)]


def test_easy_client(made):
    password = "password"
    assert EasyOption(client=True, password=password, remote="example.com:443").handle() is None
    assert made[-1].ran
    assert from_context(made[-1].ctx, NAME).run_type == "client"


def test_easy_server(made):
    password = "password"
    EasyOption(server=True, password=password).handle()
    assert from_context(made[-1].ctx, NAME).run_type == "server"


def test_config_option_runs_then_exits(tmp_path, made, recording_logger):
    path = tmp_path / "config.json"
    path.write_bytes(b'{"run_type": "cli_test"}')
    with pytest.raises(SystemExit):
        ConfigOption(str(path)).handle()
    assert made[-1].ran
    assert recording_logger.fatals[-1] == ("no valid config",)


def test_config_option_no_default_file(tmp_path, monkeypatch, recording_logger):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit):
        ConfigOption().handle()
    assert recording_logger.fatals == [("no valid config",)]


def test_main_uses_config_file(tmp_path, made, recording_logger):
    path = tmp_path / "config.yaml"
    path.write_bytes(b"run-type: cli_test\n")
    with pytest.raises(SystemExit) as info:
        main(["-config", str(path)])
    assert info.value.code == 1
    assert made[-1].ran
    assert from_context(made[-1].ctx, NAME).run_type == "cli_test"


def test_main_easy_client(made):
    password = "password"
    assert main(["-client", "-password", password, "-remote", "example.com:443"]) == 0
    assert from_context(made[-1].ctx, NAME).run_type == "client"