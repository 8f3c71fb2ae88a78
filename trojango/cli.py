"""Command-line entry point: config file, standard input and quick-start modes."""

from __future__ import annotations

import argparse
import json
import platform
import re
import sys
from typing import IO, Any, Sequence

from . import log, option
from .errors import TrojanError
from .golog.logger import Logger
from .option import OptionHandler
from .proxy import NAME, new_proxy_from_config_data

VERSION = "Custom Version"
COMMIT = "Unknown Git Commit ID"

DEFAULT_CONFIG_PATHS = ("config.json", "config.yml", "config.yaml")

_PORT_RE = re.compile(r"[+-]?[0-9]+")


def detect_and_read_config(file: str) -> tuple[bytes, bool]:
    """Read a config file and tell whether it is JSON (else YAML) by its extension."""
    if file.endswith(".json"):
        is_json = True
    elif file.endswith(".yaml") or file.endswith(".yml"):
        is_json = False
    else:
        raise TrojanError(f"unsupported config format: {file}. use .yaml or .json instead.")
    with open(file, "rb") as handle:
        return handle.read(), is_json


def _split_host_port(address: str, role: str) -> tuple[str, int]:
    def invalid(reason: str) -> TrojanError:
        return TrojanError(f"invalid {role} addr format:" + address).base(TrojanError(reason))

    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            raise invalid("missing ']' in address")
        if not rest.startswith(":"):
            raise invalid("missing port in address")
        port_text = rest[1:]
    else:
        host, sep, port_text = address.rpartition(":")
        if not sep:
            raise invalid("missing port in address")
        if ":" in host:
            raise invalid("too many colons in address")
    if not _PORT_RE.fullmatch(port_text):
        raise TrojanError(f"invalid port: {port_text!r}")
    return host, int(port_text)


def _marshal(document: dict[str, Any]) -> str:
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def client_config_json(password: str, local: str, remote: str) -> str:
    """Build the client config document used by the quick-start mode."""
    if not local:
        log.warn("client local addr is unspecified, using 127.0.0.1:1080")
        local = "127.0.0.1:1080"
    local_host, local_port = _split_host_port(local, "local")
    remote_host, remote_port = _split_host_port(remote, "remote")
    return _marshal(
        {
            "run_type": "client",
            "local_addr": local_host,
            "local_port": local_port,
            "remote_addr": remote_host,
            "remote_port": remote_port,
            "password": [password],
        }
    )


def server_config_json(password: str, local: str, remote: str, cert: str, key: str) -> str:
    """Build the server config document used by the quick-start mode."""
    if not remote:
        log.warn("server remote addr is unspecified, using 127.0.0.1:80")
        remote = "127.0.0.1:80"
    if not local:
        log.warn("server local addr is unspecified, using 0.0.0.0:443")
        local = "0.0.0.0:443"
    local_host, local_port = _split_host_port(local, "local")
    remote_host, remote_port = _split_host_port(remote, "remote")
    return _marshal(
        {
            "run_type": "server",
            "local_addr": local_host,
            "local_port": local_port,
            "remote_addr": remote_host,
            "remote_port": remote_port,
            "password": [password],
            "ssl": {"sni": "", "cert": cert, "key": key},
        }
    )


def _run_proxy(data: bytes, is_json: bool) -> None:
    try:
        proxy = new_proxy_from_config_data(data, is_json)
    except Exception as exc:
        log.fatal(exc)
        return
    try:
        proxy.run()
    except Exception as exc:
        log.fatal(exc)


class ConfigOption(OptionHandler):
    """Runs a proxy from a config file, or from the default config paths."""

    def __init__(self, path: str = "") -> None:
        super().__init__(NAME, -1)
        self.path = path

    def handle(self) -> None:
        data: bytes | None = None
        is_json = False
        if not self.path:
            log.warn("no specified config file, use default path to detect config file")
            for file in DEFAULT_CONFIG_PATHS:
                log.warn("try to load config from default path:", file)
                try:
                    data, is_json = detect_and_read_config(file)
                except (OSError, TrojanError) as exc:
                    log.warn(exc)
                    continue
                break
        else:
            try:
                data, is_json = detect_and_read_config(self.path)
            except (OSError, TrojanError) as exc:
                log.fatal(exc)
        if data is not None:
            log.info("trojan-go", VERSION, "initializing")
            _run_proxy(data, is_json)
        log.fatal("no valid config")


class StdinOption(OptionHandler):
    """Runs a proxy from a config document read from standard input."""

    def __init__(
        self,
        format: str | None = "disabled",
        suppress_hint: bool = False,
        stdin: IO[bytes] | None = None,
        stdout: IO[str] | None = None,
    ) -> None:
        super().__init__(NAME + "_STDIN", 0)
        self.format = format
        self.suppress_hint = suppress_hint
        self._stdin = stdin
        self._stdout = stdout

    def is_format_json(self) -> bool:
        if self.format is None:
            raise TrojanError("format specifier is nil")
        if self.format == "disabled":
            raise TrojanError("reading from stdin is disabled")
        return self.format.lower() == "json"

    def handle(self) -> None:
        is_json = self.is_format_json()
        if not self.suppress_hint:
            out = self._stdout if self._stdout is not None else sys.stdout
            out.write(f"Trojan-Go {VERSION} ({sys.platform}/{platform.machine()})\n")
            if is_json:
                out.write("Reading JSON configuration from stdin.\n")
            else:
                out.write("Reading YAML configuration from stdin.\n")
        source = self._stdin if self._stdin is not None else sys.stdin.buffer
        try:
            data = source.read()
        except OSError as exc:
            log.fatalf("Failed to read from stdin: %s", exc)
            return
        _run_proxy(data, is_json)


class EasyOption(OptionHandler):
    """Quick-start mode: builds a client or server config from a few flags."""

    def __init__(
        self,
        server: bool = False,
        client: bool = False,
        password: str = "",
        local: str = "",
        remote: str = "",
        cert: str = "server.crt",
        key: str = "server.key",
    ) -> None:
        super().__init__("easy", 50)
        self.server = server
        self.client = client
        self.password = password
        self.local = local
        self.remote = remote
        self.cert = cert
        self.key = key

    def handle(self) -> None:
        if not self.server and not self.client:
            raise TrojanError("empty")
        if not self.password:
            log.fatal("empty password is not allowed")
            return
        log.info("easy mode enabled, trojan-go will NOT use the config file")
        try:
            if self.client:
                document = client_config_json(self.password, self.local, self.remote)
                log.info("generated config:")
            else:
                document = server_config_json(self.password, self.local, self.remote, self.cert, self.key)
                log.info("generated json config:")
        except TrojanError as exc:
            log.fatal(exc)
            return
        log.info(document)
        _run_proxy(document.encode(), True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trojan-go", description="Trojan-Go proxy")

    def flag(name: str, **kwargs: Any) -> None:
        parser.add_argument(f"-{name}", f"--{name}", dest=name.replace("-", "_"), **kwargs)

    flag("config", default="", help="Trojan-Go config filename (.yaml/.yml/.json)")
    flag("stdin-format", default="disabled", help="Read from standard input (yaml/json)")
    flag("stdin-suppress-hint", action="store_true", help="Suppress hint text")
    flag("server", action="store_true", help="Run a trojan-go server")
    flag("client", action="store_true", help="Run a trojan-go client")
    flag("password", default="", help="Password for authentication")
    flag("remote", default="", help="Remote address, e.g. 127.0.0.1:12345")
    flag("local", default="", help="Local address, e.g. 127.0.0.1:12345")
    flag("key", default="server.key", help="Key of the server")
    flag("cert", default="server.crt", help="Certificates of the server")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the option handlers in priority order until one succeeds."""
    args = _build_parser().parse_args(argv)
    if type(log.get_logger()) is log.EmptyLogger:
        log.register_logger(Logger(sys.stdout))
    handlers = (
        EasyOption(
            server=args.server,
            client=args.client,
            password=args.password,
            local=args.local,
            remote=args.remote,
            cert=args.cert,
            key=args.key,
        ),
        ConfigOption(args.config),
        StdinOption(args.stdin_format, args.stdin_suppress_hint),
    )
    for handler in handlers:
        option.register_handler(handler)
    while True:
        try:
            handler = option.pop_option_handler()
        except TrojanError:
            log.fatal("invalid options")
            return 1
        try:
            handler.handle()
        except TrojanError:
            continue
        return 0


if __name__ == "__main__":
    sys.exit(main())