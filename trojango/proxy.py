"""Proxy core: relays connections and packets from inbound servers to an outbound client."""

from __future__ import annotations

import dataclasses
import os
import queue
import random
import threading
from typing import Any, Callable, Iterable

from . import config, log
from .config import Context
from .errors import TrojanError

NAME = "PROXY"
MAX_PACKET_SIZE = 1024 * 8

_COPY_BUFFER_SIZE = 32 * 1024
_POLL_INTERVAL = 0.05
_CLOSED_MESSAGE = "use of closed network connection"
_UPNP_PREFIX = b"M-SEARCH * HTTP/"


@dataclasses.dataclass
class ProxyConfig:
    """Top-level settings shared by every run type."""

    run_type: str = dataclasses.field(default="", metadata={"json": "run_type", "yaml": "run-type"})
    log_level: int = dataclasses.field(default=1, metadata={"json": "log_level", "yaml": "log-level"})
    log_file: str = dataclasses.field(default="", metadata={"json": "log_file", "yaml": "log-file"})
    relay_buffer_size: int = dataclasses.field(
        default=8 * 1024,
        metadata={"json": "relay_buffer_size", "yaml": "relay_buffer_size"},
    )


config.register_config_creator(NAME, ProxyConfig)


def _copy_conn(dst: Any, src: Any) -> BaseException | None:
    """Copy a byte stream until end of stream; return the error that stopped it, if any."""
    try:
        while True:
            data = src.recv(_COPY_BUFFER_SIZE)
            if not data:
                return None
            dst.sendall(data)
    except Exception as exc:  # tunnels may fail in any way; the relay only reports it
        return exc


def is_upnp_packet(packet: Any) -> bool:
    """Read the first packet and tell whether it is a UPnP discovery request."""
    try:
        data, _ = packet.read_from(MAX_PACKET_SIZE)
    except Exception as exc:
        log.error(TrojanError("error reading from packet connection").base(exc))
        return False
    if len(data) < 4:
        return False
    return bytes(data).startswith(_UPNP_PREFIX)


class Proxy:
    """Relays every connection and packet accepted by the sources through the sink."""

    def __init__(
        self,
        sources: Iterable[Any],
        sink: Any,
        ctx: Context | None = None,
        cancel: Callable[[], Any] | None = None,
    ) -> None:
        self.sources = list(sources)
        self.sink = sink
        self.ctx = ctx if ctx is not None else Context()
        self._cancel_hook = cancel
        self._done = threading.Event()
        self._cancel_lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._threads_lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._done.is_set()

    def run(self) -> None:
        """Relay until every packet source is exhausted, then wait for the rest to stop."""
        self._relay_conn_loop()
        self._relay_packet_loop()
        _join_all(self._threads, self._threads_lock)

    def close(self) -> None:
        """Cancel relaying and close the sink and every source."""
        self._cancel()
        self.sink.close()
        for source in self.sources:
            source.close()

    def _cancel(self) -> None:
        with self._cancel_lock:
            if self._done.is_set():
                return
            self._done.set()
        if self._cancel_hook is not None:
            self._cancel_hook()

    def _spawn(self, target: Callable[..., Any], *args: Any) -> None:
        _spawn_into(self._threads, self._threads_lock, target, *args)

    def _relay_conn_loop(self) -> None:
        for source in self.sources:
            self._spawn(self._accept_conns, source)

    def _accept_conns(self, source: Any) -> None:
        while True:
            try:
                inbound = source.accept_conn()
            except Exception as exc:
                if self._done.is_set():
                    log.debug("exiting")
                    return
                log.error(TrojanError("failed to accept connection").base(exc))
                continue
            self._spawn(self._relay_conn, inbound)

    def _relay_conn(self, inbound: Any) -> None:
        try:
            try:
                outbound = self.sink.dial_conn(inbound.metadata.address)
            except Exception as exc:
                log.error(TrojanError("proxy failed to dial connection").base(exc))
                return
            try:
                results: queue.Queue[BaseException | None] = queue.Queue()
                for dst, src in ((inbound, outbound), (outbound, inbound)):
                    threading.Thread(
                        target=lambda d=dst, s=src: results.put(_copy_conn(d, s)),
                        daemon=True,
                    ).start()
                while True:
                    try:
                        err = results.get(timeout=_POLL_INTERVAL)
                    except queue.Empty:
                        if self._done.is_set():
                            log.debug("shutting down conn relay")
                            return
                        continue
                    if err is not None:
                        log.error(err)
                    break
                log.debug("conn relay ends")
            finally:
                outbound.close()
        finally:
            inbound.close()

    def _relay_packet_loop(self) -> None:
        threads: list[threading.Thread] = []
        lock = threading.Lock()

        def spawn(target: Callable[..., Any], *args: Any) -> None:
            _spawn_into(threads, lock, target, *args)

        try:
            for source in self.sources:
                spawn(self._accept_packets, source, spawn)
            _join_all(threads, lock)
        finally:
            self._cancel()

    def _accept_packets(self, source: Any, spawn: Callable[..., None]) -> None:
        while True:
            try:
                inbound = source.accept_packet()
            except Exception as exc:
                log.error(TrojanError("failed to accept packet").base(exc))
                return
            if is_upnp_packet(inbound):
                inbound.close()
                log.error("UPnPPacket Detected!")
                continue
            try:
                outbound = self.sink.dial_packet()
            except Exception as exc:
                log.error(TrojanError("proxy failed to dial packet").base(exc))
                inbound.close()
                return
            spawn(_copy_packets, inbound, outbound, inbound)
            spawn(_copy_packets, outbound, inbound, inbound)


def _copy_packets(src: Any, dst: Any, inbound: Any) -> None:
    try:
        while True:
            try:
                data, metadata = src.read_with_metadata(MAX_PACKET_SIZE)
                if not data:
                    return
                dst.write_with_metadata(data, metadata)
            except Exception as exc:
                if _CLOSED_MESSAGE not in str(exc):
                    inbound.close()
                    log.error(exc)
                return
    finally:
        dst.close()
        src.close()


def _spawn_into(
    threads: list[threading.Thread], lock: threading.Lock, target: Callable[..., Any], *args: Any
) -> None:
    thread = threading.Thread(target=target, args=args, daemon=True)
    with lock:
        thread.start()
        threads.append(thread)


def _join_all(threads: list[threading.Thread], lock: threading.Lock) -> None:
    while True:
        with lock:
            alive = [thread for thread in threads if thread.is_alive()]
            threads[:] = alive
        if not alive:
            return
        for thread in alive:
            thread.join()


Creator = Callable[[Context], Any]

_creators: dict[str, Creator] = {}


def register_proxy_creator(name: str, creator: Creator) -> None:
    """Register the factory that builds a proxy for a run type."""
    _creators[name] = creator


def _log_level(value: int) -> Any:
    try:
        return log.LogLevel(value)
    except ValueError:
        return value


def new_proxy_from_config_data(data: bytes | str, is_json: bool) -> Any:
    """Parse a config document and build the proxy for its run type."""
    ctx = Context().with_value(NAME + "_ID", random.getrandbits(63))
    if is_json:
        ctx = config.with_json_config(ctx, data)
    else:
        ctx = config.with_yaml_config(ctx, data)
    cfg: ProxyConfig = config.from_context(ctx, NAME)
    create = _creators.get(cfg.run_type.upper())
    if create is None:
        raise TrojanError("unknown proxy type: " + cfg.run_type)
    log.set_log_level(_log_level(cfg.log_level))
    if cfg.log_file:
        try:
            fd = os.open(cfg.log_file, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
            writer = os.fdopen(fd, "ab")
        except OSError as exc:
            raise TrojanError("failed to open log file").base(exc) from exc
        log.set_output(writer)
    return create(ctx)