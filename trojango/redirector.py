"""Hand connections that fail authentication over to a fallback address."""

from __future__ import annotations

import queue
import socket
import threading
from dataclasses import dataclass
from typing import Any, Callable

from . import log
from .errors import TrojanError

Dial = Callable[[Any], Any]

_POLL_INTERVAL = 0.05
_COPY_BUFFER_SIZE = 32 * 1024


def _parse_address(addr: Any) -> tuple[str, int]:
    if isinstance(addr, tuple):
        return str(addr[0]), int(addr[1])
    text = str(addr)
    if text.startswith("["):
        host, _, rest = text[1:].partition("]")
        return host, int(rest.lstrip(":"))
    host, sep, port = text.rpartition(":")
    if not sep:
        raise TrojanError("missing port in address " + text)
    return host, int(port)


def _address_text(addr: Any) -> str:
    if isinstance(addr, tuple):
        host, port = str(addr[0]), addr[1]
        return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
    return str(addr)


def default_dial(addr: Any) -> socket.socket:
    """Open a TCP connection to a (host, port) tuple or a "host:port" string."""
    return socket.create_connection(_parse_address(addr))


def _peer(conn: Any) -> str:
    try:
        return _address_text(conn.getpeername())
    except (AttributeError, OSError):
        return "<unknown>"


def _close(conn: Any) -> None:
    shutdown = getattr(conn, "shutdown", None)
    if shutdown is not None:
        try:
            shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
    try:
        conn.close()
    except OSError:
        pass


def _copy(dst: Any, src: Any) -> BaseException | None:
    try:
        while True:
            data = src.recv(_COPY_BUFFER_SIZE)
            if not data:
                return None
            dst.sendall(data)
    except Exception as exc:  # either side may fail; the relay only reports it
        return exc


@dataclass
class Redirection:
    """A connection to forward to redirect_to, using dial or a plain TCP dial."""

    dial: Dial | None = None
    redirect_to: Any = None
    inbound_conn: Any = None


class Redirector:
    """Forwards queued redirections on background threads until closed."""

    def __init__(self, capacity: int = 64) -> None:
        self._queue: queue.Queue[Redirection] = queue.Queue(capacity)
        self._closed = threading.Event()
        self._worker = threading.Thread(target=self._run, daemon=True)
        self._worker.start()

    def redirect(self, redirection: Redirection) -> None:
        """Queue a redirection; gives up once the redirector is closed."""
        while not self._closed.is_set():
            try:
                self._queue.put(redirection, timeout=_POLL_INTERVAL)
            except queue.Full:
                continue
            log.debug("redirect request ")
            return
        log.debug("exiting")

    def close(self) -> None:
        """Stop accepting redirections and abandon those in progress."""
        self._closed.set()

    def __enter__(self) -> "Redirector":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _run(self) -> None:
        while not self._closed.is_set():
            try:
                redirection = self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            threading.Thread(target=self._handle, args=(redirection,), daemon=True).start()
        log.debug("shutting down redirector")

    def _handle(self, redirection: Redirection) -> None:
        inbound = redirection.inbound_conn
        if inbound is None:
            log.error("nil inbound conn")
            return
        try:
            if redirection.redirect_to is None:
                log.error("nil redirection addr")
                return
            dial = redirection.dial or default_dial
            log.warn(
                "redirecting connection from",
                _peer(inbound),
                "to",
                _address_text(redirection.redirect_to),
            )
            try:
                outbound = dial(redirection.redirect_to)
            except Exception as exc:
                log.error(TrojanError("failed to redirect to target address").base(exc))
                return
            try:
                self._relay(inbound, outbound)
            finally:
                _close(outbound)
        finally:
            _close(inbound)

    def _relay(self, inbound: Any, outbound: Any) -> None:
        results: queue.Queue[BaseException | None] = queue.Queue()
        for dst, src in ((outbound, inbound), (inbound, outbound)):
            threading.Thread(
                target=lambda d=dst, s=src: results.put(_copy(d, s)),
                daemon=True,
            ).start()
        while True:
            try:
                err = results.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if self._closed.is_set():
                    log.debug("exiting")
                    return
                continue
            if err is not None:
                log.error(TrojanError("failed to redirect").base(err))
            log.info("redirection done")
            return