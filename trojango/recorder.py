"""Broadcast connection records to filtered, bounded subscriber queues."""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Any

from . import log

CAPACITY = 10

_subscribers: dict[str, "_Subscription"] = {}
_lock = threading.Lock()


@dataclass
class Record:
    timestamp: str
    user_hash: str
    client_ip: str
    client_port: str
    target_host: str
    target_port: str
    transport: str
    payload: bytes | None


@dataclass
class _Subscription:
    records: "queue.Queue[Record]"
    transport: str
    target_port: str
    include_payload: bool


def _split_host_port(addr: Any) -> tuple[str, str]:
    if isinstance(addr, tuple) and len(addr) >= 2:
        return str(addr[0]), str(addr[1])
    text = str(addr)
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or not rest.startswith(":"):
            return "", ""
        return host, rest[1:]
    host, sep, port = text.rpartition(":")
    if not sep or ":" in host:
        return "", ""
    return host, port


def add(user_hash: str, client_addr: Any, target_addr: Any, transport: str, payload: bytes) -> None:
    """Build a record for a connection and offer it to every matching subscriber."""
    client_ip, client_port = _split_host_port(client_addr)
    target_host, target_port = _split_host_port(target_addr)
    record = Record(
        timestamp=str(int(time.time() * 1000)),
        user_hash=user_hash,
        client_ip=client_ip,
        client_port=client_port,
        target_host=target_host,
        target_port=target_port,
        transport=transport,
        payload=payload,
    )
    _broadcast(record)


def subscribe(uid: str, transport: str, target_port: str, include_payload: bool) -> "queue.Queue[Record]":
    """Register a subscriber; empty filters match everything."""
    log.debug("New recorder subscriber", uid)
    subscription = _Subscription(queue.Queue(maxsize=CAPACITY), transport, target_port, include_payload)
    with _lock:
        _subscribers[uid] = subscription
    return subscription.records


def unsubscribe(uid: str) -> None:
    """Remove a subscriber; unknown ids are ignored."""
    log.debug("Delete recorder subscriber", uid)
    with _lock:
        _subscribers.pop(uid, None)


def _broadcast(record: Record) -> None:
    with _lock:
        subscriptions = list(_subscribers.values())
    for sub in subscriptions:
        if sub.transport and sub.transport != record.transport:
            continue
        if sub.target_port and sub.target_port != record.target_port:
            continue
        payload = bytes(record.payload) if sub.include_payload and record.payload is not None else None
        delivered = Record(
            record.timestamp,
            record.user_hash,
            record.client_ip,
            record.client_port,
            record.target_host,
            record.target_port,
            record.transport,
            payload if sub.include_payload else None,
        )
        try:
            sub.records.put_nowait(delivered)
        except queue.Full:
            pass