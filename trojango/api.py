"""Registry of API services keyed by name."""

from __future__ import annotations

from typing import Any, Callable

from . import log

Handler = Callable[[Any, Any], Any]

_handlers: dict[str, Handler] = {}


def register_handler(name: str, handler: Handler) -> None:
    """Register the API service run for name."""
    _handlers[name] = handler


def run_service(ctx: Any, name: str, auth: Any) -> Any:
    """Run the service registered for name; returns None if there is none."""
    handler = _handlers.get(name)
    if handler is None:
        log.debug("api handler not found", name)
        return None
    log.debug("api handler found", name)
    return handler(ctx, auth)