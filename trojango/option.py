"""Command-line option handlers, run in order of priority."""

from __future__ import annotations

from typing import Any, Callable

from .errors import TrojanError


class OptionHandler:
    """A named action; handle() raises TrojanError when the option does not apply."""

    def __init__(self, name: str, priority: int = 0, action: Callable[[], Any] | None = None) -> None:
        self.name = name
        self.priority = priority
        self._action = action

    def handle(self) -> Any:
        if self._action is None:
            raise TrojanError(f"option {self.name} has nothing to do")
        return self._action()


_handlers: dict[str, OptionHandler] = {}


def register_handler(handler: OptionHandler) -> None:
    """Register a handler, replacing any with the same name."""
    _handlers[handler.name] = handler


def pop_option_handler() -> OptionHandler:
    """Remove and return the handler with the highest priority."""
    if not _handlers:
        raise TrojanError("no option left")
    best = max(_handlers.values(), key=lambda h: h.priority)
    del _handlers[best.name]
    return best