"""Error type used across the package."""

from __future__ import annotations


class TrojanError(Exception):
    """An error whose message can be extended with the error that caused it."""

    def __init__(self, info: str = "") -> None:
        super().__init__(info)
        self.info = info

    def __str__(self) -> str:
        return self.info

    def base(self, err: BaseException | None) -> "TrojanError":
        """Append the cause's message, if any, and return this error."""
        if err is not None:
            self.info += " | " + str(err)
            self.args = (self.info,)
        return self