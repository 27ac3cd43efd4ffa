"""Error types raised by the slideshow core."""

from __future__ import annotations

__all__ = [
    "AlreadyRunningError",
    "DeckError",
    "EmptyDeckNameError",
    "KillError",
    "LauncherError",
    "MalformedHeaderError",
    "NotRunningError",
    "ProcessLookupFailure",
    "SpawnError",
]


class DeckError(RuntimeError):
    """Base class for every error reported by the slideshow core."""


class EmptyDeckNameError(DeckError):
    """Raised when a deck or media name is missing."""

    def __init__(self, message: str = "deck: need a deck") -> None:
        super().__init__(message)


class AlreadyRunningError(DeckError):
    """Raised when a start is requested while a presentation is active."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"deck: already running (pid {pid})")
        self.pid = pid


class NotRunningError(DeckError):
    """Raised when a stop is requested while nothing is running."""

    def __init__(self) -> None:
        super().__init__("deck: not running")


class LauncherError(DeckError):
    """Raised by a process launcher when a process cannot be controlled."""


class SpawnError(LauncherError):
    """The presentation command could not be started."""


class ProcessLookupFailure(LauncherError):
    """The process to terminate does not exist."""


class KillError(LauncherError):
    """The process exists but could not be terminated."""


class MalformedHeaderError(DeckError, ValueError):
    """Raised when the layout header of a table cannot be parsed."""

    def __init__(self, field: str, column: int) -> None:
        super().__init__(f"table: malformed layout field {field!r} in column {column}")
        self.field = field
        self.column = column
