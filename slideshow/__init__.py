"""Core of the slide execution service.

This package exposes the public API used by the web interface: the
:class:`DeckController` that owns the single presentation process, the
launcher it uses to spawn and kill processes, and :func:`make_table`
which turns tab separated text into a slide.  The implementation lives
in the submodules, keeping the re-export here keeps the import path
stable for the server and the tests.
"""

from .controller import (
    ControllerConfig,
    ControllerState,
    DeckController,
    DeckStarted,
    DeckStopped,
    MediaStarted,
)
from .errors import (
    AlreadyRunningError,
    DeckError,
    EmptyDeckNameError,
    KillError,
    LauncherError,
    MalformedHeaderError,
    NotRunningError,
    ProcessLookupFailure,
    SpawnError,
)
from .launcher import ProcessLauncher, SubprocessLauncher
from .table import LayoutColumn, TableLayout, make_table

__all__ = [
    "AlreadyRunningError",
    "ControllerConfig",
    "ControllerState",
    "DeckController",
    "DeckError",
    "DeckStarted",
    "DeckStopped",
    "EmptyDeckNameError",
    "KillError",
    "LauncherError",
    "LayoutColumn",
    "MalformedHeaderError",
    "MediaStarted",
    "NotRunningError",
    "ProcessLauncher",
    "ProcessLookupFailure",
    "SpawnError",
    "SubprocessLauncher",
    "TableLayout",
    "make_table",
]
