"""Lifecycle controller for the single presentation process.

A presentation device shows exactly one deck at a time.  Requests to
start or stop it arrive concurrently from the web interface, so the
:class:`DeckController` guards its small state machine with a lock: a
start only succeeds from the idle state, a stop only from the active
state, and the process id is known exactly while a presentation runs.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import AlreadyRunningError, EmptyDeckNameError, LauncherError, NotRunningError
from .launcher import ProcessLauncher

__all__ = [
    "ControllerConfig",
    "ControllerState",
    "DeckController",
    "DeckStarted",
    "DeckStopped",
    "MediaStarted",
]


@dataclass(slots=True)
class ControllerConfig:
    """Commands used by :class:`DeckController` to launch processes."""

    deck_command: str = "vgdeck"
    loop_flag: str = "-loop"
    media_command: str = "omxplayer"
    media_args: Tuple[str, ...] = ("-o", "both")


@dataclass(frozen=True, slots=True)
class ControllerState:
    """Snapshot of the controller state."""

    running: bool = False
    active_pid: Optional[int] = None
    active_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DeckStarted:
    pid: int
    deck: str
    duration: str


@dataclass(frozen=True, slots=True)
class MediaStarted:
    pid: int
    media: str


@dataclass(frozen=True, slots=True)
class DeckStopped:
    pid: int


class DeckController:
    """Start and stop the presentation process.

    Parameters
    ----------
    launcher:
        Object implementing :class:`~slideshow.launcher.ProcessLauncher`.
    config:
        Optional :class:`ControllerConfig` with the viewer commands.
    logger:
        Optional :class:`logging.Logger` that should receive status
        updates.  When omitted a module level logger is used.
    """

    def __init__(
        self,
        launcher: ProcessLauncher,
        *,
        config: Optional[ControllerConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._launcher = launcher
        self._config = config or ControllerConfig()
        self._logger = logger or logging.getLogger("slideshow.controller")
        self._lock = threading.Lock()
        self._state = ControllerState()

    # ------------------------------------------------------------------
    @property
    def state(self) -> ControllerState:
        # Snapshots are immutable and swapped whole, so readers never wait
        # behind a spawn or a kill holding the lock.
        return self._state

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def active_pid(self) -> Optional[int]:
        return self.state.active_pid

    # ------------------------------------------------------------------
    def start(self, deck: str, duration: str) -> DeckStarted:
        """Start the deck viewer looping ``deck`` every ``duration``.

        Raises
        ------
        EmptyDeckNameError
            ``deck`` is empty; nothing is spawned.
        AlreadyRunningError
            A presentation is already active; nothing is spawned.
        SpawnError
            The viewer could not be started; the controller stays idle.
        """

        if not deck:
            raise EmptyDeckNameError()
        args = (self._config.loop_flag, duration, deck)
        pid = self._launch(deck, self._config.deck_command, args)
        self._logger.info("deck: %r, duration: %r, pid: %d", deck, duration, pid)
        return DeckStarted(pid=pid, deck=deck, duration=duration)

    # ------------------------------------------------------------------
    def play_media(self, media: str) -> MediaStarted:
        """Play a video file; it occupies the same slot as a deck."""

        if not media:
            raise EmptyDeckNameError("media: need a media file")
        args = (*self._config.media_args, media)
        pid = self._launch(media, self._config.media_command, args)
        self._logger.info("video: %r, pid: %d", media, pid)
        return MediaStarted(pid=pid, media=media)

    # ------------------------------------------------------------------
    def stop(self) -> DeckStopped:
        """Terminate the active presentation.

        Raises
        ------
        NotRunningError
            Nothing is running; the state is left untouched.
        ProcessLookupFailure, KillError
            The process could not be terminated; the controller stays
            active so the stop can be retried.
        """

        with self._lock:
            state = self._state
            if not state.running or state.active_pid is None:
                raise NotRunningError()
            pid = state.active_pid
            try:
                self._launcher.kill(pid)
            except LauncherError:
                self._logger.warning("Failed to stop pid %d", pid, exc_info=True)
                raise
            self._state = ControllerState()
        self._logger.info("stop %d", pid)
        return DeckStopped(pid=pid)

    # ------------------------------------------------------------------
    def _launch(self, name: str, command: str, args: Sequence[str]) -> int:
        """Spawn ``command`` and enter the active state in one step."""

        with self._lock:
            if self._state.running and self._state.active_pid is not None:
                raise AlreadyRunningError(self._state.active_pid)
            try:
                pid = self._launcher.spawn(command, list(args))
            except LauncherError:
                self._logger.warning("Failed to start %s for %r", command, name, exc_info=True)
                raise
            self._state = ControllerState(running=True, active_pid=pid, active_name=name)
        return pid
