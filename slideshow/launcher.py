"""Process launching capability used by the deck controller.

The controller never talks to :mod:`subprocess` directly.  Instead it is
handed an object implementing :class:`ProcessLauncher`, which keeps the
controller testable with a fake launcher that merely records calls.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence, Union

from .errors import KillError, ProcessLookupFailure, SpawnError

__all__ = ["ProcessLauncher", "SubprocessLauncher"]


class ProcessLauncher(Protocol):
    """Protocol describing the minimal interface of a process launcher."""

    def spawn(self, command: str, args: Sequence[str]) -> int:  # pragma: no cover - protocol
        """Start ``command`` with ``args`` without waiting and return its pid."""

    def kill(self, pid: int) -> None:  # pragma: no cover - protocol
        """Terminate the process identified by ``pid``."""


class SubprocessLauncher:
    """Launch presentation processes with :class:`subprocess.Popen`.

    Parameters
    ----------
    cwd:
        Working directory for spawned processes.  Deck names are passed as
        bare file names, so this is normally the deck directory.
    reap_timeout:
        Seconds to wait for a killed child to be reaped.
    logger:
        Optional :class:`logging.Logger`; a module level logger is used when
        omitted.
    """

    def __init__(
        self,
        cwd: Optional[Union[str, Path]] = None,
        *,
        reap_timeout: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cwd = str(cwd) if cwd is not None else None
        self._reap_timeout = reap_timeout
        self._logger = logger or logging.getLogger("slideshow.launcher")
        self._children: Dict[int, subprocess.Popen] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def spawn(self, command: str, args: Sequence[str]) -> int:
        argv = [command, *args]
        try:
            process = subprocess.Popen(
                argv,
                cwd=self._cwd,
                stdin=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as exc:
            self._logger.warning("Could not start %s: %s", command, exc)
            raise SpawnError(f"{command}: {exc}") from exc
        with self._lock:
            self._children[process.pid] = process
        self._logger.debug("Started %s (pid %d)", argv, process.pid)
        return process.pid

    # ------------------------------------------------------------------
    def kill(self, pid: int) -> None:
        with self._lock:
            process = self._children.pop(pid, None)
        if process is None:
            self._kill_foreign(pid)
            return
        # Popen.kill is a no-op for a child that already exited.
        try:
            process.kill()
        except OSError as exc:
            with self._lock:
                self._children[pid] = process
            raise KillError(f"kill {pid}: {exc}") from exc
        try:
            process.wait(timeout=self._reap_timeout)
        except subprocess.TimeoutExpired:
            self._logger.warning("Process %d did not exit within %.1fs after kill", pid, self._reap_timeout)
        self._logger.debug("Killed pid %d", pid)

    # ------------------------------------------------------------------
    def _kill_foreign(self, pid: int) -> None:
        """Kill a process that was not started by this launcher."""

        if pid <= 0:
            raise ProcessLookupFailure(f"kill {pid}: invalid process id")
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError as exc:
            raise ProcessLookupFailure(f"kill {pid}: no such process") from exc
        except OSError as exc:
            raise KillError(f"kill {pid}: {exc}") from exc
