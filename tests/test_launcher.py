from __future__ import annotations

import os
import pathlib
import subprocess
import sys
import time

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from slideshow import ControllerConfig, DeckController, ProcessLookupFailure, SpawnError, SubprocessLauncher

pytestmark = pytest.mark.skipif(os.name != "posix", reason="process signals are POSIX specific")

SLEEPER = ["-c", "import time; time.sleep(60)"]


def _is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


def test_spawn_and_kill_child(tmp_path):
    launcher = SubprocessLauncher(cwd=tmp_path)
    pid = launcher.spawn(sys.executable, SLEEPER)
    assert _is_alive(pid)

    launcher.kill(pid)
    assert not _is_alive(pid)


def test_spawn_runs_in_working_directory(tmp_path):
    launcher = SubprocessLauncher(cwd=tmp_path)
    script = "import pathlib; pathlib.Path('marker.txt').write_text('ok')"
    launcher.spawn(sys.executable, ["-c", script])

    marker = tmp_path / "marker.txt"
    deadline = time.monotonic() + 10
    while not marker.exists() and time.monotonic() < deadline:
        time.sleep(0.02)
    assert marker.read_text() == "ok"


def test_spawn_missing_command_raises(tmp_path):
    launcher = SubprocessLauncher(cwd=tmp_path)
    with pytest.raises(SpawnError) as excinfo:
        launcher.spawn(str(tmp_path / "no-such-viewer"), ["-loop", "5", "demo.xml"])
    assert isinstance(excinfo.value.__cause__, OSError)


def test_kill_of_exited_child_succeeds(tmp_path):
    launcher = SubprocessLauncher(cwd=tmp_path)
    pid = launcher.spawn(sys.executable, ["-c", "pass"])
    time.sleep(0.2)
    launcher.kill(pid)


def test_kill_unknown_process_raises_lookup_failure():
    launcher = SubprocessLauncher()
    process = subprocess.Popen([sys.executable, "-c", "pass"])
    process.wait()
    with pytest.raises(ProcessLookupFailure):
        launcher.kill(process.pid)


def test_kill_invalid_pid_raises_lookup_failure():
    with pytest.raises(ProcessLookupFailure):
        SubprocessLauncher().kill(0)


def test_controller_with_real_processes(tmp_path):
    controller = DeckController(
        SubprocessLauncher(cwd=tmp_path),
        config=ControllerConfig(deck_command=sys.executable, loop_flag="-c"),
    )
    started = controller.start("demo.xml", "import time; time.sleep(60)")
    assert _is_alive(started.pid)

    stopped = controller.stop()
    assert stopped.pid == started.pid
    assert not _is_alive(started.pid)
    assert controller.running is False
