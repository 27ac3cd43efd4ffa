from __future__ import annotations

import itertools
import pathlib
import sys
import threading
import time

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from slideshow import (
    AlreadyRunningError,
    ControllerConfig,
    DeckController,
    EmptyDeckNameError,
    KillError,
    NotRunningError,
    ProcessLookupFailure,
    SpawnError,
)


class FakeLauncher:
    def __init__(self, spawn_delay: float = 0.0) -> None:
        self.spawned: list[tuple[str, list[str]]] = []
        self.killed: list[int] = []
        self.spawn_error: Exception | None = None
        self.kill_error: Exception | None = None
        self._spawn_delay = spawn_delay
        self._pids = itertools.count(4242)
        self._lock = threading.Lock()

    def spawn(self, command, args):
        if self._spawn_delay:
            time.sleep(self._spawn_delay)
        if self.spawn_error is not None:
            raise self.spawn_error
        with self._lock:
            self.spawned.append((command, list(args)))
            return next(self._pids)

    def kill(self, pid):
        if self.kill_error is not None:
            raise self.kill_error
        self.killed.append(pid)


@pytest.fixture()
def launcher():
    return FakeLauncher()


@pytest.fixture()
def controller(launcher):
    return DeckController(launcher)


def assert_consistent(controller: DeckController) -> None:
    state = controller.state
    assert (state.active_pid is not None) == state.running


def test_start_then_stop_cycles_the_viewer(controller, launcher):
    started = controller.start("demo.xml", "5")

    assert launcher.spawned == [("vgdeck", ["-loop", "5", "demo.xml"])]
    assert started.pid == 4242
    assert started.deck == "demo.xml"
    assert started.duration == "5"
    assert controller.running is True
    assert controller.active_pid == 4242

    stopped = controller.stop()
    assert stopped.pid == 4242
    assert launcher.killed == [4242]
    assert controller.running is False
    assert controller.active_pid is None

    with pytest.raises(NotRunningError):
        controller.stop()
    assert launcher.killed == [4242]


def test_controller_can_restart_after_stop(controller, launcher):
    controller.start("a.xml", "5")
    controller.stop()
    second = controller.start("b.xml", "10")
    assert second.pid == 4243
    assert controller.state.active_name == "b.xml"


def test_empty_deck_name_spawns_nothing(controller, launcher):
    with pytest.raises(EmptyDeckNameError):
        controller.start("", "5")
    assert launcher.spawned == []
    assert controller.running is False


def test_start_while_running_is_rejected(controller, launcher):
    controller.start("demo.xml", "5")
    with pytest.raises(AlreadyRunningError) as excinfo:
        controller.start("other.xml", "5")
    assert excinfo.value.pid == 4242
    assert len(launcher.spawned) == 1
    assert controller.state.active_name == "demo.xml"


def test_spawn_failure_leaves_controller_idle(controller, launcher):
    launcher.spawn_error = SpawnError("vgdeck: not found")
    with pytest.raises(SpawnError):
        controller.start("demo.xml", "5")
    assert controller.running is False
    assert_consistent(controller)


@pytest.mark.parametrize("error", [ProcessLookupFailure("gone"), KillError("denied")])
def test_kill_failure_keeps_controller_active(controller, launcher, error):
    controller.start("demo.xml", "5")
    launcher.kill_error = error
    with pytest.raises(type(error)):
        controller.stop()
    assert controller.running is True
    assert controller.active_pid == 4242

    launcher.kill_error = None
    assert controller.stop().pid == 4242
    assert_consistent(controller)


def test_stop_on_idle_controller_does_not_touch_state(controller, launcher):
    before = controller.state
    with pytest.raises(NotRunningError):
        controller.stop()
    assert controller.state == before
    assert launcher.killed == []


def test_media_occupies_the_presentation_slot(launcher):
    controller = DeckController(
        launcher,
        config=ControllerConfig(media_command="mpv", media_args=("--fs",)),
    )
    started = controller.play_media("clip.mp4")
    assert launcher.spawned == [("mpv", ["--fs", "clip.mp4"])]
    assert started.media == "clip.mp4"

    with pytest.raises(AlreadyRunningError):
        controller.start("demo.xml", "5")

    assert controller.stop().pid == started.pid


def test_media_requires_a_name(controller):
    with pytest.raises(EmptyDeckNameError):
        controller.play_media("")


def test_concurrent_starts_spawn_exactly_once():
    launcher = FakeLauncher(spawn_delay=0.01)
    controller = DeckController(launcher)
    barrier = threading.Barrier(8)
    results: list[object] = []
    results_lock = threading.Lock()

    def worker(index: int) -> None:
        barrier.wait()
        try:
            outcome: object = controller.start(f"deck{index}.xml", "5")
        except AlreadyRunningError as exc:
            outcome = exc
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    successes = [r for r in results if not isinstance(r, AlreadyRunningError)]
    assert len(results) == 8
    assert len(successes) == 1
    assert len(launcher.spawned) == 1
    assert_consistent(controller)


def test_state_stays_consistent_under_mixed_load(controller):
    snapshots = []

    def worker() -> None:
        for _ in range(50):
            try:
                controller.start("demo.xml", "5")
            except AlreadyRunningError:
                pass
            try:
                controller.stop()
            except NotRunningError:
                pass
            snapshots.append(controller.state)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)
    assert len(snapshots) == 200
    assert all((s.active_pid is not None) == s.running for s in snapshots)
    assert_consistent(controller)


class BlockingKillLauncher(FakeLauncher):
    def __init__(self) -> None:
        super().__init__()
        self.kill_entered = threading.Event()
        self.release_kill = threading.Event()

    def kill(self, pid):
        self.kill_entered.set()
        self.release_kill.wait(timeout=5)
        super().kill(pid)


def test_state_is_readable_while_a_stop_is_in_progress():
    launcher = BlockingKillLauncher()
    controller = DeckController(launcher)
    controller.start("demo.xml", "5")

    stopper = threading.Thread(target=controller.stop)
    stopper.start()
    try:
        assert launcher.kill_entered.wait(timeout=1)
        reader_done = threading.Event()
        snapshots = []

        def reader() -> None:
            snapshots.append(controller.state)
            reader_done.set()

        threading.Thread(target=reader, daemon=True).start()
        assert reader_done.wait(timeout=1)
        assert snapshots[0].running is True
        assert snapshots[0].active_pid == 4242
    finally:
        launcher.release_kill.set()
        stopper.join(timeout=5)

    assert controller.running is False
    assert launcher.killed == [4242]
