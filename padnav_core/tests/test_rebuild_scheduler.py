from __future__ import annotations

from types import SimpleNamespace

from padnav_core.adjacency import AdjacencyResolver
from padnav_core.cursor import FocusCursor
from padnav_core.geometry import Rect
from padnav_core.graph import NavigationGraph
from padnav_core.interfaces import DiscoveredElement
from padnav_core.overlay_arbiter import OverlayArbiter
from padnav_core.rebuild_scheduler import (
    OUTCOME_FAILED,
    OUTCOME_IDLE,
    OUTCOME_LOCKED,
    OUTCOME_REBUILT,
    OUTCOME_REUSED,
    OUTCOME_STARTED,
    OUTCOME_TEARDOWN,
    RebuildScheduler,
)
from padnav_core.reuse_guard import CacheReuseGuard
from padnav_core.session import NavigationSession


class TimeStub:
    def __init__(self, value: float = 0.0) -> None:
        self.value = value

    def now(self) -> float:
        return self.value


class AfterHarness:
    def __init__(self) -> None:
        self.scheduled: list[tuple[str, int, object]] = []
        self.cancelled: list[object] = []

    def after(self, ms: int, cb) -> str:
        handle = f"h{len(self.scheduled) + 1}"
        self.scheduled.append((handle, ms, cb))
        return handle

    def cancel(self, handle: object) -> None:
        self.cancelled.append(handle)

    def run(self, handle: str) -> None:
        for h, _ms, cb in list(self.scheduled):
            if h == handle:
                cb()
                return
        raise AssertionError(f"Handle {handle} not found")

    def run_last(self) -> None:
        self.run(self.scheduled[-1][0])


class Host:
    """Mutable host UI: root containers holding element names with boxes."""

    def __init__(self) -> None:
        self.roots: dict[str, list[str]] = {}
        self.boxes: dict[str, Rect] = {}
        self.discover_calls = 0
        self.locked = False

    def add(self, root: str, count: int, *, prefix: str | None = None) -> None:
        names = [f"{prefix or root}-{i}" for i in range(count)]
        offset = len(self.boxes)
        self.roots.setdefault(root, []).extend(names)
        for i, name in enumerate(names):
            self.boxes[name] = Rect(0, (offset + i) * 30, 100, 20)

    # Collaborator surfaces
    def discover(self, roots):
        self.discover_calls += 1
        return [DiscoveredElement(handle=name) for root in roots for name in self.roots.get(root, [])]

    def bounding_box(self, handle):
        return self.boxes.get(handle)

    def visible_roots(self):
        return list(self.roots)

    def is_locked(self) -> bool:
        return self.locked


class Dispatch:
    def __init__(self) -> None:
        self.held: dict[str, SimpleNamespace] = {}

    def acquire_binding(self, control_id):
        binding = SimpleNamespace(control_id=control_id, target=None)
        self.held[control_id] = binding
        return binding

    def bind(self, binding, target):
        binding.target = target

    def release(self, binding):
        self.held.pop(binding.control_id, None)


def _build(poll_interval_ms: int = 0):
    host = Host()
    clock = TimeStub()
    harness = AfterHarness()
    graph = NavigationGraph(host, host, time_source=clock.now)
    guard = CacheReuseGuard(graph, staleness_seconds=30.0, time_source=clock.now)
    dispatch = Dispatch()
    session = NavigationSession(
        graph, AdjacencyResolver(graph), guard, dispatch, host, FocusCursor(), OverlayArbiter(None)
    )
    scheduler = RebuildScheduler(
        session,
        host,
        guard,
        after=harness.after,
        after_cancel=harness.cancel,
        debounce_ms=100,
        poll_interval_ms=poll_interval_ms,
    )
    session.set_stale_listener(scheduler.request_rebuild)
    return SimpleNamespace(
        host=host, clock=clock, harness=harness, graph=graph, session=session, scheduler=scheduler, dispatch=dispatch
    )


def test_burst_of_requests_collapses_into_one_evaluation() -> None:
    env = _build()
    env.host.add("R1", 3)

    for _ in range(5):
        env.scheduler.on_content_changed()

    assert env.harness.cancelled == ["h1", "h2", "h3", "h4"]
    assert all(ms == 100 for _h, ms, _cb in env.harness.scheduled)

    # A superseded callback that fires anyway is discarded.
    env.harness.run("h2")
    assert env.scheduler.evaluations == 0

    env.harness.run("h5")
    assert env.scheduler.evaluations == 1
    assert env.scheduler.last_outcome == OUTCOME_STARTED
    assert env.session.is_active
    assert not env.scheduler.pending


def test_unchanged_host_reuses_graph_without_rebuild() -> None:
    env = _build()
    env.host.add("R1", 4)
    env.host.add("R2", 4)
    env.scheduler.request_rebuild()
    env.harness.run_last()
    assert env.graph.count == 8
    builds = env.graph.build_count

    env.clock.value = 5.0
    env.scheduler.request_rebuild()
    env.harness.run_last()

    assert env.scheduler.last_outcome == OUTCOME_REUSED
    assert env.graph.build_count == builds

    env.host.add("R2", 1, prefix="extra")
    env.scheduler.request_rebuild()
    env.harness.run_last()

    assert env.scheduler.last_outcome == OUTCOME_REBUILT
    assert env.graph.count == 9
    assert env.graph.build_count == builds + 1


def test_rebuild_keeps_focus_on_the_same_element() -> None:
    env = _build()
    env.host.add("R1", 4)
    env.scheduler.evaluate()
    env.session.focus_index(3)
    focused = env.session.current_handle

    env.host.add("R1", 2, prefix="new")
    env.scheduler.evaluate()

    assert env.scheduler.last_outcome == OUTCOME_REBUILT
    assert env.session.current_handle == focused


def test_stale_graph_triggers_rebuild_after_threshold() -> None:
    env = _build()
    env.host.add("R1", 2)
    env.scheduler.evaluate()

    env.clock.value = 31.0
    assert env.scheduler.evaluate() == OUTCOME_REBUILT


def test_roots_disappearing_tears_the_session_down() -> None:
    env = _build()
    env.host.add("R1", 2)
    env.scheduler.evaluate()

    env.host.roots.clear()
    env.scheduler.on_root_visibility_changed()
    env.harness.run_last()

    assert env.scheduler.last_outcome == OUTCOME_TEARDOWN
    assert not env.session.is_active
    assert env.dispatch.held == {}
    assert env.scheduler.evaluate() == OUTCOME_IDLE


def test_lock_assertion_tears_down_and_blocks_rearm() -> None:
    env = _build()
    env.host.add("R1", 2)
    env.scheduler.evaluate()
    env.scheduler.request_rebuild()
    pending = env.harness.scheduled[-1][0]

    env.host.locked = True
    env.scheduler.on_lock_asserted()

    assert not env.session.is_active
    assert env.dispatch.held == {}
    assert pending in env.harness.cancelled
    assert env.scheduler.evaluate() == OUTCOME_LOCKED

    env.host.locked = False
    env.scheduler.on_lock_released()
    env.harness.run_last()
    assert env.scheduler.last_outcome == OUTCOME_STARTED
    assert env.session.is_active


def test_lock_seen_when_rebuild_fires_tears_session_down() -> None:
    env = _build()
    env.host.add("R1", 3)
    env.scheduler.evaluate()
    assert env.session.is_active

    env.host.locked = True
    env.scheduler.on_content_changed()
    env.harness.run_last()

    assert env.scheduler.last_outcome == OUTCOME_LOCKED
    assert not env.session.is_active
    assert env.dispatch.held == {}
    assert not env.scheduler.pending


def test_lock_seen_by_poll_tears_session_down_and_cancels_pending() -> None:
    env = _build(poll_interval_ms=1000)
    env.host.add("R1", 3)
    env.scheduler.evaluate()
    env.scheduler.request_rebuild()
    pending = env.harness.scheduled[-1][0]

    env.host.locked = True
    env.scheduler.poll()

    assert not env.session.is_active
    assert env.dispatch.held == {}
    assert pending in env.harness.cancelled
    assert not env.scheduler.pending


def test_empty_host_fails_to_start() -> None:
    env = _build()
    env.host.roots["R1"] = []

    assert env.scheduler.evaluate() == OUTCOME_FAILED
    assert not env.session.is_active


def test_poll_detects_new_roots_and_lost_focus() -> None:
    env = _build(poll_interval_ms=1000)
    env.host.add("R1", 3)
    env.scheduler.evaluate()
    env.scheduler.start_polling()
    assert env.harness.scheduled[-1][1] == 1000

    env.harness.run_last()
    assert not env.scheduler.pending
    assert env.harness.scheduled[-1][1] == 1000

    del env.host.boxes[env.session.current_handle]
    env.harness.run_last()
    assert env.scheduler.pending
    assert env.graph.is_valid() is False

    env.harness.run(env.harness.scheduled[-2][0])
    assert env.scheduler.last_outcome == OUTCOME_REBUILT
    assert env.session.current_index == 1
    assert env.session.current_handle == "R1-1"

    env.scheduler.stop_polling()
    assert env.harness.cancelled[-1] == env.harness.scheduled[-1][0]


def test_poll_with_new_root_requests_rebuild() -> None:
    env = _build(poll_interval_ms=500)
    env.host.add("R1", 2)
    env.scheduler.evaluate()

    env.host.add("R2", 2)
    env.scheduler.poll()

    assert env.scheduler.pending
