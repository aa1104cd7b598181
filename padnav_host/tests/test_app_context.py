from __future__ import annotations

from padnav_core.cursor import CursorState
from padnav_core.geometry import Direction, Rect
from padnav_core.interfaces import DiscoveredElement
from padnav_core.nav_config import NavigationSettings
from padnav_host.app_context import build_navigator
from padnav_host.input_bindings import BindingConfig, BindingDispatcher


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

    def run_matching(self, ms: int) -> None:
        for handle, delay, cb in list(self.scheduled):
            if delay == ms and handle not in self.cancelled:
                self.cancelled.append(handle)
                cb()
                return
        raise AssertionError(f"No pending callback with delay {ms}")


class GridHost:
    def __init__(self) -> None:
        self.boxes = {f"b{i}": Rect(0, i * 40, 120, 30) for i in range(1, 4)}
        self.locked = False
        self.scrolled: list[tuple[object, int]] = []

    def discover(self, roots):
        return [DiscoveredElement(handle=name, has_hover_behavior=True) for name in self.boxes]

    def bounding_box(self, handle):
        return self.boxes.get(handle)

    def visible_roots(self):
        return ["window"]

    def is_locked(self) -> bool:
        return self.locked

    def scroll(self, widget, step):
        self.scrolled.append((widget, step))
        return True


class RecordingClicks:
    def __init__(self) -> None:
        self.primary: list[object] = []

    def perform_primary(self, widget) -> None:
        self.primary.append(widget)

    def perform_secondary(self, widget) -> None:
        pass


def _build(settings: NavigationSettings | None = None):
    host = GridHost()
    harness = AfterHarness()
    clicks = RecordingClicks()
    dispatcher = BindingDispatcher(BindingConfig.default(), clicks)
    context = build_navigator(
        settings or NavigationSettings(debounce_ms=50, poll_interval_ms=0),
        discovery=host,
        geometry=host,
        dispatcher=dispatcher,
        lock=host,
        roots=host,
        after=harness.after,
        after_cancel=harness.cancel,
        scroller=host.scroll,
        time_source=lambda: 0.0,
    )
    return context, host, harness, clicks


def test_build_navigator_applies_settings() -> None:
    settings = NavigationSettings(
        debounce_ms=75, poll_interval_ms=500, staleness_seconds=4.0, pointer_size=20, pressed_size=26
    )
    context, _host, _harness, _clicks = _build(settings)

    assert context.scheduler.debounce_ms == 75
    assert context.scheduler.poll_interval_ms == 500
    assert context.guard.staleness_seconds == 4.0
    assert context.cursor.style_for(CursorState.POINTING).size == 20
    assert context.cursor.style_for(CursorState.PRESSING).size == 26


def test_gamepad_inputs_drive_focus_and_clicks_end_to_end() -> None:
    context, _host, harness, clicks = _build()
    context.start()
    harness.run_matching(50)
    session = context.session
    assert session.is_active

    context.dispatcher.dispatch("PADDDOWN", True)
    context.dispatcher.dispatch("PADDDOWN", False)
    assert session.current_handle == "b2"

    context.dispatcher.dispatch("PAD1", True)
    assert session.cursor.state is CursorState.PRESSING
    context.dispatcher.dispatch("PAD1", False)
    assert clicks.primary == ["b2"]
    assert session.cursor.state is CursorState.POINTING


def test_stale_neighbour_schedules_a_rebuild() -> None:
    context, host, harness, _clicks = _build()
    context.start()
    harness.run_matching(50)
    session = context.session
    session.navigate(Direction.DOWN)
    session.navigate(Direction.UP)

    del host.boxes["b2"]
    session.navigate(Direction.DOWN)

    assert context.scheduler.pending
    harness.run_matching(50)
    assert context.scheduler.last_outcome == "rebuilt"
    assert session.navigate(Direction.DOWN) == 2
    assert session.current_handle == "b3"


def test_scroll_moves_container_and_marks_graph_dirty() -> None:
    context, host, harness, _clicks = _build()
    context.start()
    harness.run_matching(50)

    context.handle_scroll(True, 20)

    assert host.scrolled == [("b1", 20)]
    assert context.cursor.state is CursorState.SCROLLING
    assert context.graph.is_valid() is False
    assert context.scheduler.pending

    context.handle_scroll(False, 0)
    assert context.cursor.state is CursorState.POINTING


def test_shutdown_releases_everything() -> None:
    context, _host, harness, _clicks = _build()
    context.start()
    harness.run_matching(50)

    context.shutdown()

    assert not context.session.is_active
    assert context.dispatcher.held_controls() == []
    assert context.dispatcher.dispatch("PADDDOWN") is False


def test_export_edges_reflects_the_live_graph() -> None:
    context, _host, harness, _clicks = _build()
    assert context.export_edges() == {}
    context.start()
    harness.run_matching(50)
    context.session.navigate(Direction.DOWN)

    edges = context.export_edges()

    assert edges["navGraphNodeCount"] == 3
    assert edges["navGraphNode1Down"] == 2
    assert edges["navGraphNode3Down"] is None
    assert edges["navGraphCurrentIndex"] == 2
