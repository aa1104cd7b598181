"""Session lifecycle: the all-or-nothing Enable transaction and its teardown."""

from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from padnav_core.adjacency import AdjacencyResolver
from padnav_core.cursor import FocusCursor
from padnav_core.errors import (
    BindingAcquisitionFailed,
    EmptyDiscoveryResult,
    LockAsserted,
    NavigationError,
    StaleNeighborDetected,
)
from padnav_core.geometry import Direction
from padnav_core.graph import NavigationGraph
from padnav_core.interfaces import (
    CONTROL_DOWN,
    CONTROL_LEFT,
    CONTROL_PRIMARY,
    CONTROL_RIGHT,
    CONTROL_SECONDARY,
    CONTROL_UP,
    LOGICAL_CONTROLS,
    InputDispatch,
    LockSignal,
)
from padnav_core.overlay_arbiter import OverlayArbiter
from padnav_core.reuse_guard import CacheReuseGuard

LOGGER = logging.getLogger("PadNav.Core.Session")

_DIRECTION_CONTROLS: Dict[str, Direction] = {
    CONTROL_UP: Direction.UP,
    CONTROL_DOWN: Direction.DOWN,
    CONTROL_LEFT: Direction.LEFT,
    CONTROL_RIGHT: Direction.RIGHT,
}
_CLICK_CONTROLS = (CONTROL_PRIMARY, CONTROL_SECONDARY)


class SessionStatus(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class NavigationSession:
    """Owns the session state and drives graph, bindings, cursor and overlay.

    Invariants: bindings are held only while ACTIVE, and an ACTIVE session always has
    exactly one focused index that is present in the graph.
    """

    def __init__(
        self,
        graph: NavigationGraph,
        resolver: AdjacencyResolver,
        guard: CacheReuseGuard,
        dispatch: InputDispatch,
        lock: LockSignal,
        cursor: FocusCursor,
        arbiter: OverlayArbiter,
        *,
        on_stale: Optional[Callable[[], None]] = None,
    ) -> None:
        self._graph = graph
        self._resolver = resolver
        self._guard = guard
        self._dispatch = dispatch
        self._lock = lock
        self._cursor = cursor
        self._arbiter = arbiter
        self._on_stale = on_stale
        self._status = SessionStatus.INACTIVE
        self._current_index: Optional[int] = None
        self._bindings: Dict[str, Any] = {}
        self.last_error: Optional[NavigationError] = None

    # State ------------------------------------------------------------
    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status is SessionStatus.ACTIVE

    @property
    def current_index(self) -> Optional[int]:
        return self._current_index

    @property
    def current_handle(self) -> Optional[Hashable]:
        return self._graph.handle_at(self._current_index)

    @property
    def bindings(self) -> Dict[str, Any]:
        return dict(self._bindings)

    @property
    def graph(self) -> NavigationGraph:
        return self._graph

    @property
    def cursor(self) -> FocusCursor:
        return self._cursor

    def set_stale_listener(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_stale = callback

    def is_locked(self) -> bool:
        try:
            return bool(self._lock.is_locked())
        except Exception as exc:
            LOGGER.debug("Lock query failed, assuming locked: %s", exc)
            return True

    # Lifecycle --------------------------------------------------------
    def enable(
        self,
        roots: Sequence[Hashable],
        *,
        element_count: Optional[int] = None,
        preferred_handle: Optional[Hashable] = None,
    ) -> bool:
        """Start a session over ``roots``; either fully commits or fully rolls back."""

        if self.is_locked():
            self.last_error = LockAsserted("enable")
            LOGGER.debug("Enable rejected: exclusive lock asserted")
            return False
        if self.is_active:
            LOGGER.debug("Enable ignored: session already active")
            return False
        roots = list(roots or ())
        if not roots:
            LOGGER.debug("Enable ignored: no root containers")
            return False

        acquired: List[Tuple[str, Any]] = []
        built = False
        try:
            count = element_count if element_count is not None else self._graph.count
            if not self._guard.can_reuse(roots, count):
                built = True
                if not self._graph.build(roots):
                    raise EmptyDiscoveryResult(f"No navigable elements under {len(roots)} roots")
            focus_index = self._default_focus(preferred_handle)
            focus_handle = self._graph.handle_at(focus_index)
            for control in LOGICAL_CONTROLS:
                acquired.append((control, self._acquire(control)))
            for control, binding in acquired:
                self._wire(control, binding, focus_handle)
        except NavigationError as exc:
            self._rollback(acquired, built, exc)
            return False

        self._bindings = dict(acquired)
        self._status = SessionStatus.ACTIVE
        self.last_error = None
        self._apply_focus(focus_index)
        LOGGER.info(
            "Navigation enabled: %d nodes, focus=%d (%s graph)",
            self._graph.count,
            focus_index,
            "rebuilt" if built else "reused",
        )
        return True

    def disable(self, *, force: bool = False) -> bool:
        """Release bindings and hide the cursor; keeps the graph for a quick re-enable."""

        if not self.is_active:
            return True
        if not force and self.is_locked():
            self.last_error = LockAsserted("disable")
            LOGGER.debug("Disable rejected: exclusive lock asserted")
            return False
        self._teardown()
        LOGGER.info("Navigation disabled%s", " (forced)" if force else "")
        return True

    # Navigation -------------------------------------------------------
    def navigate(self, direction: Direction) -> Optional[int]:
        """Move focus one step; returns the new index or None when nothing moved."""

        if not self.is_active or self._current_index is None:
            return None
        if self.is_locked():
            self.last_error = LockAsserted("navigate")
            return None
        if not self._graph.is_valid():
            LOGGER.debug("Navigate %s ignored: graph awaiting rebuild", direction.value)
            return None
        origin = self._current_index
        try:
            neighbor = self._resolver.neighbor_of(origin, direction)
            if neighbor is None or neighbor == origin:
                return None
            if self._graph.box_of(neighbor) is None:
                raise StaleNeighborDetected(neighbor, direction, "neighbour geometry unavailable")
        except StaleNeighborDetected as exc:
            self._handle_stale(exc)
            return None
        self._apply_focus(neighbor)
        return neighbor

    def focus_index(self, index: int) -> bool:
        if not self.is_active or not self._graph.contains(index):
            return False
        if self.is_locked():
            self.last_error = LockAsserted("focus")
            return False
        self._apply_focus(index)
        return True

    def focus_is_available(self) -> bool:
        if not self.is_active or self._current_index is None:
            return False
        return self._graph.box_of(self._current_index) is not None

    def indicate_press(self, pressed: bool) -> None:
        if self.is_active:
            self._cursor.set_pressed(pressed)

    def indicate_scroll(self, scrolling: bool) -> None:
        if self.is_active:
            self._cursor.set_scrolling(scrolling)

    # Internals --------------------------------------------------------
    def _default_focus(self, preferred_handle: Optional[Hashable]) -> int:
        if preferred_handle is not None:
            preferred = self._graph.index_of(preferred_handle)
            if preferred is not None:
                return preferred
        first = self._graph.first_index()
        if first is None:
            raise EmptyDiscoveryResult("Graph has no first node")
        return first

    def _acquire(self, control: str) -> Any:
        try:
            binding = self._dispatch.acquire_binding(control)
        except Exception as exc:
            raise BindingAcquisitionFailed(control, str(exc)) from exc
        if binding is None:
            raise BindingAcquisitionFailed(control)
        return binding

    def _wire(self, control: str, binding: Any, focus_handle: Optional[Hashable]) -> None:
        direction = _DIRECTION_CONTROLS.get(control)
        target: Any = partial(self.navigate, direction) if direction is not None else focus_handle
        try:
            self._dispatch.bind(binding, target)
        except Exception as exc:
            raise BindingAcquisitionFailed(control, f"bind failed: {exc}") from exc

    def _rollback(self, acquired: List[Tuple[str, Any]], built: bool, exc: NavigationError) -> None:
        for _control, binding in reversed(acquired):
            self._release(binding)
        self._bindings = {}
        self._current_index = None
        self._status = SessionStatus.INACTIVE
        self._cursor.hide()
        self._arbiter.clear()
        if built:
            self._graph.invalidate()
        self.last_error = exc
        if isinstance(exc, BindingAcquisitionFailed):
            LOGGER.warning("Enable rolled back after %d bindings: %s", len(acquired), exc)
        else:
            LOGGER.debug("Enable rolled back: %s", exc)

    def _teardown(self) -> None:
        for binding in self._bindings.values():
            self._release(binding)
        self._bindings = {}
        self._status = SessionStatus.INACTIVE
        self._cursor.hide()
        self._arbiter.clear()
        self._current_index = None

    def _release(self, binding: Any) -> None:
        try:
            self._dispatch.release(binding)
        except Exception as exc:
            LOGGER.debug("Binding release failed for %r: %s", binding, exc)

    def _apply_focus(self, index: int) -> None:
        handle = self._graph.handle_at(index)
        self._current_index = index
        for control in _CLICK_CONTROLS:
            binding = self._bindings.get(control)
            if binding is None:
                continue
            try:
                self._dispatch.bind(binding, handle)
            except Exception as exc:
                LOGGER.warning("Could not retarget %s binding to %r: %s", control, handle, exc)
        self._cursor.point_at(self._graph.box_of(index))
        self._arbiter.focus_changed(handle)

    def _handle_stale(self, exc: StaleNeighborDetected) -> None:
        LOGGER.warning("%s; invalidating graph", exc)
        self.last_error = exc
        ok, problem = self._graph.validate()
        if not ok:
            LOGGER.warning("Graph validation failed: %s", problem)
        self._graph.invalidate()
        if self._on_stale is not None:
            self._on_stale()
