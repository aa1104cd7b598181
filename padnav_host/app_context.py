from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from padnav_core.adjacency import AdjacencyResolver
from padnav_core.cursor import FocusCursor
from padnav_core.graph import NavigationGraph
from padnav_core.interfaces import (
    AfterCancelFn,
    AfterFn,
    CursorRenderer,
    ElementDiscovery,
    GeometryProvider,
    LockSignal,
    RootProvider,
    SharedOverlay,
)
from padnav_core.nav_config import NavigationSettings
from padnav_core.overlay_arbiter import GENERIC_OWNER, OverlayArbiter
from padnav_core.rebuild_scheduler import RebuildScheduler
from padnav_core.reuse_guard import CacheReuseGuard
from padnav_core.session import NavigationSession
from padnav_host.input_bindings import BindingDispatcher

LOGGER = logging.getLogger("PadNav.Host.Context")


@dataclass
class NavigatorContext:
    settings: NavigationSettings
    graph: NavigationGraph
    resolver: AdjacencyResolver
    guard: CacheReuseGuard
    cursor: FocusCursor
    arbiter: OverlayArbiter
    session: NavigationSession
    scheduler: RebuildScheduler
    dispatcher: BindingDispatcher
    scroller: Optional[Callable[[Any, int], bool]] = None

    def start(self) -> None:
        self.scheduler.start_polling()
        self.scheduler.request_rebuild("startup")

    def shutdown(self) -> None:
        self.scheduler.stop_polling()
        self.scheduler.cancel_pending()
        self.session.disable(force=True)

    def export_edges(self) -> Dict[str, Optional[int]]:
        """Flat neighbour table for the current graph, for diagnostics."""
        if not self.graph.is_valid():
            return {}
        return self.resolver.export_edges(self.session.current_index)

    def handle_scroll(self, active: bool, step: int) -> None:
        """Scroll the focused element's container and reflect it on the cursor."""

        session = self.session
        if not session.is_active or session.is_locked():
            return
        session.indicate_scroll(active)
        if not active or not step or self.scroller is None:
            return
        try:
            self.scroller(session.current_handle, step)
        except Exception as exc:
            LOGGER.debug("Scroll of %r failed: %s", session.current_handle, exc)
            return
        # Scrolling moves geometry under cached edges.
        session.graph.invalidate()
        self.scheduler.request_rebuild("scrolled")


def build_navigator(
    settings: NavigationSettings,
    *,
    discovery: ElementDiscovery,
    geometry: GeometryProvider,
    dispatcher: BindingDispatcher,
    lock: LockSignal,
    roots: RootProvider,
    after: AfterFn,
    after_cancel: AfterCancelFn,
    overlay: Optional[SharedOverlay] = None,
    renderer: Optional[CursorRenderer] = None,
    scroller: Optional[Callable[[Any, int], bool]] = None,
    generic_owner: object = GENERIC_OWNER,
    time_source: Callable[[], float] = time.monotonic,
) -> NavigatorContext:
    graph = NavigationGraph(discovery, geometry, time_source=time_source)
    resolver = AdjacencyResolver(graph, angle_penalty_degrees=settings.angle_penalty_degrees)
    guard = CacheReuseGuard(graph, staleness_seconds=settings.staleness_seconds, time_source=time_source)
    cursor = FocusCursor(
        renderer,
        pointer_size=settings.pointer_size,
        pressed_size=settings.pressed_size,
        max_hops=settings.max_correction_hops,
    )
    arbiter = OverlayArbiter(overlay, generic_owner=generic_owner)
    session = NavigationSession(graph, resolver, guard, dispatcher, lock, cursor, arbiter)
    scheduler = RebuildScheduler(
        session,
        roots,
        guard,
        after=after,
        after_cancel=after_cancel,
        debounce_ms=settings.debounce_ms,
        poll_interval_ms=settings.poll_interval_ms,
    )
    session.set_stale_listener(lambda: scheduler.request_rebuild("stale neighbour"))
    dispatcher.set_press_listener(session.indicate_press)

    return NavigatorContext(
        settings=settings,
        graph=graph,
        resolver=resolver,
        guard=guard,
        cursor=cursor,
        arbiter=arbiter,
        session=session,
        scheduler=scheduler,
        dispatcher=dispatcher,
        scroller=scroller,
    )
