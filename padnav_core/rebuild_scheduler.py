"""Debounced reconciliation of the session with the host UI."""

from __future__ import annotations

import logging
from typing import FrozenSet, Hashable, List, Optional

from padnav_core.interfaces import AfterCancelFn, AfterFn, RootProvider
from padnav_core.reuse_guard import CacheReuseGuard
from padnav_core.session import NavigationSession

LOGGER = logging.getLogger("PadNav.Core.Scheduler")

OUTCOME_LOCKED = "locked"
OUTCOME_IDLE = "idle"
OUTCOME_TEARDOWN = "teardown"
OUTCOME_STARTED = "started"
OUTCOME_REUSED = "reused"
OUTCOME_REBUILT = "rebuilt"
OUTCOME_FAILED = "failed"


class RebuildScheduler:
    """Collapses bursts of change notifications into one evaluation.

    Each request bumps a generation counter and (re)arms a single debounce timer; a
    callback whose captured generation is no longer current is discarded. An optional
    low-frequency poll catches changes the host never announces.
    """

    def __init__(
        self,
        session: NavigationSession,
        roots: RootProvider,
        guard: CacheReuseGuard,
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        debounce_ms: int = 100,
        poll_interval_ms: int = 0,
    ) -> None:
        self._session = session
        self._roots = roots
        self._guard = guard
        self._after = after
        self._after_cancel = after_cancel
        self.debounce_ms = max(10, int(debounce_ms))
        self.poll_interval_ms = max(0, int(poll_interval_ms))
        self._generation = 0
        self._pending_handle: object | None = None
        self._poll_handle: object | None = None
        self._last_roots: FrozenSet[Hashable] = frozenset()
        self.last_outcome: Optional[str] = None
        self.evaluations = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._pending_handle is not None

    # Requests ---------------------------------------------------------
    def request_rebuild(self, reason: str = "") -> int:
        self._generation += 1
        generation = self._generation
        self._cancel(self._pending_handle)
        self._pending_handle = self._after(self.debounce_ms, lambda: self._fire(generation))
        LOGGER.debug("Rebuild requested (generation=%d reason=%s)", generation, reason or "unspecified")
        return generation

    def cancel_pending(self) -> None:
        self._generation += 1
        handle = self._pending_handle
        self._pending_handle = None
        self._cancel(handle)

    def on_root_visibility_changed(self, *_args: object) -> None:
        self.request_rebuild("root visibility changed")

    def on_content_changed(self, *_args: object) -> None:
        self.request_rebuild("content changed")

    def on_lock_asserted(self, *_args: object) -> None:
        """Tear the session down immediately; nothing re-arms until the lock is released."""

        self._enforce_lock()

    def _enforce_lock(self) -> None:
        self.cancel_pending()
        if self._session.is_active:
            LOGGER.info("Exclusive lock asserted; tearing down navigation")
            self._session.disable(force=True)

    def on_lock_released(self, *_args: object) -> None:
        self.request_rebuild("lock released")

    # Polling fallback -------------------------------------------------
    def start_polling(self) -> None:
        self.stop_polling()
        if self.poll_interval_ms <= 0:
            return
        self._poll_handle = self._after(self.poll_interval_ms, self._run_poll)

    def stop_polling(self) -> None:
        handle = self._poll_handle
        self._poll_handle = None
        self._cancel(handle)

    def _run_poll(self) -> None:
        self._poll_handle = None
        try:
            self.poll()
        finally:
            if self.poll_interval_ms > 0:
                self._poll_handle = self._after(self.poll_interval_ms, self._run_poll)

    def poll(self) -> None:
        session = self._session
        if session.is_locked():
            self._enforce_lock()
            return
        if self.pending:
            return
        roots = self._visible_roots()
        if frozenset(roots) != self._last_roots or session.is_active != bool(roots):
            self.request_rebuild("poll: root set changed")
            return
        if session.is_active and not session.focus_is_available():
            LOGGER.debug("Focused element no longer available; scheduling rebuild")
            session.graph.invalidate()
            self.request_rebuild("poll: focus lost")

    # Evaluation -------------------------------------------------------
    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            LOGGER.debug("Discarding stale rebuild callback (generation=%d current=%d)", generation, self._generation)
            return
        self._pending_handle = None
        self.evaluate()

    def evaluate(self) -> str:
        self.evaluations += 1
        outcome = self._evaluate()
        self.last_outcome = outcome
        LOGGER.debug("Rebuild evaluation finished: %s", outcome)
        return outcome

    def _evaluate(self) -> str:
        session = self._session
        graph = session.graph
        if session.is_locked():
            self._enforce_lock()
            return OUTCOME_LOCKED
        roots = self._visible_roots()
        self._last_roots = frozenset(roots)
        if not roots:
            if session.is_active:
                session.disable()
                return OUTCOME_TEARDOWN
            return OUTCOME_IDLE
        if not session.is_active:
            count = graph.count_navigable(roots) if graph.is_valid() else None
            return OUTCOME_STARTED if session.enable(roots, element_count=count) else OUTCOME_FAILED
        count = graph.count_navigable(roots)
        if self._guard.can_reuse(roots, count):
            return OUTCOME_REUSED
        previous = session.current_handle
        session.disable()
        graph.invalidate()
        if session.enable(roots, element_count=count, preferred_handle=previous):
            return OUTCOME_REBUILT
        return OUTCOME_FAILED

    def _visible_roots(self) -> List[Hashable]:
        try:
            return list(self._roots.visible_roots() or ())
        except Exception as exc:
            LOGGER.warning("Root provider failed: %s", exc)
            return []

    def _cancel(self, handle: object | None) -> None:
        if handle is None:
            return
        try:
            self._after_cancel(handle)
        except Exception:
            pass
