from __future__ import annotations

import logging
import time
from typing import Callable, Hashable, Iterable, Optional

from padnav_core.graph import NavigationGraph

LOGGER = logging.getLogger("PadNav.Core.ReuseGuard")

DEFAULT_STALENESS_SECONDS = 30.0


class CacheReuseGuard:
    """Decides whether the existing graph can serve a request without a rebuild."""

    def __init__(
        self,
        graph: NavigationGraph,
        *,
        staleness_seconds: float = DEFAULT_STALENESS_SECONDS,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self._graph = graph
        self.staleness_seconds = max(0.0, float(staleness_seconds))
        self._time = time_source
        self.last_reason: Optional[str] = None

    def can_reuse(self, identities: Iterable[Hashable], count: int) -> bool:
        reason = self._rejection_reason(frozenset(identities), count)
        self.last_reason = reason
        if reason is None:
            LOGGER.debug("Reusing navigation graph (%d nodes)", count)
            return True
        LOGGER.debug("Graph reuse rejected: %s", reason)
        return False

    def _rejection_reason(self, identities: frozenset, count: int) -> Optional[str]:
        graph = self._graph
        snapshot = graph.snapshot
        if not graph.is_valid() or snapshot is None:
            return "graph not valid"
        if len(identities) != len(snapshot.identities):
            return f"identity set size {len(identities)} != {len(snapshot.identities)}"
        if not identities.issubset(snapshot.identities):
            return "identity set changed"
        if count != snapshot.count:
            return f"element count {count} != {snapshot.count}"
        age = self._time() - snapshot.built_at
        if age >= self.staleness_seconds:
            return f"graph age {age:.1f}s >= {self.staleness_seconds:.1f}s"
        return None
