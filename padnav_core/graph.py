"""Navigation graph: an index arena of discovered elements plus lazy directional edges.

Indices are 1-based. The graph never holds element state beyond the opaque handle
and its index; geometry is always re-queried through the geometry provider.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Hashable, List, Optional, Sequence, Tuple

from padnav_core.errors import GeometryUnavailable
from padnav_core.geometry import Direction
from padnav_core.interfaces import DiscoveredElement, ElementDiscovery, GeometryProvider

LOGGER = logging.getLogger("PadNav.Core.Graph")

MISSING = object()


@dataclass(frozen=True)
class GraphSnapshot:
    """Reuse metadata recorded at the last successful build."""

    identities: FrozenSet[Hashable]
    count: int
    built_at: float


class NavigationGraph:
    """Builds and holds the indexed element set for one session."""

    def __init__(
        self,
        discovery: ElementDiscovery,
        geometry: GeometryProvider,
        *,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self._discovery = discovery
        self._geometry = geometry
        self._time = time_source
        self._elements: List[Hashable] = []
        self._index_of: Dict[Hashable, int] = {}
        self._edges: Dict[int, Dict[Direction, Optional[int]]] = {}
        self._dirty = False
        self._snapshot: Optional[GraphSnapshot] = None
        self.build_count = 0

    # Building ---------------------------------------------------------
    def build(self, roots: Sequence[Hashable]) -> bool:
        """Rebuild from the given roots; returns False when nothing is navigable."""

        self._clear()
        self.build_count += 1
        roots = list(roots or ())
        if not roots:
            LOGGER.debug("Graph build skipped: no root containers")
            return False
        candidates = self._discover(roots)
        skipped = 0
        for candidate in candidates:
            handle = candidate.handle
            if not candidate.is_interactive or handle in self._index_of:
                continue
            if self._box(handle) is None:
                skipped += 1
                continue
            self._elements.append(handle)
            self._index_of[handle] = len(self._elements)
        if not self._elements:
            LOGGER.debug(
                "Graph build found no navigable elements (%d candidates, %d without geometry)",
                len(candidates),
                skipped,
            )
            return False
        self._dirty = False
        self._snapshot = GraphSnapshot(
            identities=frozenset(roots),
            count=len(self._elements),
            built_at=self._time(),
        )
        LOGGER.debug(
            "Graph built: %d nodes from %d roots (%d candidates, %d skipped without geometry)",
            len(self._elements),
            len(roots),
            len(candidates),
            skipped,
        )
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug("Graph layout: %s", self.describe())
        return True

    def count_navigable(self, roots: Sequence[Hashable]) -> int:
        """Count what a build over ``roots`` would keep, without touching the graph."""

        seen = set()
        for candidate in self._discover(list(roots or ())):
            handle = candidate.handle
            if not candidate.is_interactive or handle in seen:
                continue
            if self._box(handle) is None:
                continue
            seen.add(handle)
        return len(seen)

    def invalidate(self) -> None:
        if self._elements:
            LOGGER.debug("Graph invalidated (had %d nodes)", len(self._elements))
        self._dirty = True
        self._edges.clear()

    def is_valid(self) -> bool:
        return bool(self._elements) and not self._dirty

    # Lookup -----------------------------------------------------------
    @property
    def snapshot(self) -> Optional[GraphSnapshot]:
        return self._snapshot

    @property
    def count(self) -> int:
        return len(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def handles(self) -> Tuple[Hashable, ...]:
        return tuple(self._elements)

    def indices(self) -> range:
        return range(1, len(self._elements) + 1)

    def contains(self, index: Optional[int]) -> bool:
        return isinstance(index, int) and 1 <= index <= len(self._elements)

    def index_of(self, handle: Hashable) -> Optional[int]:
        return self._index_of.get(handle)

    def handle_at(self, index: Optional[int]) -> Optional[Hashable]:
        if not self.contains(index):
            return None
        return self._elements[index - 1]  # type: ignore[operator]

    def first_index(self) -> Optional[int]:
        return 1 if self._elements else None

    def box_of(self, index: int):
        """Current bounding box of the element at ``index`` (``None`` if unavailable)."""

        handle = self.handle_at(index)
        if handle is None:
            return None
        return self._box(handle)

    # Edge cache -------------------------------------------------------
    def cached_neighbor(self, index: int, direction: Direction) -> Any:
        """Return the cached neighbour, or ``MISSING`` on a miss."""

        return self._edges.get(index, {}).get(direction, MISSING)

    def store_neighbor(self, index: int, direction: Direction, neighbor: Optional[int]) -> None:
        self._edges.setdefault(index, {})[direction] = neighbor

    def edge_count(self) -> int:
        return sum(1 for edges in self._edges.values() for neighbor in edges.values() if neighbor is not None)

    def validate(self) -> Tuple[bool, Optional[str]]:
        """Check that every cached edge points at an index present in the arena."""

        for index, edges in self._edges.items():
            if not self.contains(index):
                return False, f"Edge index {index} has no node"
            for direction, neighbor in edges.items():
                if neighbor is not None and not self.contains(neighbor):
                    return False, f"Edge {index}.{direction.value} points to invalid node {neighbor}"
        return True, None

    def describe(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        return {
            "nodes": len(self._elements),
            "valid": self.is_valid(),
            "edges": {
                str(index): {direction.value: neighbor for direction, neighbor in edges.items()}
                for index, edges in sorted(self._edges.items())
            },
            "snapshot": None
            if snapshot is None
            else {"roots": len(snapshot.identities), "count": snapshot.count, "built_at": snapshot.built_at},
        }

    # Internals --------------------------------------------------------
    def _clear(self) -> None:
        self._elements = []
        self._index_of = {}
        self._edges = {}
        self._dirty = False
        self._snapshot = None

    def _discover(self, roots: List[Hashable]) -> List[DiscoveredElement]:
        if not roots:
            return []
        try:
            return list(self._discovery.discover(roots) or ())
        except Exception as exc:
            LOGGER.warning("Element discovery failed for %d roots: %s", len(roots), exc)
            return []

    def _box(self, handle: Hashable):
        try:
            return self._geometry.bounding_box(handle)
        except GeometryUnavailable:
            return None
        except Exception as exc:
            LOGGER.debug("Geometry query failed for %r: %s", handle, exc)
            return None
