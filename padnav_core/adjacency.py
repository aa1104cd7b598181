"""Directional neighbour resolution over a navigation graph.

For a query ``(index, direction)`` the origin is the current centre of the focused
element. Every other element contributes nine sample points (centre, corners and
edge midpoints) so wide or tall elements are not judged by their centroid alone. A
point qualifies when its offset from the origin is non-zero and has a non-negative
dot product with the direction's unit vector; it then scores

    distance * (1 + angle_offset_degrees / penalty_degrees)

and the element owning the lowest-scoring point wins. Ties keep the first element
in graph order. Results, including "no neighbour", are cached in the graph until it
is invalidated.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional

from padnav_core import debug_config
from padnav_core.errors import StaleNeighborDetected
from padnav_core.geometry import Direction, angle_offset_degrees, weighted_score
from padnav_core.graph import MISSING, NavigationGraph

LOGGER = logging.getLogger("PadNav.Core.Adjacency")

DEFAULT_ANGLE_PENALTY_DEGREES = 15.0


class AdjacencyResolver:
    """Computes and caches the best neighbour of a node in a direction."""

    def __init__(self, graph: NavigationGraph, *, angle_penalty_degrees: float = DEFAULT_ANGLE_PENALTY_DEGREES) -> None:
        self._graph = graph
        self._penalty = max(1.0, float(angle_penalty_degrees))

    def neighbor_of(self, index: int, direction: Direction) -> Optional[int]:
        """Return the neighbour index or ``None``.

        Raises ``StaleNeighborDetected`` when the origin is not part of the graph or
        its geometry is no longer available, and when a cached edge references an
        index the graph does not hold (an ``AssertionError`` in dev mode).
        """

        graph = self._graph
        if not graph.contains(index):
            raise StaleNeighborDetected(index, direction, "origin not in graph")
        cached = graph.cached_neighbor(index, direction)
        if cached is not MISSING:
            if cached is not None and not graph.contains(cached):
                message = f"cached edge {index}.{direction.value} -> {cached} references a missing node"
                if debug_config.DEBUG_CONFIG_ENABLED:
                    raise AssertionError(message)
                raise StaleNeighborDetected(index, direction, message)
            return cached
        neighbor = self._compute(index, direction)
        graph.store_neighbor(index, direction, neighbor)
        return neighbor

    def export_edges(self, current_index: Optional[int] = None) -> Dict[str, Optional[int]]:
        """Resolve all four directions for every node and flatten them to attributes."""

        graph = self._graph
        attributes: Dict[str, Optional[int]] = {"navGraphNodeCount": graph.count}
        for index in graph.indices():
            for direction in Direction:
                try:
                    neighbor = self.neighbor_of(index, direction)
                except StaleNeighborDetected as exc:
                    LOGGER.debug("Skipping export of %d.%s: %s", index, direction.value, exc)
                    neighbor = None
                attributes[f"navGraphNode{index}{direction.label}"] = neighbor
        attributes["navGraphCurrentIndex"] = current_index if graph.contains(current_index) else graph.first_index()
        return attributes

    def _compute(self, index: int, direction: Direction) -> Optional[int]:
        graph = self._graph
        origin_box = graph.box_of(index)
        if origin_box is None:
            raise StaleNeighborDetected(index, direction, "origin geometry unavailable")
        ox, oy = origin_box.center
        ux, uy = direction.vector

        best_index: Optional[int] = None
        best_score = math.inf
        for candidate in graph.indices():
            if candidate == index:
                continue
            box = graph.box_of(candidate)
            if box is None:
                continue
            if box.center == (ox, oy):
                continue
            for px, py in box.sample_points():
                dx = px - ox
                dy = py - oy
                if dx == 0.0 and dy == 0.0:
                    continue
                if dx * ux + dy * uy < 0.0:
                    continue
                score = weighted_score(math.hypot(dx, dy), angle_offset_degrees(dx, dy, direction), self._penalty)
                if score < best_score:
                    best_score = score
                    best_index = candidate
        if best_index is not None:
            LOGGER.debug("Neighbour %d.%s -> %d (score=%.2f)", index, direction.value, best_index, best_score)
        return best_index
