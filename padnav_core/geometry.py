"""Rectangles, directions and sample points in the normalized navigation space.

All coordinates are host logical pixels with the origin at the top-left corner and
y growing downward, so ``Direction.DOWN`` points toward larger y values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

Point = Tuple[float, float]


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def vector(self) -> Point:
        return _UNIT_VECTORS[self]

    @property
    def label(self) -> str:
        """Capitalised form used in exported attribute names (``Up``, ``Down``...)."""

        return self.value.capitalize()


_UNIT_VECTORS = {
    Direction.UP: (0.0, -1.0),
    Direction.DOWN: (0.0, 1.0),
    Direction.LEFT: (-1.0, 0.0),
    Direction.RIGHT: (1.0, 0.0),
}


@dataclass(frozen=True)
class Rect:
    """Axis-aligned bounding box of an element."""

    x: float
    y: float
    w: float
    h: float

    @property
    def center(self) -> Point:
        return (self.x + self.w / 2.0, self.y + self.h / 2.0)

    def sample_points(self) -> Tuple[Point, ...]:
        """Return the centre, the four corners and the four edge midpoints."""

        left = self.x
        top = self.y
        right = self.x + self.w
        bottom = self.y + self.h
        cx, cy = self.center
        return (
            (cx, cy),
            (left, top),
            (right, top),
            (right, bottom),
            (left, bottom),
            (cx, top),
            (right, cy),
            (cx, bottom),
            (left, cy),
        )


def angle_offset_degrees(dx: float, dy: float, direction: Direction) -> float:
    """Angular deviation of the offset ``(dx, dy)`` from the direction axis."""

    ux, uy = direction.vector
    dot = dx * ux + dy * uy
    cross = abs(dx * uy - dy * ux)
    return math.degrees(math.atan2(cross, dot))


def weighted_score(distance: float, angle_degrees: float, penalty_degrees: float) -> float:
    return distance * (1.0 + angle_degrees / penalty_degrees)
