"""Focus cursor state machine.

Requests outside the transition table are corrected by hopping through Pointing,
bounded by a depth guard. The renderer is called once per accepted request with the
final state, never for the intermediate hops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from padnav_core.errors import TransitionRejected
from padnav_core.geometry import Rect
from padnav_core.interfaces import CursorRenderer

LOGGER = logging.getLogger("PadNav.Core.Cursor")

# Pointer tip is drawn at the top-left of the icon; shift so it lands on the centre.
POINTER_OFFSET = (-8.0, 8.0)


class CursorState(Enum):
    HIDDEN = "hidden"
    POINTING = "pointing"
    PRESSING = "pressing"
    SCROLLING = "scrolling"


@dataclass(frozen=True)
class CursorStyle:
    icon: Optional[str]
    size: int


DEFAULT_TRANSITIONS: Mapping[CursorState, FrozenSet[CursorState]] = {
    CursorState.HIDDEN: frozenset({CursorState.POINTING}),
    CursorState.POINTING: frozenset({CursorState.PRESSING, CursorState.SCROLLING, CursorState.HIDDEN}),
    CursorState.PRESSING: frozenset({CursorState.POINTING, CursorState.HIDDEN}),
    CursorState.SCROLLING: frozenset({CursorState.POINTING, CursorState.HIDDEN}),
}


class FocusCursor:
    def __init__(
        self,
        renderer: Optional[CursorRenderer] = None,
        *,
        pointer_size: int = 32,
        pressed_size: int = 38,
        max_hops: int = 3,
        transitions: Optional[Mapping[CursorState, FrozenSet[CursorState]]] = None,
    ) -> None:
        self._renderer = renderer
        self._transitions = dict(transitions or DEFAULT_TRANSITIONS)
        self._max_hops = max(1, int(max_hops))
        self._styles: Dict[CursorState, CursorStyle] = {
            CursorState.HIDDEN: CursorStyle(icon=None, size=0),
            CursorState.POINTING: CursorStyle(icon="point", size=pointer_size),
            CursorState.PRESSING: CursorStyle(icon="interact", size=pressed_size),
            CursorState.SCROLLING: CursorStyle(icon="scroll", size=pointer_size),
        }
        self._state = CursorState.HIDDEN
        self._position: Optional[Tuple[float, float]] = None
        self.visual_updates = 0
        self.last_path: Tuple[CursorState, ...] = ()

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        return self._position

    def style_for(self, state: CursorState) -> CursorStyle:
        return self._styles[state]

    def request(self, target: CursorState, *, position: Optional[Tuple[float, float]] = None) -> bool:
        """Move to ``target``; returns False only when the correction guard trips."""

        if target is CursorState.HIDDEN:
            position = None
        elif position is None:
            position = self._position
        if target is self._state and position == self._position:
            self.last_path = ()
            return True
        try:
            path = self._plan(self._state, target, 0)
        except TransitionRejected as exc:
            LOGGER.warning("%s; cursor frozen in %s", exc, self._state.value)
            self.last_path = ()
            return False
        if len(path) > 1:
            LOGGER.debug(
                "Cursor transition %s -> %s corrected via %s",
                self._state.value,
                target.value,
                " -> ".join(state.value for state in path),
            )
        self._state = target
        self._position = position
        self.last_path = tuple(path)
        self._apply_visual()
        return True

    def point_at(self, box: Optional[Rect]) -> bool:
        if box is None:
            return self.request(CursorState.POINTING)
        cx, cy = box.center
        return self.request(CursorState.POINTING, position=(cx + POINTER_OFFSET[0], cy + POINTER_OFFSET[1]))

    def set_pressed(self, pressed: bool) -> bool:
        if self._state is CursorState.HIDDEN:
            return False
        return self.request(CursorState.PRESSING if pressed else CursorState.POINTING)

    def set_scrolling(self, scrolling: bool) -> bool:
        if self._state is CursorState.HIDDEN:
            return False
        return self.request(CursorState.SCROLLING if scrolling else CursorState.POINTING)

    def hide(self) -> bool:
        return self.request(CursorState.HIDDEN)

    def _plan(self, current: CursorState, target: CursorState, depth: int) -> List[CursorState]:
        if current is target:
            return []
        if target in self._transitions.get(current, frozenset()):
            return [target]
        if depth >= self._max_hops:
            raise TransitionRejected(current, target)
        return self._plan(current, CursorState.POINTING, depth + 1) + self._plan(
            CursorState.POINTING, target, depth + 1
        )

    def _apply_visual(self) -> None:
        self.visual_updates += 1
        if self._renderer is None:
            return
        try:
            self._renderer.apply(self._state, self._styles[self._state], self._position)
        except Exception as exc:
            LOGGER.debug("Cursor renderer failed for %s: %s", self._state.value, exc)
