"""Boundaries to the host collaborators the navigation core consumes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional, Protocol, Sequence

from padnav_core.geometry import Rect

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]

# Logical controls acquired by a session, in acquisition order.
CONTROL_UP = "up"
CONTROL_DOWN = "down"
CONTROL_LEFT = "left"
CONTROL_RIGHT = "right"
CONTROL_PRIMARY = "primary"
CONTROL_SECONDARY = "secondary"
LOGICAL_CONTROLS = (
    CONTROL_UP,
    CONTROL_DOWN,
    CONTROL_LEFT,
    CONTROL_RIGHT,
    CONTROL_PRIMARY,
    CONTROL_SECONDARY,
)


@dataclass(frozen=True)
class DiscoveredElement:
    """One eligible element reported by the discovery adapter.

    ``handle`` is opaque to the core; ``clipping_ancestor`` and the capability flags
    are supplied by the adapter and never re-derived here.
    """

    handle: Hashable
    clipping_ancestor: Optional[Hashable] = None
    is_interactive: bool = True
    has_hover_behavior: bool = False


class ElementDiscovery(Protocol):
    def discover(self, roots: Sequence[Hashable]) -> Sequence[DiscoveredElement]: ...


class GeometryProvider(Protocol):
    def bounding_box(self, handle: Hashable) -> Optional[Rect]:
        """Return the current box, or ``None`` when geometry is unavailable."""
        ...


class InputDispatch(Protocol):
    def acquire_binding(self, control_id: str) -> Any: ...

    def bind(self, binding: Any, target: Any) -> None: ...

    def release(self, binding: Any) -> None: ...


class LockSignal(Protocol):
    def is_locked(self) -> bool: ...


class SharedOverlay(Protocol):
    def owner(self) -> Any: ...

    def hide(self) -> None: ...

    def show_for(self, handle: Hashable) -> None: ...


class CursorRenderer(Protocol):
    def apply(self, state: Any, style: Any, position: Optional[tuple[float, float]]) -> None: ...


class RootProvider(Protocol):
    def visible_roots(self) -> Sequence[Hashable]: ...
