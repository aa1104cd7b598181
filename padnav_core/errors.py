"""Failure taxonomy used inside the navigation core.

These exceptions unwind internal work; the public entry points catch them and
degrade to "no navigation" instead of letting them reach host callbacks.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class NavigationError(Exception):
    """Base class for all navigation-core failures."""


class GeometryUnavailable(NavigationError):
    def __init__(self, handle: Any) -> None:
        super().__init__(f"Geometry unavailable for {handle!r}")
        self.handle = handle


class EmptyDiscoveryResult(NavigationError):
    """No navigable elements under the requested roots."""


class BindingAcquisitionFailed(NavigationError):
    def __init__(self, control_id: str, reason: Optional[str] = None) -> None:
        message = f"Could not acquire binding for control '{control_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.control_id = control_id


class LockAsserted(NavigationError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Exclusive lock asserted; rejected {operation}")
        self.operation = operation


class StaleNeighborDetected(NavigationError):
    def __init__(self, index: Optional[int], direction: Any = None, reason: str = "") -> None:
        details = f"index={index} direction={getattr(direction, 'value', direction)}"
        if reason:
            details = f"{details} ({reason})"
        super().__init__(f"Stale navigation data: {details}")
        self.index = index
        self.direction = direction


class TransitionRejected(NavigationError):
    def __init__(self, current: Any, target: Any, path: Sequence[Any] = ()) -> None:
        super().__init__(f"Cursor transition {current} -> {target} exceeded the correction guard")
        self.current = current
        self.target = target
        self.path = tuple(path)
