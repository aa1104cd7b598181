from .adjacency import AdjacencyResolver
from .cursor import CursorState, CursorStyle, FocusCursor
from .errors import (
    BindingAcquisitionFailed,
    EmptyDiscoveryResult,
    GeometryUnavailable,
    LockAsserted,
    NavigationError,
    StaleNeighborDetected,
    TransitionRejected,
)
from .geometry import Direction, Rect
from .graph import GraphSnapshot, NavigationGraph
from .interfaces import LOGICAL_CONTROLS, DiscoveredElement
from .nav_config import NavigationSettings, load_settings
from .overlay_arbiter import GENERIC_OWNER, OverlayArbiter
from .rebuild_scheduler import RebuildScheduler
from .reuse_guard import CacheReuseGuard
from .session import NavigationSession, SessionStatus

__all__ = [
    "AdjacencyResolver",
    "BindingAcquisitionFailed",
    "CacheReuseGuard",
    "CursorState",
    "CursorStyle",
    "Direction",
    "DiscoveredElement",
    "EmptyDiscoveryResult",
    "FocusCursor",
    "GENERIC_OWNER",
    "GeometryUnavailable",
    "GraphSnapshot",
    "LOGICAL_CONTROLS",
    "LockAsserted",
    "NavigationError",
    "NavigationGraph",
    "NavigationSession",
    "NavigationSettings",
    "OverlayArbiter",
    "RebuildScheduler",
    "Rect",
    "SessionStatus",
    "StaleNeighborDetected",
    "TransitionRejected",
    "load_settings",
]
