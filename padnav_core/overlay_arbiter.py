"""Single arbitration point for hiding the shared overlay (tooltip)."""

from __future__ import annotations

import logging
from typing import Any, Hashable, Optional

from padnav_core.interfaces import SharedOverlay

LOGGER = logging.getLogger("PadNav.Core.Overlay")


class _GenericOwner:
    def __repr__(self) -> str:
        return "GENERIC_OWNER"


GENERIC_OWNER = _GenericOwner()


class OverlayArbiter:
    """Hides the shared overlay only when the navigator is entitled to.

    The overlay may be owned by another subsystem; it is only hidden when its owner is
    unset, the generic shared-owner token, or the element the session focused last.
    """

    def __init__(self, overlay: Optional[SharedOverlay], *, generic_owner: Any = GENERIC_OWNER) -> None:
        self._overlay = overlay
        self._generic_owner = generic_owner
        self._session_focus: Optional[Hashable] = None

    @property
    def session_focus(self) -> Optional[Hashable]:
        return self._session_focus

    def may_hide(self, owner: Any) -> bool:
        if owner is None:
            return True
        if owner is self._generic_owner or owner == self._generic_owner:
            return True
        return self._session_focus is not None and owner == self._session_focus

    def release(self) -> bool:
        """Hide the overlay if allowed; returns True when a hide was issued."""

        overlay = self._overlay
        if overlay is None:
            return False
        try:
            owner = overlay.owner()
        except Exception as exc:
            LOGGER.debug("Overlay owner query failed: %s", exc)
            return False
        if not self.may_hide(owner):
            LOGGER.debug("Overlay owned by %r; leaving it untouched", owner)
            return False
        try:
            overlay.hide()
        except Exception as exc:
            LOGGER.debug("Overlay hide failed: %s", exc)
            return False
        return True

    def focus_changed(self, handle: Optional[Hashable], *, present: bool = True) -> None:
        """Release the overlay held for the previous focus, then track ``handle``.

        The overlay is only presented for ``handle`` when it was free to take; a
        tooltip owned by another subsystem stays on screen.
        """

        free = self.release()
        self._session_focus = handle
        if handle is None or not present or not free:
            return
        try:
            self._overlay.show_for(handle)
        except Exception as exc:
            LOGGER.debug("Overlay show failed for %r: %s", handle, exc)

    def clear(self) -> None:
        """Teardown path: release the overlay and forget the session focus."""

        self.release()
        self._session_focus = None
