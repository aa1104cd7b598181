from __future__ import annotations

from padnav_core.overlay_arbiter import GENERIC_OWNER, OverlayArbiter


class FakeOverlay:
    def __init__(self, owner=None) -> None:
        self.current_owner = owner
        self.visible = owner is not None
        self.hides = 0
        self.shown_for: list[object] = []

    def owner(self):
        return self.current_owner

    def hide(self) -> None:
        self.hides += 1
        self.visible = False
        self.current_owner = None

    def show_for(self, handle) -> None:
        self.shown_for.append(handle)
        self.current_owner = handle
        self.visible = True


def test_foreign_owner_is_left_alone() -> None:
    overlay = FakeOverlay(owner="X")
    arbiter = OverlayArbiter(overlay)
    arbiter.focus_changed("A", present=False)

    assert arbiter.release() is False
    assert overlay.visible is True
    assert overlay.hides == 0


def test_unset_generic_and_session_focus_owners_may_be_hidden() -> None:
    arbiter = OverlayArbiter(FakeOverlay())

    assert arbiter.may_hide(None)
    assert arbiter.may_hide(GENERIC_OWNER)
    assert not arbiter.may_hide("A")

    arbiter.focus_changed("A", present=False)
    assert arbiter.may_hide("A")
    assert not arbiter.may_hide("B")


def test_custom_generic_owner_token() -> None:
    window = object()
    overlay = FakeOverlay(owner=window)
    arbiter = OverlayArbiter(overlay, generic_owner=window)

    assert arbiter.release() is True
    assert overlay.hides == 1


def test_focus_change_hides_previous_tooltip_then_shows_new_one() -> None:
    overlay = FakeOverlay()
    arbiter = OverlayArbiter(overlay)

    arbiter.focus_changed("A")
    arbiter.focus_changed("B")

    assert overlay.shown_for == ["A", "B"]
    assert overlay.hides == 2
    assert arbiter.session_focus == "B"


def test_focus_change_does_not_steal_foreign_tooltip() -> None:
    overlay = FakeOverlay()
    arbiter = OverlayArbiter(overlay)
    arbiter.focus_changed("A")
    overlay.current_owner = "X"

    arbiter.focus_changed("B")

    assert overlay.current_owner == "X"
    assert overlay.hides == 1
    assert overlay.shown_for == ["A"]
    assert arbiter.session_focus == "B"


def test_clear_forgets_focus_and_tolerates_missing_overlay() -> None:
    overlay = FakeOverlay()
    arbiter = OverlayArbiter(overlay)
    arbiter.focus_changed("A")

    arbiter.clear()

    assert arbiter.session_focus is None
    assert overlay.visible is False

    bare = OverlayArbiter(None)
    bare.focus_changed("A")
    assert bare.release() is False


def test_overlay_failures_are_soft() -> None:
    class BrokenOverlay:
        def owner(self):
            raise RuntimeError("gone")

        def hide(self):
            raise RuntimeError("gone")

        def show_for(self, handle):
            raise RuntimeError("gone")

    arbiter = OverlayArbiter(BrokenOverlay())
    arbiter.focus_changed("A")

    assert arbiter.release() is False
    assert arbiter.session_focus == "A"
