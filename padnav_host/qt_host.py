"""PyQt6 adapters for the navigation core.

Each class implements one host-collaborator boundary from ``padnav_core.interfaces``
on top of live Qt widgets. Element handles are the ``QWidget`` objects themselves.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from PyQt6.QtCore import QEvent, QObject, QPoint, QRect, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QColor, QContextMenuEvent, QPainter, QPainterPath, QPen
from PyQt6.QtWidgets import QAbstractButton, QAbstractScrollArea, QApplication, QToolTip, QWidget

from padnav_core.cursor import CursorState, CursorStyle
from padnav_core.geometry import Rect
from padnav_core.interfaces import DiscoveredElement
from padnav_core.overlay_arbiter import GENERIC_OWNER

LOGGER = logging.getLogger("PadNav.Host.Qt")

SCROLL_STEP = 20


class QtTimers:
    """``after``/``after_cancel`` pair backed by single-shot ``QTimer`` objects."""

    def __init__(self) -> None:
        self._timers: Set[QTimer] = set()

    def after(self, ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer()
        timer.setSingleShot(True)

        def _fire() -> None:
            self._timers.discard(timer)
            callback()

        timer.timeout.connect(_fire)
        self._timers.add(timer)
        timer.start(max(0, int(ms)))
        return timer

    def after_cancel(self, handle: object) -> None:
        if isinstance(handle, QTimer):
            handle.stop()
            self._timers.discard(handle)

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            timer.stop()
        self._timers.clear()


class QtInvoker(QObject):
    """Marshal callables from worker threads (gamepad) onto the Qt main thread."""

    invoke = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def post(self, fn: Callable[[], None]) -> None:
        self.invoke.emit(fn)

    def _run(self, fn: object) -> None:
        if callable(fn):
            fn()


def _clipping_ancestor(widget: QWidget) -> Optional[QWidget]:
    parent = widget.parentWidget()
    while parent is not None:
        if isinstance(parent, QAbstractScrollArea):
            return parent
        parent = parent.parentWidget()
    return None


class QtElementDiscovery:
    """Report enabled, visible buttons under each root container in creation order."""

    def discover(self, roots: Sequence[QWidget]) -> List[DiscoveredElement]:
        found: List[DiscoveredElement] = []
        for root in roots:
            for widget in root.findChildren(QAbstractButton):
                if not widget.isVisible():
                    continue
                found.append(
                    DiscoveredElement(
                        handle=widget,
                        clipping_ancestor=_clipping_ancestor(widget),
                        is_interactive=widget.isEnabled(),
                        has_hover_behavior=bool(widget.toolTip()),
                    )
                )
        return found


class QtGeometry:
    """Global-coordinate bounding boxes; ``None`` once a widget is hidden or clipped away."""

    def bounding_box(self, handle: QWidget) -> Optional[Rect]:
        if not handle.isVisible() or handle.visibleRegion().isEmpty():
            return None
        visible: QRect = handle.visibleRegion().boundingRect()
        top_left = handle.mapToGlobal(visible.topLeft())
        return Rect(float(top_left.x()), float(top_left.y()), float(visible.width()), float(visible.height()))


class QtClickExecutor:
    def perform_primary(self, widget: QWidget) -> None:
        if isinstance(widget, QAbstractButton):
            widget.click()
            return
        LOGGER.debug("Primary click ignored for non-button %r", widget)

    def perform_secondary(self, widget: QWidget) -> None:
        center = widget.rect().center()
        if widget.contextMenuPolicy() == Qt.ContextMenuPolicy.CustomContextMenu:
            widget.customContextMenuRequested.emit(center)
            return
        event = QContextMenuEvent(QContextMenuEvent.Reason.Keyboard, center, widget.mapToGlobal(center))
        QApplication.sendEvent(widget, event)

    def scroll(self, widget: Optional[QWidget], step: int = SCROLL_STEP) -> bool:
        if widget is None:
            return False
        area = _clipping_ancestor(widget)
        if area is None:
            return False
        bar = area.verticalScrollBar()
        bar.setValue(bar.value() + int(step))
        return True


class QtTooltipOverlay:
    """The shared tooltip, with the owner it was last shown for."""

    def __init__(self) -> None:
        self._owner: object | None = None

    def owner(self) -> object | None:
        if not QToolTip.isVisible():
            self._owner = None
        return self._owner

    def hide(self) -> None:
        QToolTip.hideText()
        self._owner = None

    def show_for(self, handle: QWidget) -> None:
        text = handle.toolTip()
        if not text:
            return
        anchor = handle.mapToGlobal(QPoint(0, handle.height()))
        QToolTip.showText(anchor, text, handle)
        self._owner = handle

    def show_text(self, text: str, pos: QPoint, owner: object = GENERIC_OWNER) -> None:
        """Show a tooltip on behalf of another subsystem."""

        QToolTip.showText(pos, text)
        self._owner = owner


_CURSOR_COLOURS: Dict[CursorState, Tuple[int, int, int]] = {
    CursorState.POINTING: (250, 250, 250),
    CursorState.PRESSING: (255, 196, 64),
    CursorState.SCROLLING: (120, 200, 255),
}


class QtCursorWidget(QWidget):
    """Frameless, click-through pointer drawn over the host UI."""

    def __init__(self) -> None:
        super().__init__(
            None,
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
            | Qt.WindowType.WindowTransparentForInput,
        )
        self.setObjectName("PadNavCursor")
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating)
        self._state = CursorState.HIDDEN

    def apply(self, state: CursorState, style: CursorStyle, position: Optional[Tuple[float, float]]) -> None:
        self._state = state
        if style.icon is None or position is None or style.size <= 0:
            self.hide()
            return
        self.resize(style.size, style.size)
        self.move(int(round(position[0])), int(round(position[1])))
        self.show()
        self.raise_()
        self.update()

    def paintEvent(self, _event) -> None:  # noqa: N802 - Qt override
        colour = _CURSOR_COLOURS.get(self._state)
        if colour is None:
            return
        size = float(min(self.width(), self.height()))
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(QPen(QColor(20, 20, 20), 2))
        painter.setBrush(QColor(*colour))
        path = QPainterPath()
        path.moveTo(1.0, 1.0)
        path.lineTo(size * 0.85, size * 0.45)
        path.lineTo(size * 0.45, size * 0.55)
        path.lineTo(size * 0.3, size * 0.95)
        path.closeSubpath()
        painter.drawPath(path)
        if self._state is CursorState.SCROLLING:
            painter.drawLine(int(size * 0.75), int(size * 0.6), int(size * 0.75), int(size - 2))
        painter.end()


class ExclusiveLock(QObject):
    """Host-side exclusive lock; mutating navigation calls are refused while set."""

    locked = pyqtSignal()
    released = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._locked = False

    def is_locked(self) -> bool:
        return self._locked

    def set_locked(self, value: bool) -> None:
        value = bool(value)
        if value == self._locked:
            return
        self._locked = value
        LOGGER.debug("Exclusive lock %s", "asserted" if value else "released")
        if value:
            self.locked.emit()
        else:
            self.released.emit()


def _is_ignored_window(widget: QWidget, excluded: Iterable[QWidget]) -> bool:
    window = widget.window()
    if window.windowType() == Qt.WindowType.ToolTip:
        return True
    return any(window is other for other in excluded)


class QtRootProvider:
    """Visible top-level containers (optionally restricted to named containers)."""

    def __init__(self, allowed_names: Iterable[str] = (), *, excluded: Iterable[QWidget] = ()) -> None:
        self._allowed = frozenset(allowed_names)
        self._excluded = list(excluded)

    def exclude(self, widget: QWidget) -> None:
        self._excluded.append(widget)

    def visible_roots(self) -> List[QWidget]:
        roots: List[QWidget] = []
        for window in QApplication.topLevelWidgets():
            if _is_ignored_window(window, self._excluded):
                continue
            if not self._allowed:
                candidates = [window]
            else:
                candidates = [window] if window.objectName() in self._allowed else []
                candidates.extend(
                    child for child in window.findChildren(QWidget) if child.objectName() in self._allowed
                )
            for candidate in candidates:
                if candidate.isVisible() and candidate.window().windowOpacity() > 0.0:
                    roots.append(candidate)
        return roots


_ROOT_EVENTS = {QEvent.Type.Show, QEvent.Type.Hide}
_CONTENT_EVENTS = {QEvent.Type.ChildAdded, QEvent.Type.ChildRemoved, QEvent.Type.EnabledChange}


class QtChangeNotifier(QObject):
    """Application-wide event filter that turns widget churn into rebuild requests."""

    def __init__(
        self,
        on_roots_changed: Callable[[], None],
        on_content_changed: Callable[[], None],
        *,
        excluded: Iterable[QWidget] = (),
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._on_roots_changed = on_roots_changed
        self._on_content_changed = on_content_changed
        self._excluded = list(excluded)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        etype = event.type()
        if etype not in _ROOT_EVENTS and etype not in _CONTENT_EVENTS:
            return False
        if not isinstance(obj, QWidget) or _is_ignored_window(obj, self._excluded):
            return False
        if etype in (QEvent.Type.ChildAdded, QEvent.Type.ChildRemoved):
            child = event.child()
            if child is None or not child.isWidgetType():
                return False
        if etype in _ROOT_EVENTS and obj.isWindow():
            self._on_roots_changed()
        else:
            self._on_content_changed()
        return False


_KEY_INPUTS: Dict[int, str] = {
    Qt.Key.Key_Up.value: "KEY_UP",
    Qt.Key.Key_Down.value: "KEY_DOWN",
    Qt.Key.Key_Left.value: "KEY_LEFT",
    Qt.Key.Key_Right.value: "KEY_RIGHT",
    Qt.Key.Key_Return.value: "KEY_RETURN",
    Qt.Key.Key_Enter.value: "KEY_RETURN",
    Qt.Key.Key_Backspace.value: "KEY_BACKSPACE",
}


class QtKeyForwarder(QObject):
    """Forward keyboard inputs to the dispatcher; consumed keys never reach the host."""

    def __init__(self, dispatch: Callable[[str, bool], bool], parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._dispatch = dispatch

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        etype = event.type()
        if etype not in (QEvent.Type.KeyPress, QEvent.Type.KeyRelease):
            return False
        if event.isAutoRepeat():
            return False
        name = _KEY_INPUTS.get(int(event.key()))
        if name is None:
            return False
        return self._dispatch(name, etype == QEvent.Type.KeyPress)
