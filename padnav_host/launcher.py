from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QApplication,
    QGridLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from padnav_core.debug_config import DEBUG_CONFIG_ENABLED, DEV_MODE_ENV_VAR
from padnav_core.logging_utils import configure_logging
from padnav_core.nav_config import DEFAULT_SETTINGS_FILENAME, NavigationSettings, load_settings
from padnav_host.app_context import NavigatorContext, build_navigator
from padnav_host.gamepad import GamepadBridge
from padnav_host.input_bindings import BindingConfig, BindingDispatcher
from padnav_host.qt_host import (
    ExclusiveLock,
    QtChangeNotifier,
    QtClickExecutor,
    QtCursorWidget,
    QtElementDiscovery,
    QtGeometry,
    QtInvoker,
    QtKeyForwarder,
    QtRootProvider,
    QtTimers,
    QtTooltipOverlay,
)

LOGGER = logging.getLogger("PadNav.Host.Launcher")

DEMO_ROOT_NAME = "PadNavDemo"


@dataclass
class QtNavigator:
    context: NavigatorContext
    timers: QtTimers
    lock: ExclusiveLock
    cursor_widget: QtCursorWidget
    notifier: QtChangeNotifier
    key_forwarder: QtKeyForwarder
    invoker: QtInvoker


def build_qt_navigator(
    app: QApplication,
    settings: NavigationSettings,
    binding_config: BindingConfig,
) -> QtNavigator:
    """Create the Qt adapters, wire them into a navigator and hook them into ``app``."""

    timers = QtTimers()
    lock = ExclusiveLock()
    cursor_widget = QtCursorWidget()
    clicks = QtClickExecutor()
    dispatcher = BindingDispatcher(binding_config, clicks)
    roots = QtRootProvider(settings.allowed_roots, excluded=[cursor_widget])
    context = build_navigator(
        settings,
        discovery=QtElementDiscovery(),
        geometry=QtGeometry(),
        dispatcher=dispatcher,
        lock=lock,
        roots=roots,
        after=timers.after,
        after_cancel=timers.after_cancel,
        overlay=QtTooltipOverlay(),
        renderer=cursor_widget,
        scroller=clicks.scroll,
    )
    scheduler = context.scheduler
    lock.locked.connect(scheduler.on_lock_asserted)
    lock.released.connect(scheduler.on_lock_released)
    notifier = QtChangeNotifier(
        scheduler.on_root_visibility_changed,
        scheduler.on_content_changed,
        excluded=[cursor_widget],
    )
    key_forwarder = QtKeyForwarder(dispatcher.dispatch)
    app.installEventFilter(notifier)
    app.installEventFilter(key_forwarder)
    return QtNavigator(
        context=context,
        timers=timers,
        lock=lock,
        cursor_widget=cursor_widget,
        notifier=notifier,
        key_forwarder=key_forwarder,
        invoker=QtInvoker(),
    )


def _build_demo_window(rows: int, cols: int) -> QWidget:
    window = QWidget()
    window.setObjectName(DEMO_ROOT_NAME)
    window.setWindowTitle("PadNav demo")
    status = QLabel("D-pad/arrows move, A/Return clicks, B/Backspace removes a button")

    grid_host = QWidget()
    grid = QGridLayout(grid_host)
    for row in range(rows):
        for col in range(cols):
            button = QPushButton(f"{row + 1},{col + 1}")
            button.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            button.setToolTip(f"Button at row {row + 1}, column {col + 1}")
            button.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
            button.clicked.connect(lambda _checked=False, b=button: status.setText(f"Clicked {b.text()}"))
            button.customContextMenuRequested.connect(lambda _pos, b=button: b.deleteLater())
            grid.addWidget(button, row, col)

    scroll = QScrollArea()
    scroll.setWidget(grid_host)
    scroll.setWidgetResizable(True)

    layout = QVBoxLayout(window)
    layout.addWidget(status)
    layout.addWidget(scroll)
    window.resize(120 * min(cols, 6) + 40, 60 * min(rows, 8) + 60)
    return window


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="PadNav gamepad navigation demo")
    parser.add_argument("--rows", type=int, default=4, help="Number of button rows")
    parser.add_argument("--cols", type=int, default=4, help="Number of button columns")
    parser.add_argument("--settings", help=f"Path to {DEFAULT_SETTINGS_FILENAME}")
    parser.add_argument("--bindings", help="Path to a control scheme JSON file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-gamepad", action="store_true", help="Do not poll a gamepad")
    parser.add_argument("--dump-edges", action="store_true", help="Log the neighbour table on exit")
    args = parser.parse_args(argv)

    configure_logging(args.debug or DEBUG_CONFIG_ENABLED)
    if not DEBUG_CONFIG_ENABLED:
        LOGGER.debug("Dev-mode assertions off. Export %s=1 to enable them.", DEV_MODE_ENV_VAR)
    settings_path = Path(args.settings).expanduser() if args.settings else Path.cwd() / DEFAULT_SETTINGS_FILENAME
    settings = load_settings(settings_path)
    binding_config = BindingConfig.load(Path(args.bindings).expanduser()) if args.bindings else BindingConfig.default()
    LOGGER.info("Starting PadNav demo (pid=%s)", os.getpid())
    LOGGER.debug(
        "Loaded settings from %s: debounce=%dms poll=%dms staleness=%.1fs roots=%s",
        settings_path,
        settings.debounce_ms,
        settings.poll_interval_ms,
        settings.staleness_seconds,
        ",".join(settings.allowed_roots) or "*",
    )

    app = QApplication(sys.argv)
    navigator = build_qt_navigator(app, settings, binding_config)
    context = navigator.context
    window = _build_demo_window(max(1, args.rows), max(1, args.cols))

    bridge = GamepadBridge(
        context.dispatcher.dispatch,
        post=navigator.invoker.post,
        on_scroll=context.handle_scroll,
        enabled=False if args.no_gamepad else None,
    )

    window.show()
    context.start()
    bridge.start()

    exit_code = app.exec()
    bridge.stop()
    if args.dump_edges:
        LOGGER.info("Navigation edges: %s", context.export_edges())
    context.shutdown()
    navigator.timers.cancel_all()
    LOGGER.info("PadNav demo exiting with code %s", exit_code)
    return int(exit_code)


if __name__ == "__main__":
    sys.exit(main())
