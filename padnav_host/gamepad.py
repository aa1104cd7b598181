"""Optional gamepad bridge that feeds an Xbox pad into the binding dispatcher."""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

try:
    import pygame
except Exception:  # pragma: no cover - optional dependency
    pygame = None  # type: ignore

LOGGER = logging.getLogger("PadNav.Host.Gamepad")

# Xbox-style mapping based on SDL/pygame defaults.
_BUTTON_INPUTS: Dict[int, str] = {
    0: "PAD1",  # A
    1: "PAD2",  # B
    2: "PAD3",  # X
    3: "PAD4",  # Y
    4: "PADLSHOULDER",
    5: "PADRSHOULDER",
}
_HAT_INPUTS: Dict[Tuple[int, int], str] = {
    (0, 1): "PADDUP",
    (0, -1): "PADDDOWN",
    (-1, 0): "PADDLEFT",
    (1, 0): "PADDRIGHT",
}
_SCROLL_AXIS = 3  # right stick, vertical
_SCROLL_THRESHOLD = 0.5
SCROLL_STEP = 20
SCROLL_REPEAT_SECONDS = 0.05

DispatchFn = Callable[[str, bool], bool]
ScrollFn = Callable[[bool, int], None]


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "off", "no", ""}


def _open_first_joystick() -> Optional[str]:
    """Initialise pygame's joystick module and return the first pad's name."""

    if pygame is None:
        LOGGER.info("No gamepad support: pygame is not installed")
        return None
    try:
        pygame.init()
        pygame.joystick.init()
        if pygame.joystick.get_count() == 0:
            LOGGER.info("No gamepad connected")
            return None
        device = pygame.joystick.Joystick(0)
        device.init()
        return str(device.get_name())
    except Exception as exc:
        LOGGER.warning("Gamepad initialisation failed: %s", exc)
        return None


class GamepadBridge:
    """Poll a pygame-backed gamepad and dispatch mapped inputs on the UI thread."""

    def __init__(
        self,
        dispatch: DispatchFn,
        *,
        post: Optional[Callable[[Callable[[], None]], None]] = None,
        on_scroll: Optional[ScrollFn] = None,
        enabled: bool | None = None,
        poll_interval: float = 0.02,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self._dispatch_input = dispatch
        self._post = post
        self._on_scroll = on_scroll
        self.poll_interval = poll_interval
        self._time = time_source
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._held_hat: Optional[str] = None
        self._scroll_direction = 0
        self._last_scroll_ts = 0.0
        self._enabled = enabled if enabled is not None else _env_flag("PADNAV_GAMEPAD", True)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Open the first joystick and start polling; False when no pad is usable."""

        if not self._enabled or self.running:
            return False
        device = _open_first_joystick()
        if device is None:
            return False
        LOGGER.info("Navigating with gamepad '%s'", device)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, name="padnav-gamepad", daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread.is_alive():
            thread.join(timeout=0.5)

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                for event in pygame.event.get():  # type: ignore[attr-defined]
                    self.handle_event(event)
                self.tick()
            except Exception as exc:
                LOGGER.warning("Gamepad polling stopped: %s", exc)
                return

    def handle_event(self, event: Any) -> None:
        etype = getattr(event, "type", None)
        if etype is None or pygame is None:
            return
        if etype == pygame.JOYBUTTONDOWN:  # type: ignore[attr-defined]
            self._handle_button(getattr(event, "button", -1), True)
        elif etype == pygame.JOYBUTTONUP:  # type: ignore[attr-defined]
            self._handle_button(getattr(event, "button", -1), False)
        elif etype == pygame.JOYHATMOTION:  # type: ignore[attr-defined]
            self._handle_hat(getattr(event, "value", (0, 0)))
        elif etype == pygame.JOYAXISMOTION:  # type: ignore[attr-defined]
            self._handle_axis(getattr(event, "axis", -1), getattr(event, "value", 0.0))

    def tick(self) -> None:
        """Repeat scroll steps while the stick stays deflected."""

        if self._scroll_direction == 0:
            return
        now = self._time()
        if now - self._last_scroll_ts >= SCROLL_REPEAT_SECONDS:
            self._last_scroll_ts = now
            self._emit_scroll(True, self._scroll_direction * SCROLL_STEP)

    def _handle_button(self, button: int, pressed: bool) -> None:
        name = _BUTTON_INPUTS.get(button)
        if name:
            self._dispatch(name, pressed)

    def _handle_hat(self, value: Tuple[int, int]) -> None:
        name = _HAT_INPUTS.get(tuple(value))  # type: ignore[arg-type]
        if self._held_hat and self._held_hat != name:
            self._dispatch(self._held_hat, False)
            self._held_hat = None
        if not name:
            return
        self._held_hat = name
        self._dispatch(name, True)

    def _handle_axis(self, axis: int, value: float) -> None:
        if axis != _SCROLL_AXIS:
            return
        if value <= -_SCROLL_THRESHOLD:
            direction = -1
        elif value >= _SCROLL_THRESHOLD:
            direction = 1
        else:
            direction = 0
        if direction == self._scroll_direction:
            return
        self._scroll_direction = direction
        if direction == 0:
            self._emit_scroll(False, 0)
            return
        self._last_scroll_ts = self._time()
        self._emit_scroll(True, direction * SCROLL_STEP)

    def _emit_scroll(self, active: bool, step: int) -> None:
        callback = self._on_scroll
        if callback is None:
            return
        self._post_call(lambda: callback(active, step))

    def _dispatch(self, name: str, pressed: bool) -> None:
        def _call() -> None:
            self._dispatch_input(name, pressed)

        self._post_call(_call)

    def _post_call(self, fn: Callable[[], None]) -> None:
        if self._post is None:
            fn()
            return
        try:
            self._post(fn)
        except Exception:
            fn()
