"""Control schemes and the binding dispatcher that routes device inputs to targets."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from padnav_core.interfaces import CONTROL_SECONDARY

LOGGER = logging.getLogger("PadNav.Host.Bindings")

DEFAULT_CONFIG_PATH = Path(__file__).with_name("control_schemes.json")

# Default layout that can be extended by the user later on.
DEFAULT_CONFIG = {
    "active_scheme": "gamepad_default",
    "schemes": {
        "gamepad_default": {
            "device_type": "gamepad",
            "display_name": "Gamepad (default)",
            "bindings": {
                "up": ["PADDUP", "KEY_UP"],
                "down": ["PADDDOWN", "KEY_DOWN"],
                "left": ["PADDLEFT", "KEY_LEFT"],
                "right": ["PADDRIGHT", "KEY_RIGHT"],
                "primary": ["PAD1", "KEY_RETURN"],
                "secondary": ["PAD2", "KEY_BACKSPACE"],
            },
        }
    },
}


@dataclass
class ControlScheme:
    """Container for a set of bindings and some metadata."""

    name: str
    device_type: str
    display_name: str
    bindings: Dict[str, List[str]]


@dataclass
class BindingConfig:
    """Representation of the control scheme file contents."""

    schemes: Dict[str, ControlScheme]
    active_scheme: str
    source_path: Optional[Path] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], source_path: Optional[Path] = None) -> "BindingConfig":
        schemes = {
            name: ControlScheme(
                name=name,
                device_type=spec.get("device_type", "gamepad"),
                display_name=spec.get("display_name", name),
                bindings={
                    control: list(inputs or [])
                    for control, inputs in (spec.get("bindings") or {}).items()
                },
            )
            for name, spec in payload.get("schemes", {}).items()
        }

        active = payload.get("active_scheme")
        if active not in schemes:
            raise ValueError(f"Active scheme '{active}' is not defined in control scheme file {source_path}")

        return cls(schemes=schemes, active_scheme=active, source_path=source_path)

    @classmethod
    def default(cls) -> "BindingConfig":
        return cls.from_payload(DEFAULT_CONFIG)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "BindingConfig":
        """Load config from disk, creating the default file if missing."""

        path = path or DEFAULT_CONFIG_PATH
        if not path.exists():
            path.write_text(json.dumps(DEFAULT_CONFIG, indent=2))
        return cls.from_payload(json.loads(path.read_text()), source_path=path)

    def get_scheme(self, name: Optional[str] = None) -> ControlScheme:
        """Return the requested scheme or the currently active one."""

        scheme_name = name or self.active_scheme
        try:
            return self.schemes[scheme_name]
        except KeyError as exc:
            raise ValueError(f"Unknown control scheme '{scheme_name}'") from exc


@dataclass
class Binding:
    """A reserved control: the device inputs it listens to and what it is wired to."""

    control_id: str
    inputs: Tuple[str, ...]
    target: Any = field(default=None)


class BindingDispatcher:
    """Input dispatch collaborator for the navigation session.

    Direction controls are bound to callables and fire on press-down only. Click
    controls are bound to an element handle: press-down reports a pressed state and
    release performs the click through the click executor.
    """

    def __init__(
        self,
        config: BindingConfig,
        click_executor: Any,
        *,
        press_listener: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self.config = config
        self._click_executor = click_executor
        self._press_listener = press_listener
        self._held: Dict[str, Binding] = {}
        self._by_input: Dict[str, Binding] = {}

    def set_press_listener(self, listener: Optional[Callable[[bool], None]]) -> None:
        self._press_listener = listener

    def held_controls(self) -> List[str]:
        return list(self._held)

    def acquire_binding(self, control_id: str) -> Optional[Binding]:
        if control_id in self._held:
            LOGGER.warning("Control '%s' is already bound", control_id)
            return None
        scheme = self.config.get_scheme()
        inputs: List[str] = []
        for sequence in scheme.bindings.get(control_id, []):
            try:
                inputs.append(self._normalize_input(sequence))
            except ValueError as exc:
                LOGGER.warning("Skipping invalid binding %r for '%s': %s", sequence, control_id, exc)
        if not inputs:
            LOGGER.warning("Scheme '%s' has no inputs for control '%s'", scheme.name, control_id)
            return None
        binding = Binding(control_id=control_id, inputs=tuple(inputs))
        self._held[control_id] = binding
        for name in inputs:
            self._by_input[name] = binding
        return binding

    def bind(self, binding: Binding, target: Any) -> None:
        if self._held.get(binding.control_id) is not binding:
            raise ValueError(f"Binding for '{binding.control_id}' is not held")
        binding.target = target

    def release(self, binding: Binding) -> None:
        if self._held.get(binding.control_id) is not binding:
            return
        del self._held[binding.control_id]
        for name in binding.inputs:
            if self._by_input.get(name) is binding:
                del self._by_input[name]
        binding.target = None

    def dispatch(self, input_name: str, pressed: bool = True) -> bool:
        """Route a device input; returns True when a held binding consumed it."""

        try:
            key = self._normalize_input(input_name)
        except ValueError:
            return False
        binding = self._by_input.get(key)
        if binding is None or binding.target is None:
            return False
        target = binding.target
        if callable(target):
            if pressed:
                target()
            return True
        if pressed:
            self._notify_press(True)
            return True
        try:
            if binding.control_id == CONTROL_SECONDARY:
                self._click_executor.perform_secondary(target)
            else:
                self._click_executor.perform_primary(target)
        except Exception as exc:
            LOGGER.warning("Click on %r via '%s' failed: %s", target, binding.control_id, exc)
        finally:
            self._notify_press(False)
        return True

    def _notify_press(self, pressed: bool) -> None:
        if self._press_listener is None:
            return
        try:
            self._press_listener(pressed)
        except Exception as exc:
            LOGGER.debug("Press listener failed: %s", exc)

    @staticmethod
    def _normalize_input(sequence: str) -> str:
        name = str(sequence).strip().upper()
        if not name:
            raise ValueError("Binding input cannot be empty")
        return name
