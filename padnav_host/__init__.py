from .app_context import NavigatorContext, build_navigator
from .gamepad import GamepadBridge
from .input_bindings import Binding, BindingConfig, BindingDispatcher, ControlScheme

__all__ = [
    "Binding",
    "BindingConfig",
    "BindingDispatcher",
    "ControlScheme",
    "GamepadBridge",
    "NavigatorContext",
    "build_navigator",
]
