"""Runtime tuning for the navigation core."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

LOGGER = logging.getLogger("PadNav.Core.Config")

DEFAULT_SETTINGS_FILENAME = "padnav_settings.json"

_ENV_OVERRIDES = {
    "PADNAV_DEBOUNCE_MS": "debounce_ms",
    "PADNAV_POLL_INTERVAL_MS": "poll_interval_ms",
    "PADNAV_STALENESS_SECONDS": "staleness_seconds",
}


@dataclass(frozen=True)
class NavigationSettings:
    debounce_ms: int = 100
    poll_interval_ms: int = 1000
    staleness_seconds: float = 30.0
    angle_penalty_degrees: float = 15.0
    max_correction_hops: int = 3
    pointer_size: int = 32
    pressed_size: int = 38
    allowed_roots: Tuple[str, ...] = ()


def _coerce_int(raw: object, fallback: int, *, minimum: int) -> int:
    try:
        value = int(raw)  # type: ignore[call-overload]
    except Exception:
        value = fallback
    return max(minimum, value)


def _coerce_float(raw: object, fallback: float, *, minimum: float) -> float:
    try:
        value = float(raw)  # type: ignore[arg-type]
    except Exception:
        value = fallback
    return max(minimum, value)


def _coerce_poll(raw: object, fallback: int) -> int:
    value = _coerce_int(raw, fallback, minimum=0)
    if value == 0:
        return 0
    return max(100, value)


def _coerce_names(raw: object, fallback: Tuple[str, ...]) -> Tuple[str, ...]:
    if raw is None:
        return fallback
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, (list, tuple)):
        return fallback
    return tuple(str(name).strip() for name in raw if str(name).strip())


def settings_from_mapping(data: Mapping[str, Any], base: Optional[NavigationSettings] = None) -> NavigationSettings:
    base = base or NavigationSettings()
    return NavigationSettings(
        debounce_ms=_coerce_int(data.get("debounce_ms", base.debounce_ms), base.debounce_ms, minimum=10),
        poll_interval_ms=_coerce_poll(data.get("poll_interval_ms", base.poll_interval_ms), base.poll_interval_ms),
        staleness_seconds=_coerce_float(
            data.get("staleness_seconds", base.staleness_seconds), base.staleness_seconds, minimum=0.1
        ),
        angle_penalty_degrees=_coerce_float(
            data.get("angle_penalty_degrees", base.angle_penalty_degrees), base.angle_penalty_degrees, minimum=1.0
        ),
        max_correction_hops=_coerce_int(
            data.get("max_correction_hops", base.max_correction_hops), base.max_correction_hops, minimum=1
        ),
        pointer_size=_coerce_int(data.get("pointer_size", base.pointer_size), base.pointer_size, minimum=1),
        pressed_size=_coerce_int(data.get("pressed_size", base.pressed_size), base.pressed_size, minimum=1),
        allowed_roots=_coerce_names(data.get("allowed_roots"), base.allowed_roots),
    )


def apply_env_overrides(settings: NavigationSettings, env: Optional[Mapping[str, str]] = None) -> NavigationSettings:
    env = os.environ if env is None else env
    overrides = {field: env[key] for key, field in _ENV_OVERRIDES.items() if key in env}
    if not overrides:
        return settings
    LOGGER.debug("Applying env overrides: %s", ", ".join(f"{k}={v}" for k, v in sorted(overrides.items())))
    merged = settings_from_mapping(overrides, base=settings)
    return replace(
        settings,
        debounce_ms=merged.debounce_ms,
        poll_interval_ms=merged.poll_interval_ms,
        staleness_seconds=merged.staleness_seconds,
    )


def load_settings(path: Optional[Path] = None, *, env: Optional[Mapping[str, str]] = None) -> NavigationSettings:
    """Load settings JSON, returning defaults on a missing or malformed file."""

    data: Mapping[str, Any] = {}
    if path is not None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raw = {}
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable settings file %s: %s", path, exc)
            raw = {}
        if isinstance(raw, dict):
            data = raw
    return apply_env_overrides(settings_from_mapping(data), env)
