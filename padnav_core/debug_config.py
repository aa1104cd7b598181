"""Dev-mode switch for the navigation core."""

from __future__ import annotations

import os
from typing import Optional

DEV_MODE_ENV_VAR = "PADNAV_DEV_MODE"


def is_dev_build(value: Optional[str] = None) -> bool:
    raw = os.getenv(DEV_MODE_ENV_VAR) if value is None else value
    if raw is None:
        return False
    token = raw.strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return False


# Invariant violations raise AssertionError instead of degrading when enabled.
DEBUG_CONFIG_ENABLED = is_dev_build()
