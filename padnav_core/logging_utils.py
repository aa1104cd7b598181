from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional

LOG_DIR_ENV_VAR = "PADNAV_LOG_DIR"
LOGGER_NAME = "PadNav"
LOG_FILENAME = "padnav.log"
_HANDLER_ATTR = "_padnav_file_handler"


def _log_dir_candidates(base_path: Path) -> Iterator[Path]:
    override = os.environ.get(LOG_DIR_ENV_VAR, "").strip()
    if override:
        path = Path(override).expanduser()
        yield path if path.is_absolute() else base_path.resolve() / path
    for env_name, default in (
        ("XDG_STATE_HOME", Path.home() / ".local" / "state"),
        ("XDG_CACHE_HOME", Path.home() / ".cache"),
    ):
        yield Path(os.environ.get(env_name) or default) / "padnav" / "logs"
    yield Path.cwd() / "logs"


def resolve_logs_dir(base_path: Path, log_dir_name: str = "PadNav") -> Path:
    """
    Return the first writable log directory.

    Order: ``PADNAV_LOG_DIR`` (relative values are anchored at ``base_path``), the XDG
    state and cache homes, ``./logs``, and finally the system temp dir.
    """
    for root in _log_dir_candidates(base_path):
        target = root / log_dir_name
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError:
            continue
        return target
    fallback = Path(tempfile.gettempdir()) / "padnav" / log_dir_name
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Rotating handler keeping ``retention`` files in total (the live log included)."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max(1024, int(max_bytes)),
        backupCount=max(1, int(retention)) - 1,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_logging(debug_enabled: bool, *, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach the rotating file handler to the package logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(debug_enabled))
    logger.propagate = os.getenv("PADNAV_PROPAGATE_LOGS", "").strip().lower() in {"1", "true", "yes", "on"}
    if getattr(logger, _HANDLER_ATTR, None) is not None:
        return logger
    target_dir = log_dir if log_dir is not None else resolve_logs_dir(Path.cwd())
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    handler = build_rotating_file_handler(target_dir, LOG_FILENAME, formatter=formatter)
    logger.addHandler(handler)
    setattr(logger, _HANDLER_ATTR, handler)
    logger.debug("Logging to %s (debug=%s)", target_dir / LOG_FILENAME, debug_enabled)
    return logger
