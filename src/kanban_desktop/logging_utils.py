"""
Logging setup for Kanban Desktop
"""

import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "kanban_desktop"
LOG_FILENAME = "kanban-desktop.log"
_LOG_DIR_NAME = "kanban-desktop"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_logs_dir() -> Path:
    """
    Resolve the directory to store application logs.

    Strategy:
    - Use KANBAN_DESKTOP_LOG_DIR if set.
    - Fall back to XDG state, then XDG cache locations.
    - Final fallback: tempdir/kanban-desktop/logs.
    """
    candidates: list[Path] = []

    env_override = os.environ.get("KANBAN_DESKTOP_LOG_DIR")
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home / _LOG_DIR_NAME / "logs")
    candidates.append(cache_home / _LOG_DIR_NAME / "logs")

    for target in candidates:
        try:
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / _LOG_DIR_NAME / "logs"
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str = LOG_FILENAME,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: logging.Formatter | None = None,
) -> logging.Handler:
    """Construct a rotating file handler with sane defaults."""
    retention = max(1, retention)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=retention - 1,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_logging(
    debug_enabled: bool = False,
    *,
    retention: int = 5,
    log_dir: Path | None = None,
) -> logging.Logger:
    """Attach stderr and rotating file handlers to the package logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(debug_enabled))
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    try:
        target = log_dir if log_dir is not None else resolve_logs_dir()
        logger.addHandler(build_rotating_file_handler(target, retention=retention, formatter=formatter))
    except OSError as exc:
        logger.warning("File logging disabled: %s", exc)

    return logger
