"""Logging initialization and application directory helpers using loguru."""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

APP_DIR_NAME = "PhotoTimeline"
DB_FILE_NAME = "image_cache.db"


def get_data_directory() -> str:
    """Per-installation data directory (`%LOCALAPPDATA%` or `~/.local/share`)."""
    base = os.environ.get("LOCALAPPDATA") or str(Path.home() / ".local" / "share")
    return str(Path(base) / APP_DIR_NAME)


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(Path(get_data_directory()) / "logs")


def get_default_db_path() -> str:
    """Location of the timestamp cache database when not configured."""
    return str(Path(get_data_directory()) / DB_FILE_NAME)


def init_logging(log_dir: str | None = None, level: str = "INFO") -> None:
    """Initialize rotating file logging under the given directory."""
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level.upper(),
    )
