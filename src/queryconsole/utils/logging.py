"""Logging bootstrap for query console hosts.

Everything goes to a rotating file. The console handler stays at WARNING so
hosts and the CLI are not flooded with per-keystroke debug records unless
``VersioningSettings.debug_logging`` is on.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from ..settings import VersioningSettings

__all__ = ["setup_logging", "configure_from_settings", "get_log_path"]

LOG_FILE_NAME = "queryconsole.log"
_DEFAULT_LOG_DIR = Path.home() / ".queryconsole" / "logs"
_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "PySide6")
_LOG_PATH: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console_level: int | None = logging.WARNING,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the rotating file handler and, unless ``console_level`` is None, a stderr handler.

    Repeated calls return the active log path; pass ``force=True`` to rebuild
    the handlers (for example after settings switch debug logging on).
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    target_dir = Path(log_dir or os.environ.get("QUERYCONSOLE_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / LOG_FILE_NAME

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handlers: list[logging.Handler] = [file_handler]

    if console_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        handlers.append(console_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _LOG_PATH = log_path
    return log_path


def configure_from_settings(
    settings: VersioningSettings,
    *,
    log_dir: Path | str | None = None,
    force: bool = False,
) -> Path:
    """Derive file and console levels from ``settings.debug_logging``."""

    if settings.debug_logging:
        return setup_logging(logging.DEBUG, log_dir=log_dir, console_level=logging.DEBUG, force=force)
    return setup_logging(logging.INFO, log_dir=log_dir, console_level=logging.WARNING, force=force)


def get_log_path() -> Path | None:
    """Return the active log file, if logging has been configured."""

    return _LOG_PATH
