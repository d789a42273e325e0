"""Logging for the clock client: one rotating log file per data directory."""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import DEFAULT_CONFIG, PinClockConfig


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(threadName)s - %(message)s"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "0") not in {"0", ""}


def _level_from_env(default: int = logging.INFO) -> int:
    name = os.environ.get("PINCLOCK_LOG_LEVEL", "").upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def configure_logging(
    config: PinClockConfig | None = None,
    *,
    force_console: bool | None = None,
) -> logging.Logger:
    """Attach the clock log file (and a console mirror if asked) to ``pinclock``.

    Calling again with a config that points at another log location moves the
    file handler there instead of adding a second one. The level defaults to
    INFO and can be overridden with ``PINCLOCK_LOG_LEVEL``.
    """
    config = config or DEFAULT_CONFIG
    config.ensure_directories()
    formatter = logging.Formatter(LOG_FORMAT)
    target = Path(config.log_location).resolve()

    logger = logging.getLogger("pinclock")
    logger.setLevel(_level_from_env())
    for handler in _file_handlers(logger):
        if Path(handler.baseFilename) != target:
            logger.removeHandler(handler)
            handler.close()
    if not _file_handlers(logger):
        file_handler = RotatingFileHandler(target, maxBytes=1_000_000, backupCount=3)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    want_console = _env_flag("PINCLOCK_CONSOLE_LOG") if force_console is None else force_console
    has_console = any(
        type(h) is logging.StreamHandler for h in logger.handlers
    )
    if want_console and not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
