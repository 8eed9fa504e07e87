from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from ai_diagnostics.config import LogConfig

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_ALIASES: dict[str, str] = {"WARN": "WARNING"}


def _resolve_level(level: str) -> int:
    name = _LEVEL_ALIASES.get(level.upper(), level.upper())
    return logging.getLevelNamesMapping().get(name, logging.WARNING)


def configure_logging(log_config: LogConfig, level_override: str | None = None) -> logging.Logger:
    """Attach stderr and optional rotating file handlers to the package logger.

    Args:
        log_config: Logging section of the report configuration.
        level_override: Level name taking precedence over ``log_config.level``.

    Returns:
        The configured ``ai_diagnostics`` logger.
    """

    package_logger = logging.getLogger("ai_diagnostics")
    level = _resolve_level(level_override or log_config.level)
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    if log_config.enabled and log_config.file is not None:
        log_path = log_config.file.expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path, maxBytes=log_config.max_size, backupCount=1, encoding="utf-8"
            )
        except OSError:
            package_logger.exception("Failed to open log file %s", log_path)
        else:
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

    package_logger.propagate = False
    return package_logger
