import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from openjdk_api.constants import (
    DEBUG_LOG_FORMAT,
    INFO_LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_NAME,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

# Replaced, never stacked, by add_file_logging()
_file_handler: Optional[RotatingFileHandler] = None


def _resolve_level(name: Optional[str]) -> Optional[int]:
    """Map a level name such as "debug" to its numeric value, or None if unknown."""
    level = getattr(logging, (name or "").upper(), None)
    return level if isinstance(level, int) else None


def _formatter_for(handler: logging.Handler, level: int) -> logging.Formatter:
    # Rich renders time and level itself
    if isinstance(handler, RichHandler):
        return logging.Formatter("%(message)s")
    fmt = INFO_LOG_FORMAT if level >= logging.INFO else DEBUG_LOG_FORMAT
    return logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT)


def _apply_level(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(_formatter_for(handler, level))


def set_log_level(level_name: str) -> None:
    """
    Change the level of the openjdk_api logger and every handler attached to it.

    Unknown names are reported and ignored, leaving the current level in place.

    Parameters:
        level_name (str): Level name in any case, e.g. "debug" or "WARNING".
    """
    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Unknown log level {level_name!r}; keeping the current level.")
        return

    logger.setLevel(level)
    for handler in logger.handlers:
        _apply_level(handler, level)
    logger.log(level, f"Log level set to {logging.getLevelName(level)}")


def add_file_logging(log_dir_path: Path, level_name: str = "INFO") -> None:
    """
    Also write the service log to a size-rotated `openjdk-api.log` in `log_dir_path`.

    Calling it again moves file logging to the new directory. An unknown level
    name falls back to INFO.
    """
    global _file_handler
    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Unknown file log level {level_name!r}; using INFO.")
        level = logging.INFO

    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file = log_dir_path / LOG_FILE_NAME
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    _apply_level(handler, level)
    logger.addHandler(handler)
    _file_handler = handler

    logger.info(f"Writing log file {log_file} at {logging.getLevelName(level)}")


def _initialize_logger() -> None:
    """
    Reset the openjdk_api logger to a single rich console handler.

    The starting level comes from the environment variable named by
    LOG_LEVEL_ENV_VAR and defaults to INFO. The logger does not propagate to
    the root logger.
    """
    logger.propagate = False
    while logger.handlers:
        stale = logger.handlers[0]
        logger.removeHandler(stale)
        stale.close()

    env_value = os.environ.get(LOG_LEVEL_ENV_VAR)
    level = _resolve_level(env_value) if env_value else logging.INFO
    if level is None:
        level = logging.INFO

    console = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        log_time_format=LOG_DATE_FORMAT,
    )
    _apply_level(console, level)
    logger.addHandler(console)
    logger.setLevel(level)

    if env_value and _resolve_level(env_value) is None:
        logger.warning(f"Ignoring {LOG_LEVEL_ENV_VAR}={env_value!r}; using INFO.")


_initialize_logger()
