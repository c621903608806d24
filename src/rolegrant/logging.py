"""Logging for the CLI and the Azure SDK loggers it drives."""

from __future__ import annotations

import logging as py_logging
import os
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
LOG_LEVEL_ENV = "ROLEGRANT_LOG_LEVEL"
APP_LOGGER = "rolegrant"
SDK_LOGGER = "azure"
DEFAULT_LOG_PATH = Path("~/.config/rolegrant/logs/rolegrant.log")
_FALLBACK_LOG_PATH = Path(".rolegrant/logs/rolegrant.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def default_log_path() -> Path:
    try:
        resolved = DEFAULT_LOG_PATH.expanduser()
    except RuntimeError:
        resolved = (Path.cwd() / _FALLBACK_LOG_PATH).resolve()
    else:
        if not resolved.is_absolute():
            resolved = resolved.resolve()
    return resolved


def resolve_level(level: str | None, default: int = py_logging.INFO) -> int:
    """Map a level name to a ``logging`` level; unknown or empty names give ``default``."""
    if not level:
        return default
    return LOG_LEVELS.get(level.strip().upper(), default)


def _open_log_file(log_file: str | Path) -> py_logging.Handler | None:
    try:
        log_path = Path(log_file).expanduser()
    except RuntimeError:
        log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = log_path.resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return py_logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return None


def _reset(logger: py_logging.Logger, level: int, handlers: list[py_logging.Handler]) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False


def configure_logging(
    level: str | None = None,
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
    sdk_level: str = "WARN",
) -> py_logging.Logger:
    """Route ``rolegrant`` and ``azure`` records to stderr and, when given, a debug log file.

    ``level`` falls back to ``$ROLEGRANT_LOG_LEVEL`` and then INFO. The Azure
    SDK loggers share the handlers but are held at ``sdk_level``, because
    their HTTP pipeline logs every request at INFO.
    """
    resolved = resolve_level(level or os.getenv(LOG_LEVEL_ENV))
    formatter = py_logging.Formatter(_FORMAT)

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    handlers: list[py_logging.Handler] = [console]

    file_handler = _open_log_file(log_file) if log_file else None
    if file_handler is not None:
        file_handler.setLevel(py_logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logger = py_logging.getLogger(APP_LOGGER)
    _reset(logger, resolved, handlers)
    _reset(py_logging.getLogger(SDK_LOGGER), resolve_level(sdk_level, py_logging.WARNING), handlers)

    if log_file and file_handler is None:
        logger.warning("Log file %s is not writable; logging to stderr only", log_file)
    return logger
