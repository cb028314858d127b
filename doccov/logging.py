"""Logging utilities for doccov."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

_LOGGER_NAME = "doccov"
_CONSOLE_FORMAT = "[doccov] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``doccov`` or a component logger such as ``doccov.drift``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def parse_level(value: str | int) -> int:
    """Translate ``"debug"``/``"WARNING"``/``10`` into a logging level number."""
    if isinstance(value, int):
        return value
    if value.strip().isdigit():
        return int(value)
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {value!r}")
    return level


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    levels: Mapping[str, str | int] | None = None,
) -> logging.Logger:
    """Route doccov logs to the console and, optionally, to ``log_file``.

    ``levels`` overrides single components, e.g. ``{"fix.writer": "warning"}``
    keeps the applier quiet while the rest of doccov logs at DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    for component, component_level in (levels or {}).items():
        get_logger(component).setLevel(parse_level(component_level))

    return logger


__all__ = ["configure_logging", "get_logger", "parse_level"]
