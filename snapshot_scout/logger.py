# snapshot_scout/logger.py
"""
Logger shared by the crawler, the throughput tester and the CLI.

Modules log through :data:`logger`; the CLI calls :func:`init_logging` once
with the level, file and format given on the command line.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

LOGGER_NAME = "SnapshotScout"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# log file rotation: 5 MiB, three backups
_MAX_BYTES = 5 * 1024 * 1024
_BACKUPS = 3


def init_logging(
    level: Union[int, str] = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Reset the project logger to stdout plus an optional rotating file."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        lg.addHandler(handler)

    lg.propagate = False
    return lg


logger = init_logging()

__all__ = ["LOGGER_NAME", "logger", "init_logging"]
