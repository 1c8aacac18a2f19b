"""Logging setup driven by ``BOXWRAP_LOG``.

Every module logs through ``logging.getLogger(__name__)``, so all records
land under the ``boxwrap`` logger configured here.  With ``BOXWRAP_LOG``
unset the records are dropped instead of reaching Python's last-resort
stderr handler.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

ROOT_LOGGER = "boxwrap"

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level_name: str | None, stream: TextIO | None = None) -> logging.Logger:
    """(Re)configure the ``boxwrap`` logger for *level_name*.

    Unknown level names fall back to INFO.  Calling this again replaces
    the handler installed by the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if not level_name:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.WARNING)
        return logger

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(LEVELS.get(level_name.strip().lower(), logging.INFO))
    return logger
