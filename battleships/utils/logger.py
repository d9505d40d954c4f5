"""Logging utilities tailored for the battleships solver."""

from __future__ import annotations

import logging
import os
from typing import Optional, TextIO, Union


DEFAULT_LOGGER_NAME = "battleships"
LOG_LEVEL_ENV = "BATTLESHIPS_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def level_from_name(name: str, default: int = logging.INFO) -> int:
    """Map ``"debug"``/``"INFO"``/... to a logging level, ``default`` if unknown."""

    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(
    level: Union[int, str] = logging.INFO, stream: Optional[TextIO] = None
) -> None:
    """Install a single compact handler on the root logger.

    ``level`` may be a number or a level name. Records go to ``stream``
    (stderr when omitted) so solver output on stdout stays parseable. Search
    can try thousands of guesses, so per-guess tracing goes to DEBUG and only
    solve outcomes are logged at INFO.
    """

    if isinstance(level, str):
        level = level_from_name(level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``battleships`` namespace.

    The first call without configured handlers sets logging up at the level
    named by ``BATTLESHIPS_LOG_LEVEL`` (INFO when unset or unrecognised).
    """

    if not logging.getLogger().handlers:
        configure_logging(os.environ.get(LOG_LEVEL_ENV, "INFO"))
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)
