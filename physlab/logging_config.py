"""Logging configuration for physlab.

Engine modules log through ``logging.getLogger(__name__)``; this module only
installs the single console handler on the package logger.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
ROOT_LOGGER_NAME = "physlab"


def setup_logging(level: str | int = "WARNING") -> logging.Logger:
    """Configure the ``physlab`` logger and return it.

    Safe to call more than once: the handler is installed only the first time,
    later calls just update the level.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        resolved = getattr(logging, level.upper(), None)
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level!r}")
        level = resolved
    logger.setLevel(level)

    if not any(getattr(h, "_physlab_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._physlab_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
