"""Minimal logging helpers for the project."""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def get_logger(name: str = "signalscope", level: int = logging.INFO, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Return a configured :class:`logging.Logger` instance.

    A ``StreamHandler`` is attached only once per logger so repeated calls
    (one per CLI invocation in tests, for example) never duplicate lines.
    Child loggers created with ``logging.getLogger(__name__)`` inside the
    package propagate to it.
    """

    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
