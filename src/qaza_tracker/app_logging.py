"""Logging configuration helpers."""

import logging

_ROOT_LOGGER = "qaza_tracker"


def configure_logging(level: str = "INFO") -> None:
    """Configure the package logger with a single stream handler.

    The level is reapplied on every call; the handler is only installed once.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
