"""Logging setup for command-line use.

Library modules only create loggers with ``logging.getLogger(__name__)``;
scripts call :func:`setup_logging` once to get console output.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", name: str = "src.photonmapper") -> logging.Logger:
    """Attach a console handler to the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        name: Logger to configure. Defaults to the package root logger.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    # Repeated calls only adjust the level
    for handler in logger.handlers:
        if getattr(handler, "_photonmapper_console", False):
            handler.setLevel(numeric_level)
            return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._photonmapper_console = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)

    return logger
