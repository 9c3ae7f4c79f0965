"""Logging setup shared by the CLI and tests."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO
NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
]


def setup_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Configure the ``bizledger`` logger hierarchy.

    Calling this more than once replaces the previously installed handler,
    so repeated CLI invocations in one process do not duplicate output.

    Args:
        level: Level name (e.g. "INFO") or numeric level

    Returns:
        The configured ``bizledger`` logger

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level '{level}'")
        level = numeric

    logger = logging.getLogger("bizledger")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_bizledger_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    handler._bizledger_handler = True
    logger.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return logger
