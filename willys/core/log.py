"""Logging setup.

Library modules log through ``logging.getLogger(__name__)`` and never attach
handlers themselves; entry points call :func:`setup_logging` once.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger, optionally overriding its level."""
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def setup_logging(debug: bool = False) -> None:
    """Route all logging to stderr.

    Respects the LOG_LEVEL environment variable; ``debug`` wins over it.
    stdout is left alone so CLI output stays clean.
    """
    level_name = os.getenv("LOG_LEVEL", "WARNING").upper()
    log_level = getattr(logging, level_name, logging.WARNING)
    if debug:
        log_level = logging.DEBUG

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
