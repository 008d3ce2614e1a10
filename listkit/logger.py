"""
Logging setup for scripts.

Library modules only call logging.getLogger(__name__) and log at DEBUG.
Scripts call setup_logger once so those records reach stdout.
"""

import logging
import os
import sys

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str = "listkit", level: str = None) -> logging.Logger:
    """
    Attach a stdout handler to the ``name`` logger and set its level.

    The level comes from ``level``, else $LOG_LEVEL, else INFO. Calling again
    only changes the level; no second handler is added.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    return logger
