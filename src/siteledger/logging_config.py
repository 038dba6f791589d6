"""Logging setup for the siteledger command line."""

import logging
import sys
from typing import Union

LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"


def configure_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """Install one stream handler on the ``siteledger`` logger.

    Calling it again replaces the handler and level instead of stacking.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or number

    Returns:
        The configured ``siteledger`` logger
    """
    if isinstance(level, str):
        level_name = level.upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level '{level_name}'")

    logger = logging.getLogger("siteledger")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
