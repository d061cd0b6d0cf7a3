"""Logging setup for the Workstation Allocation Tracker."""

import logging
from typing import Optional

from config.defaults import LOG_LEVEL, LOG_FORMAT, LOG_DATE_FORMAT


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    level_name = (level or LOG_LEVEL).upper()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(level_name)
