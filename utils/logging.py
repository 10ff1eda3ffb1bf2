"""Centralized logging setup for the project."""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union


_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)


def configure_logging(level: Union[int, str, None] = None, logfile: Optional[str] = None) -> None:
    """Configure root logger with console (and optional file) handlers.

    ``level`` defaults to ``settings.log_level`` (DOCALIGN_LOG_LEVEL).
    """
    if level is None:
        from config.settings import settings
        level = settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    handlers = [logging.StreamHandler(sys.stdout)]
    if logfile:
        handlers.append(logging.FileHandler(logfile))

    logging.basicConfig(level=level, format=_LOG_FORMAT, handlers=handlers)


logger = logging.getLogger("docalign")
