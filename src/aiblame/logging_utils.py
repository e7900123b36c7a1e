"""Logging configuration utilities for aiblame."""

import logging
import os
from typing import Optional

_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)


def configure_logging(level: Optional[str] = None, default: str = "INFO") -> None:
    """Configure application-wide logging once."""
    if logging.getLogger().handlers:
        return

    log_level = level or os.getenv("AIBLAME_LOG_LEVEL") or os.getenv("LOG_LEVEL", default)
    logging.basicConfig(level=log_level.upper(), format=_LOG_FORMAT)
