"""Project-wide logging helper that honours the environment settings."""

from __future__ import annotations

import logging
from typing import Optional

from . import config


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a ``sortrace`` logger with the configured level applied."""

    logger_name = "sortrace" if name is None else f"sortrace.{name}"
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.settings().log_level)
    return logger
