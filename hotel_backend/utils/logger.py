"""Structured logging utilities."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

from hotel_backend.utils.config import get_settings


_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)


def log_context(**fields: Any) -> str:
    """Render ``key=value`` pairs for log lines, skipping unset values."""
    return " ".join(
        f"{key}={value}" for key, value in fields.items() if value is not None
    )
