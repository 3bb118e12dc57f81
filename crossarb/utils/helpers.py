"""
Logging setup and lenient parsing of platform payload values.
"""

import logging
import math
from datetime import date
from typing import Any, Optional

from dateutil import parser as date_parser

from .. import config


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure structured logging with timestamps.

    Args:
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT,
    )
    return logging.getLogger("crossarb")


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a free-form date/datetime string (ISO, RFC 2822, "Dec 18, 2025"...) to a date.

    Returns None for empty or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def parse_float(value: Any, default: float = 0.0) -> float:
    """Coerce API numeric fields (numbers or numeric strings) to a finite float."""
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result
