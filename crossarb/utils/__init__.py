"""Utilities package."""

from .helpers import parse_date, parse_float, setup_logging
from .text_processing import (
    STOP_WORDS,
    extract_key_terms,
    extract_keywords,
    normalize_title,
)

__all__ = [
    "setup_logging",
    "parse_date",
    "parse_float",
    "STOP_WORDS",
    "normalize_title",
    "extract_keywords",
    "extract_key_terms",
]
