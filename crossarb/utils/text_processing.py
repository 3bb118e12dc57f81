"""
Text processing utilities for market title normalization.
"""

import re
from typing import Set

STOP_WORDS = {
    'will', 'be', 'the', 'a', 'an', 'in', 'on', 'at', 'to', 'for',
    'of', 'and', 'or', 'by', 'before', 'after', 'than', 'more', 'less',
    'who', 'what', 'which', 'when', 'win', 'wins', 'winner', 'market',
    'this', 'that', 'with', 'from', 'does', 'vs',
}


def normalize_title(title: str) -> str:
    """
    Normalize market title for better matching.

    Steps:
    1. Convert to lowercase
    2. Remove special characters (keep alphanumeric and spaces)
    3. Remove extra whitespace
    4. Strip leading/trailing spaces

    Args:
        title: Raw market title

    Returns:
        Normalized title string
    """
    normalized = title.lower()
    normalized = re.sub(r'[^a-z0-9\s]', ' ', normalized)
    normalized = re.sub(r'\s+', ' ', normalized)
    return normalized.strip()


def extract_keywords(title: str) -> Set[str]:
    """
    Extract important keywords from title (stop words and words under 3 chars removed).

    Args:
        title: Market title

    Returns:
        Set of important keywords
    """
    words = normalize_title(title).split()
    return {w for w in words if len(w) > 2 and w not in STOP_WORDS}


def extract_key_terms(title: str) -> Set[str]:
    """Distinctive terms: tokens longer than 3 chars that are not stop words."""
    words = normalize_title(title).split()
    return {w for w in words if len(w) > 3 and w not in STOP_WORDS}

