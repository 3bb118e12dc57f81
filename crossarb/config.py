"""
Configuration module for crossarb.

Contains API endpoints, platform fees, matching thresholds, retry and cache
parameters, and logging defaults.
"""

import os
from dataclasses import dataclass
from typing import Dict

# API Base URLs
KALSHI_API_BASE = os.getenv("KALSHI_API_BASE", "https://api.elections.kalshi.com/trade-api/v2")
GAMMA_API_BASE = os.getenv("GAMMA_API_BASE", "https://gamma-api.polymarket.com")
EMBEDDING_API_BASE = os.getenv("EMBEDDING_API_BASE", "https://api.openai.com/v1")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")

USER_AGENT = "crossarb/0.1.0"
REQUEST_TIMEOUT = 30  # seconds

# Flat per-leg fee rates, as a fraction of the stake placed on that leg
PLATFORM_FEES: Dict[str, float] = {
    "Kalshi": 0.02,
    "Polymarket": 0.0,
    "PredictIt": 0.10,
    "Manifold": 0.0,
}

# Lexical matching
LEXICAL_SIMILARITY_THRESHOLD = 0.4
OUTCOME_SIMILARITY_THRESHOLD = 0.6
KEY_TERM_WEIGHT = 0.8
FUZZY_TERM_RATIO = 85.0  # rapidfuzz ratio (0-100) for near-identical key terms
MIN_COMMON_KEYWORDS = 1

# Semantic matching
EMBEDDING_SIMILARITY_THRESHOLD = 0.65
HIGH_CONFIDENCE_SIMILARITY = 0.75
MEDIUM_CONFIDENCE_SIMILARITY = 0.70
MIN_PROMOTION_SPREAD = 0.5  # percentage points
MIN_TITLE_LENGTH = 5

# Embedding provider batching and cache
EMBEDDING_BATCH_SIZE = 100
EMBEDDING_CACHE_VERSION = "v3"
EMBEDDING_CACHE_MAXSIZE = 20000
EMBEDDING_CACHE_TTL = 6 * 60 * 60  # seconds

# Sports matching
DATE_TOLERANCE_DAYS = 1
DEFAULT_PER_SPORT_LIMIT = 200
DEFAULT_MIN_ROI = 0.5  # percent
DEFAULT_STAKE = 1000.0

# Caller-facing defaults
DEFAULT_SCAN_LIMIT = 500
DEFAULT_MIN_SPREAD = 0.5  # percentage points
DEFAULT_SORT = "spread"

# Rate limiting
RETRY_ATTEMPTS = 3  # Number of attempts for failed requests
RETRY_BACKOFF_BASE = 1.0  # Base delay for exponential backoff (seconds)
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class SportConfig:
    """Per-sport platform identifiers and title vocabulary."""

    code: str
    name: str
    keywords: str               # regex over titles implying this sport
    kalshi_series: str          # Kalshi series ticker for single games
    kalshi_series_title: str    # used to build Kalshi links
    polymarket_tag: str         # Gamma tag slug for the league


# Processing order for the sport-aware matcher
SPORTS: Dict[str, SportConfig] = {
    "nfl": SportConfig("nfl", "NFL", r"\b(nfl|football|super bowl)\b",
                       "KXNFLGAME", "Professional Football Game", "nfl"),
    "nba": SportConfig("nba", "NBA", r"\b(nba|basketball)\b",
                       "KXNBAGAME", "Professional Basketball Game", "nba"),
    "nhl": SportConfig("nhl", "NHL", r"\b(nhl|hockey|stanley cup)\b",
                       "KXNHLGAME", "Professional Hockey Game", "nhl"),
    "cbb": SportConfig("cbb", "College Basketball",
                       r"\b(cbb|ncaab|ncaam|college basketball|march madness)\b|\(w\)",
                       "KXNCAAMBGAME", "Men's College Basketball Game", "cbb"),
    "cfb": SportConfig("cfb", "College Football", r"\b(cfb|ncaaf|college football|bowl game)\b",
                       "KXMVENCFBGAME", "College Football Game", "cfb"),
}
