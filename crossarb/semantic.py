"""
Embedding-based market matching.

Titles are normalized (league abbreviations expanded, team nicknames replaced by
their city so "Packers" and "Green Bay" embed alike), embedded, and compared
pairwise within a category. Similar wording is not enough on its own: two games
of the same sport, or the same race in two states, read almost identically, so
sports and politics pairs must also pass a structural check.
"""

import logging
import re
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import numpy as np

from . import config
from .embeddings import EmbeddingService
from .events import extract_event_signature, extract_teams
from .models import MarketRecord, MatchCandidate
from .similarity import align_outcomes
from .teams import NICKNAME_INDEX, city_form

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLES = {"combo", "unknown", "unknown market"}

ABBREVIATIONS = [
    (re.compile(r"\bbtc\b"), "bitcoin"),
    (re.compile(r"\beth\b"), "ethereum"),
    (re.compile(r"\bnfl\b"), "football game"),
    (re.compile(r"\bnba\b"), "basketball game"),
    (re.compile(r"\bnhl\b"), "hockey game"),
    (re.compile(r"\bmlb\b"), "baseball game"),
    (re.compile(r"\bncaa\b"), "college game"),
]

FILLER_WORDS = re.compile(r"\b(will|does|the|a|an)\b")

TEAM_ALIASES = sorted(NICKNAME_INDEX, key=len, reverse=True)
TEAM_ALIAS_PATTERN = re.compile(
    r"(?<![a-z0-9])(" + "|".join(re.escape(alias) for alias in TEAM_ALIASES) + r")(?![a-z0-9])"
)

SPORTS_PATTERN = re.compile(
    r"\b(vs|game|match|playoffs?|championship|super bowl|nfl|nba|nhl|mlb|ncaa)\b|@", re.I
)
POLITICS_PATTERN = re.compile(
    r"\b(election|senate|house|governor|primary|nomination|party|republican|democrat|"
    r"presidential|president)\b",
    re.I,
)
CRYPTO_PATTERN = re.compile(
    r"\b(bitcoin|btc|ethereum|eth|crypto|cryptocurrency|price|stock|market|gdp|inflation|"
    r"fed|federal reserve)\b",
    re.I,
)

OFFICES = [
    ("senate", re.compile(r"senate", re.I)),
    ("house", re.compile(r"house", re.I)),
    ("governor", re.compile(r"governor|gubernatorial", re.I)),
    ("president", re.compile(r"presidential", re.I)),
]

US_STATES = sorted([
    "alabama", "alaska", "arizona", "arkansas", "california", "colorado", "connecticut",
    "delaware", "florida", "georgia", "hawaii", "idaho", "illinois", "indiana", "iowa",
    "kansas", "kentucky", "louisiana", "maine", "maryland", "massachusetts", "michigan",
    "minnesota", "mississippi", "missouri", "montana", "nebraska", "nevada",
    "new hampshire", "new jersey", "new mexico", "new york", "north carolina",
    "north dakota", "ohio", "oklahoma", "oregon", "pennsylvania", "rhode island",
    "south carolina", "south dakota", "tennessee", "texas", "utah", "vermont", "virginia",
    "washington", "west virginia", "wisconsin", "wyoming",
], key=len, reverse=True)
STATE_PATTERNS = [(state, re.compile(r"\b" + state + r"\b")) for state in US_STATES]

PRIMARIES = [
    ("republican", re.compile(r"republican\s+(?:senate\s+|house\s+|gubernatorial\s+)?primary", re.I)),
    ("democratic", re.compile(r"democratic?\s+(?:senate\s+|house\s+|gubernatorial\s+)?primary", re.I)),
]


def is_valid_title(title: Optional[str]) -> bool:
    """Reject empty, very short and placeholder titles."""
    if not title or len(title.strip()) < config.MIN_TITLE_LENGTH:
        return False
    if title.strip().lower() in PLACEHOLDER_TITLES:
        return False
    if title.startswith("Kalshi Market ") and len(title) < 20:
        return False
    return True


def normalize_for_embedding(title: str) -> str:
    """Lowercase, expand abbreviations, map team nicknames to cities, drop filler words."""
    normalized = title.lower()
    for pattern, replacement in ABBREVIATIONS:
        normalized = pattern.sub(replacement, normalized)

    normalized = TEAM_ALIAS_PATTERN.sub(lambda m: city_form(m.group(1)), normalized)

    normalized = FILLER_WORDS.sub(" ", normalized)
    return re.sub(r"\s+", " ", normalized).strip()


def detect_category(title: str) -> str:
    """Classify a title as 'sports', 'politics', 'crypto' or 'other'."""
    if SPORTS_PATTERN.search(title):
        return "sports"
    if POLITICS_PATTERN.search(title):
        return "politics"
    # Kalshi game titles name cities only ("Baltimore at Green Bay Winner?")
    if TEAM_ALIAS_PATTERN.search(title.lower()) or len(extract_teams(title)) >= 2:
        return "sports"
    if CRYPTO_PATTERN.search(title):
        return "crypto"
    return "other"


def confidence_tier(similarity: Optional[float]) -> str:
    if similarity is None:
        return "low"
    if similarity > config.HIGH_CONFIDENCE_SIMILARITY:
        return "high"
    if similarity > config.MEDIUM_CONFIDENCE_SIMILARITY:
        return "medium"
    return "low"


def _office(title: str) -> Optional[str]:
    for office, pattern in OFFICES:
        if pattern.search(title):
            return office
    return None


def _state(title: str) -> Optional[str]:
    lowered = title.lower()
    for state, pattern in STATE_PATTERNS:
        if pattern.search(lowered):
            return state
    return None


def _primary(title: str) -> Optional[str]:
    for party, pattern in PRIMARIES:
        if pattern.search(title):
            return party
    return None


def validate_politics_match(market_a: MarketRecord, market_b: MarketRecord) -> bool:
    """Office, state and primary party must agree, or be absent on both sides."""
    title_a, title_b = market_a.title, market_b.title
    return (
        _office(title_a) == _office(title_b)
        and _state(title_a) == _state(title_b)
        and _primary(title_a) == _primary(title_b)
    )


def validate_sports_match(market_a: MarketRecord, market_b: MarketRecord,
                          tolerance_days: int = config.DATE_TOLERANCE_DAYS) -> bool:
    """
    Team-overlap check for two sports titles.

    Two-team titles on both sides must name the same pair; otherwise at least one
    team must be shared. Titles without recognizable teams can't be checked and
    are allowed. When both sides carry a dated signature, dates must agree.
    """
    teams_a = extract_teams(market_a.title)
    teams_b = extract_teams(market_b.title)

    if len(teams_a) == 2 and len(teams_b) == 2:
        if set(teams_a) != set(teams_b):
            return False
    elif teams_a and teams_b:
        if not set(teams_a) & set(teams_b):
            return False
    else:
        return True

    signature_a = extract_event_signature(market_a)
    signature_b = extract_event_signature(market_b)
    if signature_a and signature_b and signature_a.date and signature_b.date:
        return abs((signature_a.date - signature_b.date).days) <= tolerance_days
    return True


def price_spread(market_a: MarketRecord, market_b: MarketRecord,
                 index_a: int = 0, index_b: int = 0) -> float:
    """Gap between two outcomes' prices, in percentage points."""
    return abs(market_a.outcomes[index_a].price - market_b.outcomes[index_b].price) * 100


class SemanticMatcher:
    """Matches markets across platforms by embedding similarity plus structural checks."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        similarity_threshold: float = config.EMBEDDING_SIMILARITY_THRESHOLD,
        min_spread: float = config.MIN_PROMOTION_SPREAD,
    ):
        self.embedding_service = embedding_service
        self.similarity_threshold = similarity_threshold
        self.min_spread = min_spread

    def _validate(self, category: str, market_a: MarketRecord, market_b: MarketRecord) -> bool:
        if category == "sports":
            return validate_sports_match(market_a, market_b)
        if category == "politics":
            return validate_politics_match(market_a, market_b)
        return True

    def _similarity_matrix(self, vectors: List[np.ndarray]) -> np.ndarray:
        matrix = np.vstack(vectors)
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        unit = matrix / norms
        return unit @ unit.T

    def find_matches(self, markets: List[MarketRecord]) -> List[MatchCandidate]:
        """
        Find cross-platform pairs of equivalent markets.

        Args:
            markets: Markets from every platform

        Returns:
            Candidates above the similarity threshold that pass category
            validation and the spread gate
        """
        valid = [market for market in markets if is_valid_title(market.title)]
        logger.info(f"Valid markets: {len(valid)}/{len(markets)}")
        if not valid:
            return []

        normalized = {market.id: normalize_for_embedding(market.title) for market in valid}
        vectors = self.embedding_service.embed(list(normalized.values()))

        categorized: Dict[str, List[Tuple[MarketRecord, np.ndarray]]] = defaultdict(list)
        for market in valid:
            vector = vectors.get(normalized[market.id])
            if vector is None:
                continue
            categorized[detect_category(market.title)].append((market, vector))

        for category, members in categorized.items():
            logger.info(f"  {category}: {len(members)} markets")

        matches: List[MatchCandidate] = []
        comparisons = 0
        for category, members in categorized.items():
            if len(members) < 2:
                continue
            similarities = self._similarity_matrix([vector for _, vector in members])

            for i in range(len(members)):
                market_a = members[i][0]
                for j in range(i + 1, len(members)):
                    market_b = members[j][0]
                    if market_a.platform == market_b.platform:
                        continue
                    comparisons += 1
                    score = float(similarities[i, j])
                    if score <= self.similarity_threshold:
                        continue
                    if not self._validate(category, market_a, market_b):
                        logger.debug(
                            f"Rejected {category} pair ({score:.3f}): "
                            f"{market_a.title[:40]} <-> {market_b.title[:40]}"
                        )
                        continue
                    aligned = align_outcomes(market_a, market_b)
                    if aligned is None:
                        continue
                    index_a, index_b = aligned
                    spread = price_spread(market_a, market_b, index_a, index_b)
                    if spread <= self.min_spread:
                        continue
                    matches.append(MatchCandidate(
                        market_a=market_a,
                        market_b=market_b,
                        outcome_index_a=index_a,
                        outcome_index_b=index_b,
                        similarity=score,
                        basis="similarity",
                    ))

        logger.info(f"Found {len(matches)} semantic matches from {comparisons} comparisons")
        return matches
