"""
Lexical similarity between market titles, and the keyword-indexed matcher
used when no embedding provider is configured.
"""

import logging
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Optional, Set, Tuple

from rapidfuzz import fuzz

from . import config
from .events import extract_event_signature, team_for_outcome
from .models import MarketRecord, MatchCandidate, Platform
from .utils.text_processing import extract_key_terms, extract_keywords, normalize_title

logger = logging.getLogger(__name__)


def _terms_match(term_a: str, term_b: str) -> bool:
    if term_a == term_b:
        return True
    if term_a in term_b or term_b in term_a:
        return True
    return fuzz.ratio(term_a, term_b) >= config.FUZZY_TERM_RATIO


def similarity(text_a: str, text_b: str) -> float:
    """
    Score two titles in [0, 1].

    The larger of the word-overlap ratio 2*|common| / (|a| + |b|) and the
    key-term overlap ratio scaled by KEY_TERM_WEIGHT. Key terms match when equal,
    when one contains the other, or when they are near-identical spellings.
    """
    words_a = set(normalize_title(text_a).split())
    words_b = set(normalize_title(text_b).split())
    if not words_a or not words_b:
        return 0.0

    word_overlap = 2 * len(words_a & words_b) / (len(words_a) + len(words_b))

    terms_a = extract_key_terms(text_a)
    terms_b = extract_key_terms(text_b)
    key_term_ratio = 0.0
    if terms_a and terms_b:
        matched = sum(
            1 for term in terms_a if any(_terms_match(term, other) for other in terms_b)
        )
        key_term_ratio = min(1.0, matched / max(len(terms_a), len(terms_b)))

    return max(word_overlap, key_term_ratio * config.KEY_TERM_WEIGHT)


def best_outcome_pair(market_a: MarketRecord, market_b: MarketRecord) -> Tuple[int, int, float]:
    """Most similar (index_a, index_b, score) outcome pair across two markets."""
    best = (0, 0, 0.0)
    for i, outcome_a in enumerate(market_a.outcomes):
        for j, outcome_b in enumerate(market_b.outcomes):
            score = similarity(outcome_a.name, outcome_b.name)
            if score > best[2]:
                best = (i, j, score)
    return best


def aligned_outcome_pairs(market_a: MarketRecord, market_b: MarketRecord) -> List[Tuple[int, int]]:
    """
    Outcome index pairs that back the same side on both markets.

    For two markets on the same game, outcomes are resolved to the team they back
    and paired by team. Otherwise outcome names must be similar.
    """
    signature_a = extract_event_signature(market_a)
    signature_b = extract_event_signature(market_b)
    if signature_a and signature_b and signature_a.teams == signature_b.teams:
        teams_b = [team_for_outcome(market_b, j, signature_a) for j in range(len(market_b.outcomes))]
        pairs = []
        for i in range(len(market_a.outcomes)):
            team = team_for_outcome(market_a, i, signature_a)
            if team is None:
                continue
            pairs.extend((i, j) for j, team_b in enumerate(teams_b) if team_b == team)
        return pairs

    return [
        (i, j)
        for i, outcome_a in enumerate(market_a.outcomes)
        for j, outcome_b in enumerate(market_b.outcomes)
        if similarity(outcome_a.name, outcome_b.name) > config.OUTCOME_SIMILARITY_THRESHOLD
    ]


def align_outcomes(market_a: MarketRecord, market_b: MarketRecord) -> Optional[Tuple[int, int]]:
    """Aligned outcome pair with the widest price gap, or None when nothing lines up."""
    pairs = aligned_outcome_pairs(market_a, market_b)
    if not pairs:
        return None
    return max(pairs, key=lambda pair: abs(
        market_a.outcomes[pair[0]].price - market_b.outcomes[pair[1]].price
    ))


def are_equivalent(
    market_a: MarketRecord,
    market_b: MarketRecord,
    threshold: float = config.LEXICAL_SIMILARITY_THRESHOLD,
) -> bool:
    """
    Heuristic equivalence of two markets on different platforms.

    Titles must score at least `threshold`; when both markets have more than two
    outcomes, at least one outcome-name pair must also be similar.
    """
    if market_a.platform == market_b.platform:
        return False
    if similarity(market_a.title, market_b.title) < threshold:
        return False
    if len(market_a.outcomes) > 2 and len(market_b.outcomes) > 2:
        _, _, score = best_outcome_pair(market_a, market_b)
        return score > config.OUTCOME_SIMILARITY_THRESHOLD
    return True


class LexicalMatcher:
    """Keyword-pruned lexical matcher across every platform pair."""

    def __init__(
        self,
        similarity_threshold: float = config.LEXICAL_SIMILARITY_THRESHOLD,
        min_common_keywords: int = config.MIN_COMMON_KEYWORDS,
        min_spread: float = config.MIN_PROMOTION_SPREAD,
    ):
        """
        Initialize lexical matcher.

        Args:
            similarity_threshold: Minimum title similarity (0-1) to consider a match
            min_common_keywords: Minimum number of common keywords required
            min_spread: Minimum price gap (percentage points) to promote a match
        """
        self.similarity_threshold = similarity_threshold
        self.min_common_keywords = min_common_keywords
        self.min_spread = min_spread

    def _build_keyword_index(
        self, markets: List[MarketRecord]
    ) -> Tuple[Dict[str, Set[str]], Dict[str, Set[str]]]:
        """Build keyword lookup tables for faster candidate selection."""

        keyword_cache: Dict[str, Set[str]] = {}
        keyword_index: Dict[str, Set[str]] = defaultdict(set)

        for market in markets:
            keywords = extract_keywords(market.title)
            keyword_cache[market.id] = keywords
            for keyword in keywords:
                keyword_index[keyword].add(market.id)

        return keyword_cache, keyword_index

    def _match_platforms(
        self, source_markets: List[MarketRecord], target_markets: List[MarketRecord]
    ) -> List[MatchCandidate]:
        matches = []
        target_lookup = {market.id: market for market in target_markets}
        target_keywords, keyword_index = self._build_keyword_index(target_markets)

        for source_market in source_markets:
            source_keywords = extract_keywords(source_market.title)
            candidate_counts: Dict[str, int] = defaultdict(int)

            for keyword in source_keywords:
                for market_id in keyword_index.get(keyword, set()):
                    candidate_counts[market_id] += 1

            best_match: Optional[MarketRecord] = None
            best_score = 0.0

            for market_id, count in candidate_counts.items():
                if count < self.min_common_keywords:
                    continue
                target_market = target_lookup[market_id]
                if not are_equivalent(source_market, target_market, self.similarity_threshold):
                    continue
                score = similarity(source_market.title, target_market.title)
                if score > best_score:
                    best_score = score
                    best_match = target_market

            if best_match is None:
                continue

            aligned = align_outcomes(source_market, best_match)
            if aligned is None:
                logger.debug(
                    f"No aligned outcomes: {source_market.title[:40]} <-> {best_match.title[:40]}"
                )
                continue
            index_a, index_b = aligned

            spread = abs(
                source_market.outcomes[index_a].price - best_match.outcomes[index_b].price
            ) * 100
            if spread <= self.min_spread:
                logger.debug(
                    f"Lexical match below spread gate ({spread:.2f}pp): "
                    f"{source_market.title[:40]} <-> {best_match.title[:40]}"
                )
                continue

            matches.append(MatchCandidate(
                market_a=source_market,
                market_b=best_match,
                outcome_index_a=index_a,
                outcome_index_b=index_b,
                similarity=best_score,
                basis="lexical",
            ))
            logger.debug(
                "Match found (score=%.2f): %s <-> %s",
                best_score,
                source_market.title[:40],
                best_match.title[:40],
            )

        return matches

    def find_matches(self, markets: List[MarketRecord]) -> List[MatchCandidate]:
        """
        Find equivalent markets across every pair of platforms present.

        Args:
            markets: Well-formed markets from all platforms

        Returns:
            Candidates that clear the similarity and spread gates
        """
        by_platform: Dict[Platform, List[MarketRecord]] = defaultdict(list)
        for market in markets:
            by_platform[market.platform].append(market)

        matches: List[MatchCandidate] = []
        for platform_a, platform_b in combinations(sorted(by_platform, key=lambda p: p.value), 2):
            logger.info(
                "Matching %d markets (%s) vs %d markets (%s)...",
                len(by_platform[platform_a]),
                platform_a.value,
                len(by_platform[platform_b]),
                platform_b.value,
            )
            matches.extend(self._match_platforms(by_platform[platform_a], by_platform[platform_b]))

        logger.info("Found %d lexical matches", len(matches))
        return matches
