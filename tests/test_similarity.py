"""Tests for lexical similarity and the keyword-indexed matcher."""

from conftest import make_market

from crossarb.models import Platform
from crossarb.similarity import (
    LexicalMatcher,
    align_outcomes,
    are_equivalent,
    best_outcome_pair,
    similarity,
)
from crossarb.utils import extract_key_terms, extract_keywords, normalize_title


def test_normalize_title():
    assert normalize_title("  Will BTC hit $100K?!  ") == "will btc hit 100k"


def test_keywords_drop_stop_words():
    assert extract_keywords("Will the Bitcoin price hit 100k?") == {"bitcoin", "price", "hit", "100k"}
    assert extract_key_terms("Will the Bitcoin price hit 100k?") == {"bitcoin", "price", "100k"}


def test_similarity_related_titles():
    """Shared key terms lift related titles over the threshold."""
    score = similarity("Will Bitcoin reach $100k in 2025?", "Bitcoin to hit $100k by end of 2025")
    assert score > 0.4


def test_similarity_unrelated_titles():
    assert similarity("Eagles win Super Bowl", "Fed cuts rates in March") == 0.0


def test_similarity_identical_titles():
    assert similarity("Fed cuts rates in March", "Fed cuts rates in March") == 1.0


def test_similarity_fuzzy_key_terms():
    """Near-identical spellings count as the same key term."""
    assert similarity("Zelenskyy meets Putin", "Zelensky meeting Putin") > 0.4


def test_similarity_empty():
    assert similarity("", "Anything") == 0.0


def test_are_equivalent_requires_different_platforms(kalshi_bitcoin):
    assert not are_equivalent(kalshi_bitcoin, kalshi_bitcoin)


def test_are_equivalent_multi_outcome_needs_outcome_overlap():
    """Multi-outcome markets must also share an outcome name."""
    a = make_market(Platform.KALSHI, "kalshi:1", "2028 Democratic nominee",
                    [("Newsom", 0.3), ("Shapiro", 0.2), ("Whitmer", 0.1)])
    b = make_market(Platform.POLYMARKET, "polymarket:1", "2028 Democratic nominee",
                    [("Newsom", 0.35), ("Buttigieg", 0.15), ("Ocasio-Cortez", 0.1)])
    c = make_market(Platform.POLYMARKET, "polymarket:2", "2028 Democratic nominee",
                    [("Harris", 0.35), ("Buttigieg", 0.15), ("Pritzker", 0.1)])
    assert are_equivalent(a, b)
    assert not are_equivalent(a, c)
    assert best_outcome_pair(a, b)[:2] == (0, 0)


def test_lexical_matcher_finds_cross_platform_pair(kalshi_bitcoin, polymarket_bitcoin):
    matcher = LexicalMatcher()
    matches = matcher.find_matches([kalshi_bitcoin, polymarket_bitcoin])

    assert len(matches) == 1
    match = matches[0]
    assert match.market_a.platform == Platform.KALSHI
    assert match.market_b.platform == Platform.POLYMARKET
    assert match.basis == "lexical"
    assert match.similarity > 0.4


def test_lexical_matcher_spread_gate(kalshi_bitcoin):
    """Equal prices leave nothing to promote."""
    flat = make_market(Platform.POLYMARKET, "polymarket:777", "Bitcoin to hit $100k by end of 2025",
                       [("Yes", 0.40), ("No", 0.60)])
    assert LexicalMatcher().find_matches([kalshi_bitcoin, flat]) == []


def test_lexical_matcher_ignores_same_platform(kalshi_bitcoin):
    twin = make_market(Platform.KALSHI, "kalshi:other", "Bitcoin to hit $100k by end of 2025",
                       [("Yes", 0.48), ("No", 0.52)])
    assert LexicalMatcher().find_matches([kalshi_bitcoin, twin]) == []


def test_align_outcomes_by_team_when_orders_differ(polymarket_game):
    """Outcomes listed in a different order are paired by the team they back."""
    kalshi = make_market(Platform.KALSHI, "kalshi:KXNFLGAME-25DEC18BALGB", "Baltimore at Green Bay Winner?",
                         [("Green Bay", 0.55), ("Baltimore", 0.48)])
    assert align_outcomes(kalshi, polymarket_game) == (1, 0)


def test_align_outcomes_resolves_yes_no_to_teams(kalshi_game, polymarket_game):
    """Kalshi 'Yes' backs the first-named team, so it pairs with Ravens."""
    assert align_outcomes(kalshi_game, polymarket_game) in {(0, 0), (1, 1)}


def test_align_outcomes_needs_matching_names(kalshi_bitcoin):
    other = make_market(Platform.POLYMARKET, "polymarket:777", "Bitcoin to hit $100k by end of 2025",
                        [("Above", 0.48), ("Below", 0.52)])
    assert align_outcomes(kalshi_bitcoin, other) is None
    assert LexicalMatcher().find_matches([kalshi_bitcoin, other]) == []
