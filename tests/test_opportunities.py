"""Tests for opportunity building, deduplication and ranking."""

import pytest

from conftest import make_market

from crossarb.models import ArbitrageOpportunity, Leg, MatchCandidate, Platform
from crossarb.opportunities import (
    assemble,
    build_opportunity,
    deduplicate_by_event,
    market_liquidity,
    opposing_price,
    sort_opportunities,
)


def _opportunity(opp_id, spread, volume=1000.0, similarity=None, event_key=None, title="Ravens vs Packers"):
    buy = make_market(Platform.POLYMARKET, f"polymarket:{opp_id}", title, [("Yes", 0.40), ("No", 0.60)],
                      volume=volume)
    sell = make_market(Platform.KALSHI, f"kalshi:{opp_id}", title, [("Yes", 0.40 + spread / 100), ("No", 0.5)])
    return ArbitrageOpportunity(
        id=opp_id,
        markets=[buy, sell],
        best_buy=Leg(buy, 0, 0.40),
        best_sell=Leg(sell, 0, 0.40 + spread / 100),
        spread=spread,
        max_spread=spread,
        roi=1.0,
        title=title,
        similarity_score=similarity,
        event_key=event_key,
    )


def test_market_liquidity_falls_back_to_volume():
    market = make_market(Platform.KALSHI, "kalshi:1", "t", [("Yes", 0.5)], volume=1000.0)
    assert market_liquidity(market) == 100.0


def test_opposing_price():
    binary = make_market(Platform.POLYMARKET, "p:1", "t", [("Yes", 0.48), ("No", 0.52)])
    multi = make_market(Platform.POLYMARKET, "p:2", "t", [("A", 0.5), ("B", 0.3), ("C", 0.2)])
    assert opposing_price(binary, 0) == 0.52
    assert opposing_price(multi, 1) == pytest.approx(0.7)


def test_build_opportunity(kalshi_bitcoin, polymarket_bitcoin):
    """The cheaper leg is the buy; ROI uses the dearer market's opposing outcome."""
    candidate = MatchCandidate(kalshi_bitcoin, polymarket_bitcoin, similarity=0.8, basis="similarity")
    opportunity = build_opportunity(candidate, "semantic")

    assert opportunity.id == "semantic:kalshi:KXBTC-25DEC31:polymarket:777"
    assert opportunity.best_buy.platform == Platform.KALSHI
    assert opportunity.best_sell.platform == Platform.POLYMARKET
    assert opportunity.best_buy.price <= opportunity.best_sell.price
    assert opportunity.spread == pytest.approx(8.0)
    assert opportunity.max_spread == opportunity.spread
    assert opportunity.metadata["opposing_price"] == 0.52
    assert opportunity.roi == pytest.approx(7.83, abs=0.01)
    assert opportunity.confidence_tier == "high"
    assert opportunity.total_volume == 4000.0
    assert opportunity.avg_liquidity == pytest.approx((100.0 + 300.0) / 2)
    assert opportunity.event_key is None


def test_build_opportunity_event_key_for_games(kalshi_game, polymarket_game):
    """Kalshi 'Yes' backs Baltimore, so the hedge buys Ravens and Kalshi 'No'."""
    candidate = MatchCandidate(kalshi_game, polymarket_game, 0, 0, similarity=0.7)
    opportunity = build_opportunity(candidate, "lexical")
    assert opportunity.event_key == "nfl:packers|nfl:ravens"
    assert opportunity.confidence_tier == "low"
    assert opportunity.best_buy.outcome.name == "Ravens"
    assert opportunity.metadata["opposing_price"] == 0.45


def test_build_opportunity_rejects_same_team_hedge(kalshi_game, polymarket_game):
    """Ravens on Polymarket against Kalshi 'No' leaves Kalshi 'Yes' (Ravens again) as the hedge."""
    candidate = MatchCandidate(kalshi_game, polymarket_game, 1, 0, similarity=0.7)
    assert build_opportunity(candidate, "lexical") is None


def test_build_opportunity_drops_unprofitable_hedge(kalshi_bitcoin):
    """0.40 + 0.60 costs the whole payout, so fees make it a loss."""
    dear = make_market(Platform.POLYMARKET, "polymarket:777", "Bitcoin to hit $100k by end of 2025",
                       [("Yes", 0.42), ("No", 0.60)])
    candidate = MatchCandidate(kalshi_bitcoin, dear, similarity=0.8, basis="similarity")
    assert build_opportunity(candidate, "semantic") is None


def test_deduplicate_keeps_largest_spread():
    """Two opportunities on the same team pair collapse to the wider one."""
    small = _opportunity("a", 2.0, event_key="nfl:packers|nfl:ravens")
    large = _opportunity("b", 5.0, event_key="nfl:packers|nfl:ravens")
    other = _opportunity("c", 1.0, event_key="nba:celtics|nba:raptors")

    result = deduplicate_by_event([small, large, other])

    assert {o.id for o in result} == {"b", "c"}


def test_deduplicate_falls_back_to_title_pair():
    """Without an event key, reversed 'A vs B' titles are one event."""
    first = _opportunity("a", 2.0, title="Ravens vs Packers")
    second = _opportunity("b", 3.0, title="Packers vs Ravens")
    assert [o.id for o in deduplicate_by_event([first, second])] == ["b"]


def test_sort_strategies():
    a = _opportunity("a", 2.0, volume=5000.0, similarity=0.9)
    b = _opportunity("b", 6.0, volume=100.0, similarity=0.7)
    c = _opportunity("c", 4.0, volume=900.0, similarity=None)

    assert [o.id for o in sort_opportunities([a, b, c], "spread")] == ["b", "c", "a"]
    assert [o.id for o in sort_opportunities([a, b, c], "similarity")] == ["a", "b", "c"]
    # Volume covers both legs, set by assemble
    ranked = assemble([a, b, c], sort_by="volume", min_spread=0)
    assert [o.id for o in ranked] == ["a", "c", "b"]


def test_sort_unknown_key():
    with pytest.raises(ValueError):
        sort_opportunities([], "profit")


def test_assemble_filters_and_merges():
    """Duplicate ids are dropped and the min-spread filter uses max_spread."""
    semantic = [_opportunity("a", 3.0), _opportunity("b", 0.2)]
    sports = [_opportunity("a", 3.0), _opportunity("s", 4.0)]

    ranked = assemble(semantic, sports, sort_by="spread", min_spread=0.5)

    assert [o.id for o in ranked] == ["s", "a"]
    assert all(o.best_buy.price <= o.best_sell.price for o in ranked)
    assert all(o.best_buy.platform != o.best_sell.platform for o in ranked)


def test_assemble_limit():
    ranked = assemble([_opportunity(str(i), float(i + 1)) for i in range(5)], limit=2)
    assert [o.id for o in ranked] == ["4", "3"]
