"""
Turns match candidates into ranked, deduplicated arbitrage opportunities.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional

from . import config
from .calculator import calculate_arbitrage, platform_fee
from .events import extract_event_signature, resolve_outcome_pair
from .models import (
    ArbitrageOpportunity,
    EventSignature,
    Leg,
    MarketRecord,
    MatchCandidate,
    TeamResolution,
)
from .semantic import confidence_tier

logger = logging.getLogger(__name__)

SORT_KEYS = ("similarity", "spread", "volume")

TITLE_PAIR_SPLIT = re.compile(r"\s+(?:vs\.?|v\.?|at|@)\s+", re.I)


def market_liquidity(market: MarketRecord) -> float:
    """Reported liquidity, or 10% of volume when the platform reports none."""
    if market.liquidity is not None:
        return market.liquidity
    return market.volume * 0.1


def fill_totals(opportunity: ArbitrageOpportunity) -> ArbitrageOpportunity:
    markets = opportunity.markets
    opportunity.total_volume = sum(market.volume for market in markets)
    opportunity.avg_liquidity = (
        sum(market_liquidity(market) for market in markets) / len(markets) if markets else 0.0
    )
    return opportunity


def opposing_price(market: MarketRecord, outcome_index: int) -> float:
    """Price of the other side of an outcome: the sibling in a binary market, else 1 - price."""
    if len(market.outcomes) == 2:
        return market.outcomes[1 - outcome_index].price
    return 1.0 - market.outcomes[outcome_index].price


def _shared_signature(market_a: MarketRecord, market_b: MarketRecord) -> Optional[EventSignature]:
    signature_a = extract_event_signature(market_a)
    signature_b = extract_event_signature(market_b)
    if signature_a and signature_b and signature_a.teams == signature_b.teams:
        return signature_a
    return None


def build_opportunity(candidate: MatchCandidate, source: str = "semantic",
                      stake: float = config.DEFAULT_STAKE) -> Optional[ArbitrageOpportunity]:
    """
    Build an opportunity from a semantic or lexical candidate.

    The cheaper leg is the best buy. ROI prices buying that leg together with
    the opposing outcome of the dearer market.

    Returns:
        The opportunity, or None when both legs back the same team or the
        hedge does not profit after fees
    """
    leg_a = Leg(candidate.market_a, candidate.outcome_index_a,
                candidate.market_a.outcomes[candidate.outcome_index_a].price)
    leg_b = Leg(candidate.market_b, candidate.outcome_index_b,
                candidate.market_b.outcomes[candidate.outcome_index_b].price)
    best_buy, best_sell = (leg_a, leg_b) if leg_a.price <= leg_b.price else (leg_b, leg_a)

    signature = _shared_signature(candidate.market_a, candidate.market_b)
    if signature and len(best_sell.market.outcomes) == 2:
        resolution = resolve_outcome_pair(
            best_buy.market, best_buy.outcome_index,
            best_sell.market, 1 - best_sell.outcome_index,
            signature,
        )
        if resolution.status == TeamResolution.REJECTED:
            logger.debug(f"Both legs back {resolution.team_a}: {candidate.market_a.title[:40]}")
            return None

    spread = (best_sell.price - best_buy.price) * 100
    counter_price = opposing_price(best_sell.market, best_sell.outcome_index)
    calculation = calculate_arbitrage(
        best_buy.price,
        counter_price,
        stake,
        platform_fee(best_buy.platform),
        platform_fee(best_sell.platform),
    )
    if not calculation.is_valid:
        logger.debug(
            f"Unprofitable after fees (ROI {calculation.roi:.2f}%): {candidate.market_a.title[:40]}"
        )
        return None

    opportunity = ArbitrageOpportunity(
        id=f"{source}:{candidate.market_a.id}:{candidate.market_b.id}",
        markets=[candidate.market_a, candidate.market_b],
        best_buy=best_buy,
        best_sell=best_sell,
        spread=spread,
        max_spread=spread,
        roi=calculation.roi,
        title=candidate.market_a.title,
        confidence_tier=confidence_tier(candidate.similarity),
        similarity_score=candidate.similarity,
        event_key="|".join(signature.teams) if signature else None,
        source=source,
        metadata={
            "opposing_price": counter_price,
            "basis": candidate.basis,
            "net_profit": calculation.net_profit,
        },
    )
    return fill_totals(opportunity)


def _title_pair_key(title: str) -> str:
    parts = TITLE_PAIR_SPLIT.split(title.strip().rstrip("?"))
    if len(parts) == 2:
        return "|".join(sorted(part.strip().lower() for part in parts))
    return title.strip().lower()


def event_key_of(opportunity: ArbitrageOpportunity) -> str:
    return opportunity.event_key or _title_pair_key(opportunity.title)


def deduplicate_by_event(opportunities: Iterable[ArbitrageOpportunity]) -> List[ArbitrageOpportunity]:
    """Keep one opportunity per event (team pair), the one with the largest max_spread."""
    best: Dict[str, ArbitrageOpportunity] = {}
    for opportunity in opportunities:
        key = event_key_of(opportunity)
        current = best.get(key)
        if current is None or opportunity.max_spread > current.max_spread:
            best[key] = opportunity
    return list(best.values())


def sort_opportunities(opportunities: List[ArbitrageOpportunity],
                       sort_by: str = config.DEFAULT_SORT) -> List[ArbitrageOpportunity]:
    if sort_by == "similarity":
        key = lambda o: (o.similarity_score or 0.0, o.max_spread)
    elif sort_by == "spread":
        key = lambda o: (o.max_spread, o.roi)
    elif sort_by == "volume":
        key = lambda o: (o.total_volume, o.max_spread)
    else:
        raise ValueError(f"Unknown sort key: {sort_by} (expected one of {', '.join(SORT_KEYS)})")
    return sorted(opportunities, key=key, reverse=True)


def assemble(
    semantic: Iterable[ArbitrageOpportunity],
    sports: Iterable[ArbitrageOpportunity] = (),
    sort_by: str = config.DEFAULT_SORT,
    min_spread: float = config.DEFAULT_MIN_SPREAD,
    limit: Optional[int] = None,
) -> List[ArbitrageOpportunity]:
    """
    Merge opportunity lists into the caller's final ranking.

    Args:
        semantic: Opportunities from the semantic or lexical matcher
        sports: Opportunities from the sport-aware matcher
        sort_by: 'similarity', 'spread' or 'volume'
        min_spread: Minimum max_spread, in percentage points
        limit: Maximum number of opportunities returned

    Returns:
        Sorted opportunities, each unique by id and above min_spread
    """
    merged: Dict[str, ArbitrageOpportunity] = {}
    for opportunity in list(semantic) + list(sports):
        if opportunity.id in merged:
            continue
        merged[opportunity.id] = fill_totals(opportunity)

    ranked = sort_opportunities(list(merged.values()), sort_by)
    ranked = [o for o in ranked if o.max_spread >= min_spread]

    logger.info(f"Assembled {len(ranked)} opportunities (min spread {min_spread}pp)")
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
