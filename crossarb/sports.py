"""
Sport-aware arbitrage: group game markets from every platform into real-world
events, then price opposing team outcomes across platforms.
"""

import asyncio
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from . import config
from .calculator import calculate_arbitrage, platform_fee
from .events import extract_event_signature, extract_teams, resolve_outcome_pair, signatures_match
from .models import (
    ArbitrageOpportunity,
    EventSignature,
    Leg,
    MarketRecord,
    TeamResolution,
    is_well_formed,
)
from .opportunities import deduplicate_by_event, fill_totals
from .services.base import BaseCollector
from .teams import get_team

logger = logging.getLogger(__name__)

PROP_KEYWORDS = re.compile(
    r"\b(player|yards|touchdowns?|points|rebounds|assists|goals|saves|over|under|spread|"
    r"total|handicap|o/u)\b",
    re.I,
)
UNUSABLE_OUTCOME = re.compile(r"\d|\b(over|under|spread|handicap)\b", re.I)
SLUG_IN_LINK = re.compile(r"polymarket\.com/event/([^/?#]+)")


@dataclass
class EventGroup:
    """Markets from any platform that refer to the same game."""

    signature: EventSignature
    markets: List[MarketRecord] = field(default_factory=list)

    @property
    def platforms(self) -> set:
        return {market.platform for market in self.markets}


def is_usable_outcome(name: str) -> bool:
    return not UNUSABLE_OUTCOME.search(name or "")


def is_team_win_market(market: MarketRecord, sport: Optional[str] = None) -> bool:
    """
    Keep moneyline-shaped markets, drop props, totals and spreads.

    A market passes when its title has no prop vocabulary and either every
    outcome is clean or at least one clean outcome names a team.
    """
    if PROP_KEYWORDS.search(market.title):
        return False
    clean = [outcome for outcome in market.outcomes if is_usable_outcome(outcome.name)]
    if len(clean) == len(market.outcomes):
        return True
    return any(extract_teams(outcome.name, sport) for outcome in clean)


def slug_of(market: MarketRecord) -> Optional[str]:
    match = SLUG_IN_LINK.search(market.link or "")
    return match.group(1) if match else None


def event_slugs(signature: EventSignature, sport: str) -> List[str]:
    """
    Candidate slugs '{sport}-{abbrev_a}-{abbrev_b}-{YYYY-MM-DD}' for an event.

    Both team orders, for the signature date and one day either side.
    """
    if signature.date is None:
        return []
    teams = [get_team(team_id) for team_id in signature.teams]
    if not all(teams):
        return []
    first, second = teams
    slugs = []
    for offset in (0, -1, 1):
        day = (signature.date + timedelta(days=offset)).isoformat()
        for a, b in ((first, second), (second, first)):
            slugs.append(f"{sport}-{a.abbrev}-{b.abbrev}-{day}")
    return slugs


def group_events(markets: Iterable[MarketRecord], sport: Optional[str] = None,
                 tolerance_days: int = config.DATE_TOLERANCE_DAYS) -> List[EventGroup]:
    """
    Group markets by event signature.

    A market joins the first group whose team pair matches within the date
    tolerance; otherwise it starts a new group. Markets without a signature
    are left out.
    """
    groups: List[EventGroup] = []
    for market in markets:
        signature = extract_event_signature(market, sport)
        if signature is None:
            continue
        for group in groups:
            if signatures_match(group.signature, signature, tolerance_days):
                group.markets.append(market)
                break
        else:
            groups.append(EventGroup(signature, [market]))
    return groups


def event_title(signature: EventSignature) -> str:
    names = []
    for team_id in signature.teams:
        team = get_team(team_id)
        names.append(team.name if team else team_id)
    return " vs ".join(names)


class SportsArbitrageFinder:
    """Finds opposing-outcome arbitrage in single-game markets, one sport at a time."""

    def __init__(
        self,
        collectors: Sequence[BaseCollector],
        sports: Optional[Sequence[str]] = None,
        stake: float = config.DEFAULT_STAKE,
        tolerance_days: int = config.DATE_TOLERANCE_DAYS,
    ):
        """
        Args:
            collectors: Platform collectors to query
            sports: Sport codes to process, in order (default: every configured sport)
            stake: Total stake used to score each pair
            tolerance_days: Date tolerance when grouping markets into events
        """
        self.collectors = list(collectors)
        self.sports = list(sports) if sports else list(config.SPORTS)
        self.stake = stake
        self.tolerance_days = tolerance_days

    async def find_sports_arbitrage(
        self,
        per_sport_limit: int = config.DEFAULT_PER_SPORT_LIMIT,
        min_roi: float = config.DEFAULT_MIN_ROI,
    ) -> List[ArbitrageOpportunity]:
        """
        Run every configured sport and deduplicate by event.

        Args:
            per_sport_limit: Maximum markets fetched per collector per sport
            min_roi: Minimum ROI (percent) after fees

        Returns:
            One opportunity per event, the one with the largest spread
        """
        opportunities: List[ArbitrageOpportunity] = []
        for sport in self.sports:
            found = await self.find_for_sport(sport, per_sport_limit, min_roi)
            logger.info(f"Found {len(found)} {sport.upper()} opportunities")
            opportunities.extend(found)

        deduplicated = deduplicate_by_event(opportunities)
        logger.info(
            f"Sports arbitrage: {len(deduplicated)} events ({len(opportunities)} opportunities before dedup)"
        )
        return deduplicated

    async def _fetch_sport(self, sport: str, limit: int) -> List[MarketRecord]:
        loop = asyncio.get_running_loop()
        tasks = [
            loop.run_in_executor(None, collector.fetch_sport_markets, sport, limit)
            for collector in self.collectors
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        markets: List[MarketRecord] = []
        for collector, result in zip(self.collectors, results):
            if isinstance(result, BaseException):
                logger.error(f"{collector.platform.value} {sport} fetch failed: {result}")
                continue
            markets.extend(market for market in result if is_well_formed(market))
        return markets

    async def _slug_fallback(
        self,
        group: EventGroup,
        sport: str,
        slug_lookup: Dict[str, List[MarketRecord]],
    ) -> List[MarketRecord]:
        """Find the missing platform's markets for an event by slug."""
        present = group.platforms
        slug_collectors = [
            collector for collector in self.collectors
            if collector.supports_slugs and collector.platform not in present
        ]
        loop = asyncio.get_running_loop()

        for slug in event_slugs(group.signature, sport):
            found = [m for m in slug_lookup.get(slug, []) if m.platform not in present]
            for collector in slug_collectors:
                if found:
                    break
                fetched = await loop.run_in_executor(None, collector.fetch_event_by_slug, slug)
                found = [m for m in fetched if is_well_formed(m)]

            found = [m for m in found if self._belongs(m, group, sport)]
            if found:
                logger.debug(f"Slug fallback {slug} added {len(found)} markets to {group.signature}")
                return found
        return []

    def _belongs(self, market: MarketRecord, group: EventGroup, sport: str) -> bool:
        if not is_team_win_market(market, sport):
            return False
        signature = extract_event_signature(market, sport)
        # The slug already pins the event; only reject a clearly different game
        return signature is None or signature.teams == group.signature.teams

    async def find_for_sport(
        self,
        sport: str,
        limit: int = config.DEFAULT_PER_SPORT_LIMIT,
        min_roi: float = config.DEFAULT_MIN_ROI,
    ) -> List[ArbitrageOpportunity]:
        """Fetch, group and price one sport's markets."""
        markets = await self._fetch_sport(sport, limit)
        if not markets:
            return []

        slug_lookup: Dict[str, List[MarketRecord]] = {}
        for market in markets:
            slug = slug_of(market)
            if slug:
                slug_lookup.setdefault(slug, []).append(market)

        candidates = [market for market in markets if is_team_win_market(market, sport)]
        groups = group_events(candidates, sport, self.tolerance_days)
        logger.info(
            f"{sport.upper()}: {len(markets)} markets, {len(candidates)} team-win, {len(groups)} events"
        )

        opportunities: List[ArbitrageOpportunity] = []
        for group in groups:
            if len(group.platforms) < 2:
                group.markets.extend(await self._slug_fallback(group, sport, slug_lookup))
            if len(group.platforms) < 2:
                continue
            opportunities.extend(self.price_group(group, min_roi))
        return opportunities

    def price_group(self, group: EventGroup,
                    min_roi: float = config.DEFAULT_MIN_ROI) -> List[ArbitrageOpportunity]:
        """Score every cross-platform pair of opposing outcomes within one event."""
        opportunities = []
        markets = group.markets
        for i, market_a in enumerate(markets):
            for market_b in markets[i + 1:]:
                if market_a.platform == market_b.platform:
                    continue
                for index_a, outcome_a in enumerate(market_a.outcomes):
                    if not is_usable_outcome(outcome_a.name):
                        continue
                    for index_b, outcome_b in enumerate(market_b.outcomes):
                        if not is_usable_outcome(outcome_b.name):
                            continue
                        opportunity = self._price_pair(group, market_a, index_a, market_b, index_b, min_roi)
                        if opportunity:
                            opportunities.append(opportunity)
        return opportunities

    def _price_pair(
        self,
        group: EventGroup,
        market_a: MarketRecord,
        index_a: int,
        market_b: MarketRecord,
        index_b: int,
        min_roi: float,
    ) -> Optional[ArbitrageOpportunity]:
        signature = group.signature
        resolution = resolve_outcome_pair(market_a, index_a, market_b, index_b, signature)
        if resolution.status == TeamResolution.REJECTED:
            return None

        price_a = market_a.outcomes[index_a].price
        price_b = market_b.outcomes[index_b].price
        calculation = calculate_arbitrage(
            price_a,
            price_b,
            self.stake,
            platform_fee(market_a.platform),
            platform_fee(market_b.platform),
        )
        if not calculation.is_valid or not math.isfinite(calculation.roi) or calculation.roi < min_roi:
            logger.debug(
                f"No arbitrage {market_a.outcomes[index_a].name}@{price_a:.3f} / "
                f"{market_b.outcomes[index_b].name}@{price_b:.3f} (ROI {calculation.roi:.2f}%)"
            )
            return None

        if resolution.status == TeamResolution.UNRESOLVED_GROUPED:
            logger.warning(
                f"Accepting unresolved outcome pair in {signature}: "
                f"{market_a.outcomes[index_a].name!r} ({market_a.platform.value}) vs "
                f"{market_b.outcomes[index_b].name!r} ({market_b.platform.value})"
            )

        leg_a = Leg(market_a, index_a, price_a)
        leg_b = Leg(market_b, index_b, price_b)
        best_buy, best_sell = (leg_a, leg_b) if price_a <= price_b else (leg_b, leg_a)
        spread = (best_sell.price - best_buy.price) * 100

        opportunity = ArbitrageOpportunity(
            id=(
                f"sports:{market_a.id}:{market_b.id}:"
                f"{market_a.outcomes[index_a].name}:{market_b.outcomes[index_b].name}"
            ),
            markets=[market_a, market_b],
            best_buy=best_buy,
            best_sell=best_sell,
            spread=spread,
            max_spread=spread,
            roi=calculation.roi,
            title=event_title(signature),
            confidence_tier="high" if resolution.status == TeamResolution.CONFIRMED else "medium",
            event_key="|".join(signature.teams),
            source="sports",
            metadata={
                "resolution": resolution.status.value,
                "team_a": resolution.team_a,
                "team_b": resolution.team_b,
                "event_date": signature.date.isoformat() if signature.date else None,
                "opposing_price": best_sell.price,
                "net_profit": calculation.net_profit,
                "investment_a": calculation.investment_a,
                "investment_b": calculation.investment_b,
            },
        )
        logger.info(
            f"Sports arbitrage {opportunity.title}: ROI={calculation.roi:.2f}%, spread={spread:.2f}pp"
        )
        return fill_totals(opportunity)
