"""
Data models for the arbitrage scanner.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Platform(str, Enum):
    """Supported prediction-market platforms."""

    KALSHI = "Kalshi"
    POLYMARKET = "Polymarket"
    PREDICTIT = "PredictIt"
    MANIFOLD = "Manifold"


class TeamResolution(str, Enum):
    """Outcome of resolving two outcomes to the teams they back."""

    CONFIRMED = "confirmed"
    UNRESOLVED_GROUPED = "unresolved_grouped"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Outcome:
    """One resolvable result within a market."""

    name: str
    price: float           # 0.00 ~ 1.00
    percentage: int = -1   # 0 ~ 100, derived from price when omitted
    color: Optional[str] = None
    team_hint: Optional[str] = None

    def __post_init__(self):
        if self.percentage < 0 and isinstance(self.price, (int, float)) and math.isfinite(self.price):
            object.__setattr__(self, "percentage", int(round(self.price * 100)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "percentage": self.percentage,
            "color": self.color,
            "team_hint": self.team_hint,
        }


@dataclass(frozen=True)
class MarketRecord:
    """Normalized market listing, as produced by a collector."""

    platform: Platform
    id: str                      # Platform-prefixed, e.g. 'kalshi:KXNFLGAME-25DEC18BALGB'
    title: str
    outcomes: Tuple[Outcome, ...]
    volume: float = 0.0          # USD
    liquidity: Optional[float] = None
    link: str = ""
    date: Optional[str] = None   # End/game date as provided by the platform

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "id": self.id,
            "title": self.title,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "volume": self.volume,
            "liquidity": self.liquidity,
            "link": self.link,
            "date": self.date,
        }


def is_well_formed(market: MarketRecord) -> bool:
    """Reject records with no title, no outcomes, or unusable prices."""
    if not market.title or not market.title.strip():
        return False
    if not market.outcomes:
        return False
    for outcome in market.outcomes:
        price = outcome.price
        if not isinstance(price, (int, float)) or not math.isfinite(price):
            return False
        if price < 0.0 or price > 1.0:
            return False
    return True


@dataclass(frozen=True)
class EventSignature:
    """Real-world event key: a sorted team pair plus an optional date."""

    teams: Tuple[str, str]
    date: Optional[date] = None

    @property
    def key(self) -> str:
        parts = list(self.teams)
        if self.date:
            parts.append(self.date.isoformat())
        return "|".join(parts)

    @property
    def sport(self) -> str:
        return self.teams[0].split(":", 1)[0]

    def matches(self, other: "EventSignature", tolerance_days: int = 1) -> bool:
        """Same team pair, and dates absent on both sides or within tolerance."""
        if self.teams != other.teams:
            return False
        if self.date is None and other.date is None:
            return True
        if self.date is None or other.date is None:
            return False
        return abs((self.date - other.date).days) <= tolerance_days

    def __str__(self) -> str:
        return self.key


@dataclass
class MatchCandidate:
    """Transient cross-platform pairing produced during a matching pass."""

    market_a: MarketRecord
    market_b: MarketRecord
    outcome_index_a: int = 0
    outcome_index_b: int = 0
    similarity: Optional[float] = None
    basis: str = "similarity"

    def __post_init__(self):
        assert self.market_a.platform != self.market_b.platform, (
            f"Match candidates must span platforms: {self.market_a.id} / {self.market_b.id}"
        )


@dataclass
class Leg:
    """One side of an opportunity."""

    market: MarketRecord
    outcome_index: int
    price: float

    @property
    def platform(self) -> Platform:
        return self.market.platform

    @property
    def outcome(self) -> Outcome:
        return self.market.outcomes[self.outcome_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "market_id": self.market.id,
            "platform": self.platform.value,
            "outcome_index": self.outcome_index,
            "outcome": self.outcome.name,
            "price": self.price,
        }


@dataclass
class ArbitrageOpportunity:
    """Cross-platform pair whose prices leave room for a hedge."""

    id: str
    markets: List[MarketRecord]
    best_buy: Leg
    best_sell: Leg
    spread: float                 # percentage points between the two legs
    max_spread: float             # largest spread seen for this event
    roi: float                    # percent, from the arbitrage calculator
    title: str
    total_volume: float = 0.0
    avg_liquidity: float = 0.0
    confidence_tier: str = "low"
    similarity_score: Optional[float] = None
    event_key: Optional[str] = None
    source: str = "semantic"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        assert self.best_buy.price <= self.best_sell.price, (
            f"Best buy {self.best_buy.price} above best sell {self.best_sell.price}"
        )
        assert self.best_buy.platform != self.best_sell.platform, (
            f"Both legs on {self.best_buy.platform.value}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "source": self.source,
            "spread": self.spread,
            "max_spread": self.max_spread,
            "roi": self.roi,
            "total_volume": self.total_volume,
            "avg_liquidity": self.avg_liquidity,
            "confidence_tier": self.confidence_tier,
            "similarity_score": self.similarity_score,
            "event_key": self.event_key,
            "best_buy": self.best_buy.to_dict(),
            "best_sell": self.best_sell.to_dict(),
            "markets": [market.to_dict() for market in self.markets],
        }

    def __str__(self):
        return (
            f"Arbitrage Opportunity (spread: {self.spread:.2f}pp, ROI: {self.roi:.2f}%)\n"
            f"  Buy:  {self.best_buy.platform.value} @ {self.best_buy.price:.3f} "
            f"{self.best_buy.market.title[:50]}\n"
            f"  Sell: {self.best_sell.platform.value} @ {self.best_sell.price:.3f} "
            f"{self.best_sell.market.title[:50]}\n"
            f"  Confidence: {self.confidence_tier}\n"
        )


@dataclass
class ArbitrageCalculation:
    """Stake split and profitability for a priced opposing pair."""

    investment_a: float
    investment_b: float
    payout: float
    fee_a: float
    fee_b: float
    total_fees: float
    net_profit: float
    roi: float
    is_valid: bool
