"""Shared fixtures: market factories, fake collectors and a fake embedding provider."""

import re
import zlib
from typing import Dict, List, Optional, Sequence

import pytest

from crossarb.embeddings import EmbeddingProvider, EmbeddingProviderError
from crossarb.models import MarketRecord, Outcome, Platform
from crossarb.retry import RetryPolicy
from crossarb.services.base import BaseCollector

EMBEDDING_DIM = 256


def make_market(platform, market_id, title, outcomes, volume=1000.0, liquidity=None, link="", date=None):
    """Build a MarketRecord from (name, price) pairs."""
    return MarketRecord(
        platform=platform,
        id=market_id,
        title=title,
        outcomes=tuple(Outcome(name=name, price=price) for name, price in outcomes),
        volume=volume,
        liquidity=liquidity,
        link=link,
        date=date,
    )


class FakeCollector(BaseCollector):
    """Collector serving canned records instead of calling an API."""

    def __init__(self, platform: Platform, markets=None, sport_markets=None,
                 slug_markets=None, supports_slugs=False, fail=False):
        super().__init__("http://fake", retry_policy=RetryPolicy(sleep=lambda _: None))
        self.platform = platform
        self.markets = list(markets or [])
        self.sport_markets: Dict[str, List[MarketRecord]] = dict(sport_markets or {})
        self.slug_markets: Dict[str, List[MarketRecord]] = dict(slug_markets or {})
        self.supports_slugs = supports_slugs
        self.fail = fail
        self.slug_requests: List[str] = []

    def fetch_active_markets(self, limit: Optional[int] = None) -> List[MarketRecord]:
        if self.fail:
            raise RuntimeError(f"{self.platform.value} is down")
        return self.markets[:limit] if limit else list(self.markets)

    def fetch_sport_markets(self, sport: str, limit: int = 200) -> List[MarketRecord]:
        if self.fail:
            raise RuntimeError(f"{self.platform.value} is down")
        return list(self.sport_markets.get(sport, []))[:limit]

    def fetch_event_by_slug(self, slug: str) -> List[MarketRecord]:
        self.slug_requests.append(slug)
        return list(self.slug_markets.get(slug, []))


class HashingEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words vectors via a stable hash, so shared words mean similar vectors."""

    def __init__(self, fail_on: Sequence[str] = (), status_code: Optional[int] = 503):
        self.calls: List[List[str]] = []
        self.fail_on = set(fail_on)
        self.status_code = status_code

    def embed(self, texts):
        self.calls.append(list(texts))
        if self.fail_on & set(texts):
            raise EmbeddingProviderError("provider unavailable", self.status_code)
        vectors = []
        for text in texts:
            vector = [0.0] * EMBEDDING_DIM
            for word in re.findall(r"[a-z0-9]+", text.lower()):
                vector[zlib.crc32(word.encode()) % EMBEDDING_DIM] += 1.0
            vectors.append(vector)
        return vectors


@pytest.fixture
def no_sleep_policy():
    return RetryPolicy(max_attempts=3, backoff=1.0, sleep=lambda _: None)


@pytest.fixture
def kalshi_game():
    """Single-contract Kalshi game market, as the collector builds it."""
    return make_market(
        Platform.KALSHI,
        "kalshi:KXNFLGAME-25DEC18BALGB",
        "Baltimore at Green Bay Winner?",
        [("Yes", 0.55), ("No", 0.45)],
        volume=50000.0,
        link="https://kalshi.com/markets/kxnflgame/professional-football-game/kxnflgame-25dec18balgb",
    )


@pytest.fixture
def polymarket_game():
    return make_market(
        Platform.POLYMARKET,
        "polymarket:501",
        "NFL: Ravens vs. Packers",
        [("Ravens", 0.42), ("Packers", 0.58)],
        volume=120000.0,
        liquidity=15000.0,
        link="https://polymarket.com/event/nfl-bal-gb-2025-12-18",
    )


@pytest.fixture
def kalshi_bitcoin():
    return make_market(
        Platform.KALSHI,
        "kalshi:KXBTC-25DEC31",
        "Will Bitcoin reach $100k in 2025?",
        [("Yes", 0.40), ("No", 0.60)],
        volume=1000.0,
    )


@pytest.fixture
def polymarket_bitcoin():
    return make_market(
        Platform.POLYMARKET,
        "polymarket:777",
        "Bitcoin to hit $100k by end of 2025",
        [("Yes", 0.48), ("No", 0.52)],
        volume=3000.0,
        liquidity=300.0,
    )
