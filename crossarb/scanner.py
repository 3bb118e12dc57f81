"""
The per-request scan pipeline: collect, match, price, rank.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Union

from . import config
from .embeddings import EmbeddingCache, EmbeddingService, get_embedding_provider
from .models import ArbitrageOpportunity, MarketRecord, is_well_formed
from .opportunities import assemble, build_opportunity
from .semantic import SemanticMatcher
from .services import BaseCollector, KalshiCollector, PolymarketCollector
from .similarity import LexicalMatcher
from .sports import SportsArbitrageFinder

logger = logging.getLogger(__name__)


class ArbitrageScanner:
    """
    Joins collectors, matchers and the sports finder into one scan.

    Semantic matching is used when an embedding provider is configured;
    otherwise the lexical matcher takes its place.
    """

    def __init__(
        self,
        collectors: Optional[Sequence[BaseCollector]] = None,
        matcher: Optional[Union[SemanticMatcher, LexicalMatcher]] = None,
        sports_finder: Optional[SportsArbitrageFinder] = None,
        embedding_cache: Optional[EmbeddingCache] = None,
    ):
        """
        Args:
            collectors: Platform collectors (default: Polymarket and Kalshi)
            matcher: Market matcher (default: semantic if configured, else lexical)
            sports_finder: Sport-aware matcher (default: built over the same collectors)
            embedding_cache: Shared embedding cache, reused across scans
        """
        self.collectors = list(collectors) if collectors is not None else [
            PolymarketCollector(),
            KalshiCollector(),
        ]

        if matcher is None:
            provider = get_embedding_provider()
            if provider is not None:
                service = EmbeddingService(provider, cache=embedding_cache)
                matcher = SemanticMatcher(service)
            else:
                matcher = LexicalMatcher()
        self.matcher = matcher
        self.sports_finder = sports_finder or SportsArbitrageFinder(self.collectors)
        self.market_counts: Dict[str, int] = {}

    @property
    def source(self) -> str:
        return "semantic" if isinstance(self.matcher, SemanticMatcher) else "lexical"

    async def collect(self, limit: Optional[int] = config.DEFAULT_SCAN_LIMIT) -> List[MarketRecord]:
        """Fetch every platform concurrently and drop malformed records."""
        logger.info("Starting data collection from available platforms...")
        loop = asyncio.get_running_loop()
        tasks = [
            loop.run_in_executor(None, collector.fetch_active_markets, limit)
            for collector in self.collectors
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        markets: List[MarketRecord] = []
        for collector, result in zip(self.collectors, results):
            name = collector.platform.value
            if isinstance(result, BaseException):
                logger.error(f"{name} collection failed: {result}")
                self.market_counts[name] = 0
                continue
            well_formed = [market for market in result if is_well_formed(market)]
            if len(well_formed) < len(result):
                logger.debug(f"Dropped {len(result) - len(well_formed)} malformed {name} records")
            if not well_formed:
                logger.warning(f"No {name} data collected")
            self.market_counts[name] = len(well_formed)
            markets.extend(well_formed)

        return markets

    async def _match(self, limit: Optional[int]) -> List[ArbitrageOpportunity]:
        markets = await self.collect(limit)
        if not markets:
            return []
        loop = asyncio.get_running_loop()
        candidates = await loop.run_in_executor(None, self.matcher.find_matches, markets)
        built = [build_opportunity(candidate, self.source) for candidate in candidates]
        opportunities = [opportunity for opportunity in built if opportunity is not None]
        if len(opportunities) < len(built):
            logger.info(f"Dropped {len(built) - len(opportunities)} {self.source} candidates with no valid hedge")
        return opportunities

    async def scan(
        self,
        limit: Optional[int] = config.DEFAULT_SCAN_LIMIT,
        min_spread: float = config.DEFAULT_MIN_SPREAD,
        sort_by: str = config.DEFAULT_SORT,
        min_roi: float = config.DEFAULT_MIN_ROI,
        include_semantic: bool = True,
        include_sports: bool = True,
        per_sport_limit: int = config.DEFAULT_PER_SPORT_LIMIT,
    ) -> List[ArbitrageOpportunity]:
        """
        Run one full scan.

        Args:
            limit: Maximum markets fetched per platform for general matching
            min_spread: Minimum max_spread (percentage points) to report
            sort_by: 'similarity', 'spread' or 'volume'
            min_roi: Minimum ROI (percent) for sports opportunities
            include_semantic: Run the semantic/lexical matcher
            include_sports: Run the sport-aware matcher
            per_sport_limit: Maximum markets fetched per platform per sport

        Returns:
            Ranked opportunities; [] when every source fails
        """
        branches = []
        if include_semantic:
            branches.append(self._match(limit))
        if include_sports:
            branches.append(self.sports_finder.find_sports_arbitrage(per_sport_limit, min_roi))

        results = await asyncio.gather(*branches)

        matched = results[0] if include_semantic else []
        sports = results[-1] if include_sports else []
        logger.info(f"Scan found {len(matched)} {self.source} and {len(sports)} sports opportunities")

        return assemble(matched, sports, sort_by=sort_by, min_spread=min_spread)
