"""
Polymarket data collector using Gamma API.

Documentation: https://docs.polymarket.com/#gamma-markets-api
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .. import config
from ..models import MarketRecord, Outcome, Platform
from ..retry import RetryPolicy
from ..utils.helpers import parse_float
from .base import BaseCollector

logger = logging.getLogger(__name__)

EVENTS_PAGE_SIZE = 100


def _json_list(value: Any) -> List[Any]:
    """Gamma returns outcomes/outcomePrices as JSON-encoded strings."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return []
    return value if isinstance(value, list) else []


def _is_past(end_date: Optional[str]) -> bool:
    if not end_date:
        return False
    try:
        end_dt = datetime.fromisoformat(end_date.replace('Z', '+00:00'))
    except ValueError:
        return False
    if end_dt.tzinfo is None:
        end_dt = end_dt.replace(tzinfo=timezone.utc)
    return end_dt < datetime.now(timezone.utc)


class PolymarketCollector(BaseCollector):
    """Collector for Polymarket data via Gamma API."""

    platform = Platform.POLYMARKET
    supports_slugs = True

    def __init__(
        self,
        timeout: int = config.REQUEST_TIMEOUT,
        retry_policy: Optional[RetryPolicy] = None,
        base_url: str = config.GAMMA_API_BASE,
    ):
        """
        Initialize Polymarket collector.

        Args:
            timeout: Request timeout in seconds
            retry_policy: Backoff policy for rate limits and server errors
            base_url: Gamma API base URL
        """
        super().__init__(base_url, timeout, retry_policy)

    def _fetch_events(self, params: Dict[str, Any], limit: Optional[int]) -> List[MarketRecord]:
        records: List[MarketRecord] = []
        offset = 0

        while True:
            page_params = dict(params)
            page_params.update({
                "active": "true",
                "closed": "false",
                "limit": EVENTS_PAGE_SIZE,
                "offset": offset,
            })
            events = self._get("/events", page_params)
            if not events:
                break

            for event in events:
                records.extend(self._parse_event(event))
                if limit and len(records) >= limit:
                    return records[:limit]

            offset += EVENTS_PAGE_SIZE
            logger.debug(f"Fetched {len(records)} markets so far, offset={offset}")

            # Fewer events than a page means we're at the end
            if len(events) < EVENTS_PAGE_SIZE:
                break

        return records

    def fetch_active_markets(self, limit: Optional[int] = None) -> List[MarketRecord]:
        """
        Fetch active markets from Polymarket using pagination.
        Only fetches markets that end in the future.

        Args:
            limit: Maximum number of markets to fetch (None = all markets)

        Returns:
            List of MarketRecord objects
        """
        try:
            logger.info("Fetching active Polymarket markets (future markets only)...")
            records = self._fetch_events({}, limit)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch Polymarket markets: {e}")
            return []

        logger.info(f"Fetched {len(records)} active Polymarket markets")
        return records

    def fetch_sport_markets(self, sport: str, limit: int = config.DEFAULT_PER_SPORT_LIMIT) -> List[MarketRecord]:
        """
        Fetch active markets for one league via its Gamma tag.

        Args:
            sport: Sport code ('nfl', 'nba', 'nhl', 'cbb', 'cfb')
            limit: Maximum number of markets to fetch

        Returns:
            List of MarketRecord objects
        """
        sport_config = config.SPORTS.get(sport)
        if sport_config is None:
            logger.warning(f"No Polymarket tag configured for sport: {sport}")
            return []

        try:
            records = self._fetch_events({"tag_slug": sport_config.polymarket_tag}, limit)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch Polymarket {sport} markets: {e}")
            return []

        logger.info(f"Fetched {len(records)} Polymarket {sport.upper()} markets")
        return records

    def fetch_event_by_slug(self, slug: str) -> List[MarketRecord]:
        """
        Look up a single event by slug (e.g. 'nfl-bal-gb-2025-12-18').

        Returns:
            The event's markets, or [] when the slug doesn't exist
        """
        try:
            events = self._get("/events", {"slug": slug})
        except requests.exceptions.RequestException as e:
            logger.warning(f"Polymarket slug lookup failed for {slug}: {e}")
            return []

        records: List[MarketRecord] = []
        for event in events or []:
            records.extend(self._parse_event(event))
        return records

    def _parse_event(self, event: Dict[str, Any]) -> List[MarketRecord]:
        records = []
        for market in event.get("markets", []):
            # Filter: only active, non-closed markets
            if market.get("closed") is True or market.get("active") is False:
                continue
            if _is_past(market.get("endDate") or market.get("end_date_iso")):
                continue
            try:
                record = self._parse_market(market, event)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse market: {e}")
                continue
            if record:
                records.append(record)
        return records

    def _parse_market(self, market: Dict[str, Any], event: Dict[str, Any]) -> Optional[MarketRecord]:
        """
        Parse a single market from Gamma API response.

        Args:
            market: Market data from API
            event: Parent event data

        Returns:
            MarketRecord object or None if the market has no id, title or prices
        """
        market_id = market.get("id") or market.get("conditionId")
        if not market_id:
            return None

        title = market.get("question") or event.get("title", "")
        if not title:
            return None

        names = _json_list(market.get("outcomes")) or ["Yes", "No"]
        prices = _json_list(market.get("outcomePrices"))
        if len(prices) != len(names):
            return None

        outcomes = tuple(
            Outcome(name=str(name), price=parse_float(price, default=float("nan")))
            for name, price in zip(names, prices)
        )

        slug = event.get("slug") or market.get("slug") or str(market_id)
        liquidity = market.get("liquidityNum", market.get("liquidity"))

        return MarketRecord(
            platform=Platform.POLYMARKET,
            id=f"polymarket:{market_id}",
            title=title,
            outcomes=outcomes,
            volume=parse_float(market.get("volumeNum", market.get("volume"))),
            liquidity=parse_float(liquidity) if liquidity is not None else None,
            link=f"https://polymarket.com/event/{slug}",
            date=market.get("gameStartTime") or market.get("endDate") or event.get("endDate"),
        )
