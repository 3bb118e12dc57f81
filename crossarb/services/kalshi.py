"""
Kalshi data collector using their public API.

Documentation: https://docs.kalshi.com/
API Endpoint: https://api.elections.kalshi.com/trade-api/v2
Authentication: Optional API key for higher rate limits

Kalshi lists one binary market per contract and groups them under an event
ticker. A game event ("Baltimore at Green Bay Winner?") has one market per team,
so markets are regrouped per event into a single MarketRecord whose outcomes are
the per-team contracts. A single-market event becomes a Yes/No record.
"""

import logging
import os
import re
from collections import OrderedDict
from typing import Any, Dict, List, Optional

import requests

from .. import config
from ..models import MarketRecord, Outcome, Platform
from ..retry import RetryPolicy
from ..utils.helpers import parse_float
from .base import BaseCollector

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000  # Kalshi max per request


def slugify(value: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', (value or "").lower()).strip('-')
    return re.sub(r'-{2,}', '-', slug)


def series_from_event_ticker(event_ticker: str) -> str:
    """'KXNBAGAME-25DEC20BOSTOR' -> 'KXNBAGAME'."""
    match = re.match(r'^([A-Z0-9]+?)-\d', event_ticker or "")
    return match.group(1) if match else event_ticker


def build_link(series_ticker: str, event_ticker: str, series_title: str = "") -> str:
    """https://kalshi.com/markets/{series}/{series-title-slug}/{event}"""
    if not series_ticker or not event_ticker:
        return "https://kalshi.com/markets"
    return (
        f"https://kalshi.com/markets/{series_ticker.lower()}/"
        f"{slugify(series_title) or 'market'}/{event_ticker.lower()}"
    )


def _yes_price(market: Dict[str, Any]) -> float:
    """Yes price in 0-1 from bid or last trade (cents, or the *_dollars fields)."""
    for field in ("yes_bid", "last_price"):
        cents = parse_float(market.get(field))
        if cents > 0:
            return cents / 100.0
    for field in ("yes_bid_dollars", "last_price_dollars"):
        dollars = parse_float(market.get(field))
        if dollars > 0:
            return dollars
    return 0.0


class KalshiCollector(BaseCollector):
    """Collector for Kalshi data."""

    platform = Platform.KALSHI

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = config.REQUEST_TIMEOUT,
        retry_policy: Optional[RetryPolicy] = None,
        base_url: str = config.KALSHI_API_BASE,
    ):
        """
        Initialize Kalshi collector.

        Args:
            api_key: Kalshi API key (optional, for authenticated requests)
            timeout: Request timeout in seconds
            retry_policy: Backoff policy for rate limits and server errors
            base_url: Trade API base URL
        """
        super().__init__(base_url, timeout, retry_policy)
        self.api_key = api_key or os.getenv("KALSHI_API_KEY")

        if self.api_key:
            self.session.headers.update({
                "Authorization": f"Bearer {self.api_key}"
            })
            logger.info("Kalshi API key configured")
        else:
            logger.info("Kalshi running without API key (public data only)")

    def _fetch_markets(self, params: Dict[str, Any], limit: Optional[int]) -> List[Dict[str, Any]]:
        """Page through /markets until the cursor runs out or `limit` raw markets are read."""
        raw_markets: List[Dict[str, Any]] = []
        cursor = None

        while True:
            page_params = dict(params)
            page_params["limit"] = min(PAGE_SIZE, limit) if limit else PAGE_SIZE
            if cursor:
                page_params["cursor"] = cursor

            data = self._get("/markets", page_params)
            raw_markets.extend(data.get("markets", []))

            if limit and len(raw_markets) >= limit:
                break

            cursor = data.get("cursor")
            if not cursor:
                break

            logger.debug(f"Fetched {len(raw_markets)} markets so far, continuing...")

        return raw_markets[:limit] if limit else raw_markets

    def fetch_active_markets(self, limit: Optional[int] = None) -> List[MarketRecord]:
        """
        Fetch open markets from Kalshi, grouped per event.

        Args:
            limit: Maximum number of raw markets to read (None = all markets)

        Returns:
            List of MarketRecord objects
        """
        try:
            logger.info("Fetching Kalshi markets...")
            raw_markets = self._fetch_markets({"status": "open"}, limit)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch Kalshi markets: {e}")
            return []

        records = self._group_events(raw_markets)
        logger.info(f"Fetched {len(records)} Kalshi events ({len(raw_markets)} markets)")
        return records

    def fetch_sport_markets(self, sport: str, limit: int = config.DEFAULT_PER_SPORT_LIMIT) -> List[MarketRecord]:
        """
        Fetch open single-game markets for one sport via its series ticker.

        Args:
            sport: Sport code ('nfl', 'nba', 'nhl', 'cbb', 'cfb')
            limit: Maximum number of raw markets to read

        Returns:
            List of MarketRecord objects, one per game
        """
        sport_config = config.SPORTS.get(sport)
        if sport_config is None:
            logger.warning(f"No Kalshi series configured for sport: {sport}")
            return []

        try:
            raw_markets = self._fetch_markets(
                {"status": "open", "series_ticker": sport_config.kalshi_series},
                min(limit, PAGE_SIZE),
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch Kalshi {sport} markets: {e}")
            return []

        records = self._group_events(raw_markets, sport_config.kalshi_series_title)
        logger.info(
            f"Fetched {len(records)} Kalshi {sport.upper()} events "
            f"(series_ticker={sport_config.kalshi_series})"
        )
        return records

    def _group_events(self, raw_markets: List[Dict[str, Any]], series_title: str = "") -> List[MarketRecord]:
        events: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        for market in raw_markets:
            event_ticker = market.get("event_ticker") or market.get("ticker")
            if not event_ticker:
                continue
            events.setdefault(event_ticker, []).append(market)

        records = []
        for event_ticker, markets in events.items():
            try:
                record = self._parse_event(event_ticker, markets, series_title)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse Kalshi event {event_ticker}: {e}")
                continue
            if record:
                records.append(record)
        return records

    def _parse_event(self, event_ticker: str, markets: List[Dict[str, Any]],
                     series_title: str = "") -> Optional[MarketRecord]:
        """
        Build one MarketRecord from the markets of an event.

        Args:
            event_ticker: Kalshi event ticker
            markets: Raw markets sharing that event ticker

        Returns:
            MarketRecord object or None if the event has no usable title
        """
        first = markets[0]
        title = first.get("title") or first.get("event_title") or first.get("subtitle") or ""
        if not title:
            return None

        if len(markets) == 1:
            yes_price = _yes_price(first) or 0.5
            hint = first.get("yes_sub_title") or None
            outcomes = (
                Outcome(name="Yes", price=yes_price, color="green", team_hint=hint),
                Outcome(name="No", price=round(1.0 - yes_price, 4), color="red"),
            )
        else:
            outcome_list = []
            for market in markets:
                name = market.get("yes_sub_title") or market.get("subtitle") or market.get("title") or ""
                outcome_list.append(Outcome(
                    name=name,
                    price=_yes_price(market),
                    color="blue",
                    team_hint=market.get("yes_sub_title") or None,
                ))
            outcome_list.sort(key=lambda outcome: outcome.price, reverse=True)
            outcomes = tuple(outcome_list)

        volume = sum(parse_float(market.get("volume")) for market in markets)
        liquidity_values = [parse_float(market.get("liquidity")) for market in markets if market.get("liquidity") is not None]
        liquidity = sum(liquidity_values) / 100.0 if liquidity_values else None

        series_ticker = first.get("series_ticker") or series_from_event_ticker(event_ticker)
        event_date = first.get("expected_expiration_time") or first.get("close_time")

        return MarketRecord(
            platform=Platform.KALSHI,
            id=f"kalshi:{event_ticker}",
            title=title,
            outcomes=outcomes,
            volume=volume,
            liquidity=liquidity,
            link=build_link(series_ticker, event_ticker, series_title or first.get("series_title", "")),
            date=event_date,
        )
