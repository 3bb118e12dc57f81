"""
Shared HTTP plumbing for platform collectors.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .. import config
from ..models import MarketRecord, Platform
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class BaseCollector:
    """
    Base class for collectors that turn a platform API into MarketRecords.

    Subclasses implement fetch_active_markets and fetch_sport_markets; slug
    lookup is only meaningful on platforms that publish event slugs.
    """

    platform: Platform
    supports_slugs = False

    def __init__(
        self,
        base_url: str,
        timeout: int = config.REQUEST_TIMEOUT,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Initialize collector.

        Args:
            base_url: Base URL for the platform API
            timeout: Request timeout in seconds
            retry_policy: Backoff policy for rate limits and server errors
        """
        self.base_url = base_url
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": config.USER_AGENT,
            "Accept": "application/json",
        })

    def _request(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET an endpoint with retry on 429/5xx and connection errors.

        Raises:
            requests.RequestException: If all retries fail
        """
        return self.retry_policy.call(self._request, f"{self.base_url}{endpoint}", params)

    def fetch_active_markets(self, limit: Optional[int] = None) -> List[MarketRecord]:
        raise NotImplementedError

    def fetch_sport_markets(self, sport: str, limit: int = config.DEFAULT_PER_SPORT_LIMIT) -> List[MarketRecord]:
        raise NotImplementedError

    def fetch_event_by_slug(self, slug: str) -> List[MarketRecord]:
        return []
