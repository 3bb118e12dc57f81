"""
Retry with exponential backoff, shared by the platform collectors and the
embedding service.
"""

import logging
import time
from typing import Any, Callable, Iterable, Optional, TypeVar

import requests

from . import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


def status_code_of(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an exception, if any."""
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) is not None:
        return response.status_code
    return getattr(exc, "status_code", None)


class RetryPolicy:
    """
    Retry a blocking call on rate limits, server errors and connection failures.

    Client errors (4xx other than 429) are raised immediately. The final
    failure is re-raised to the caller, which decides how to degrade.
    """

    def __init__(
        self,
        max_attempts: int = config.RETRY_ATTEMPTS,
        backoff: float = config.RETRY_BACKOFF_BASE,
        retry_status_codes: Iterable[int] = config.RETRY_STATUS_CODES,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            max_attempts: Total attempts, including the first
            backoff: Base delay in seconds, doubled after each failure
            retry_status_codes: HTTP statuses worth retrying
            sleep: Delay function (injectable so tests don't wait)
        """
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.retry_status_codes = set(retry_status_codes)
        self.sleep = sleep

    def delay(self, attempt: int) -> float:
        return self.backoff * (2 ** attempt)

    def is_retryable(self, exc: BaseException) -> bool:
        if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
            return True
        status_code = status_code_of(exc)
        if status_code is None:
            # Provider errors without a status are transport failures
            return hasattr(exc, "status_code")
        return status_code in self.retry_status_codes

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke func, retrying retryable failures with backoff."""
        for attempt in range(self.max_attempts):
            try:
                return func(*args, **kwargs)
            except (requests.exceptions.RequestException, OSError, RuntimeError) as e:
                if not self.is_retryable(e) or attempt >= self.max_attempts - 1:
                    raise
                delay = self.delay(attempt)
                logger.warning(
                    f"{e.__class__.__name__} ({status_code_of(e) or 'no status'}), "
                    f"retrying in {delay}s (attempt {attempt + 1}/{self.max_attempts})"
                )
                self.sleep(delay)

        raise RuntimeError("All retry attempts exhausted")
