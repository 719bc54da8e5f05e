"""
Price Feed Service
Fetches the live BTC/USD index price over HTTP.

Usage:
    feed = PriceFeedService(settings)
    sample = feed.current_price()   # retries, then falls back to last known
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests

from config import Settings
from core import DataSource, PriceSample


logger = logging.getLogger(__name__)


class PriceFetchError(RuntimeError):
    """The live price could not be obtained"""


@dataclass
class FeedStats:
    """Price feed statistics"""
    requests_made: int = 0
    failures: int = 0
    cache_hits: int = 0
    fallbacks: int = 0
    last_price: Optional[float] = None
    last_fetch_time: Optional[datetime] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requests_made": self.requests_made,
            "failures": self.failures,
            "cache_hits": self.cache_hits,
            "fallbacks": self.fallbacks,
            "last_price": self.last_price,
            "last_fetch_time": self.last_fetch_time.isoformat() if self.last_fetch_time else None,
            "last_error": self.last_error,
        }


class PriceFeedService:
    """
    Bull Bitcoin index price client.

    The API answers a JSON-RPC `getUserRate` call with the price in cents.
    Responses are cached for `settings.cache_seconds`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or Settings()
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock
        self._cache: Optional[PriceSample] = None
        self._cached_at: Optional[float] = None
        self.stats = FeedStats()

    @staticmethod
    def payload() -> Dict[str, Any]:
        return {
            "id": "bitcoin-price-gauge",
            "jsonrpc": "2.0",
            "method": "getUserRate",
            "params": {
                "element": {
                    "fromCurrency": "BTC",
                    "toCurrency": "USD",
                }
            },
        }

    @property
    def last_known(self) -> Optional[PriceSample]:
        return self._cache

    def fetch(self) -> PriceSample:
        """
        One request to the price API.

        Raises:
            PriceFetchError on transport errors, bad status codes, unexpected
            payloads and non-finite or non-positive prices
        """
        self.stats.requests_made += 1
        try:
            resp = self.session.post(
                self.settings.price_api_url,
                json=self.payload(),
                timeout=self.settings.request_timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise PriceFetchError(f"Price request failed: {exc}") from exc

        cents = ((data.get("result") or {}).get("element") or {}).get("price") if isinstance(data, dict) else None
        if isinstance(cents, bool) or not isinstance(cents, (int, float)):
            raise PriceFetchError(f"Unexpected price response: {data!r}")

        price = cents / 100
        if not math.isfinite(price) or price <= 0:
            raise PriceFetchError(f"Rejected price from API: {price!r}")

        sample = PriceSample(ts=datetime.now(timezone.utc), price=price, source=DataSource.LIVE)
        self._cache = sample
        self._cached_at = self._clock()
        self.stats.last_price = price
        self.stats.last_fetch_time = sample.ts
        return sample

    def fetch_with_retry(self) -> PriceSample:
        """
        Fetch with caching and retries.

        Up to `max_retries` attempts; attempt n waits `backoff_seconds * n`
        before the next one.
        """
        if self._cache is not None and self._cached_at is not None:
            if self._clock() - self._cached_at < self.settings.cache_seconds:
                self.stats.cache_hits += 1
                return self._cache

        attempts = self.settings.max_retries
        for attempt in range(1, attempts + 1):
            try:
                return self.fetch()
            except PriceFetchError as exc:
                self.stats.failures += 1
                self.stats.last_error = str(exc)
                logger.warning(
                    "Price fetch attempt failed",
                    extra={"attempt": attempt, "max_attempts": attempts, "reason": str(exc)},
                )
                if attempt == attempts:
                    raise PriceFetchError(f"Failed to fetch price after {attempts} attempts") from exc
                self._sleep(self.settings.backoff_seconds * attempt)

        raise PriceFetchError("Failed to fetch price")

    def current_price(self) -> PriceSample:
        """
        Live price, falling back to the last known sample when every retry
        fails. Raises PriceFetchError if there is nothing to fall back to.
        """
        try:
            return self.fetch_with_retry()
        except PriceFetchError:
            if self._cache is None:
                raise
            self.stats.fallbacks += 1
            logger.warning(
                "Serving last known price",
                extra={"price": self._cache.price, "as_of": self._cache.ts.isoformat()},
            )
            return self._cache
