"""
Price Aggregator
Converts a price sample stream to hourly and daily mean buckets.

Flow:
1. Sample arrives
2. Truncate its timestamp to the start of the UTC hour and UTC day
3. Update the running mean of both buckets (insert a new bucket in sorted
   position if the sample opens a new hour/day)

Only the mean and the sample count of each bucket are kept; individual
samples are never retained.
"""

from bisect import bisect_left
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from config import Granularity
from .models import AggregatedPoint, PriceSample, parse_timestamp


# =============================================================================
# Bucket keys
# =============================================================================

def hour_key(ts: datetime) -> str:
    """
    Hourly bucket key for a timestamp.

    Example:
        2024-01-01T00:59:00Z → 2024-01-01T00:00:00Z
    """
    ts = parse_timestamp(ts)
    return ts.strftime("%Y-%m-%dT%H:00:00Z")


def day_key(ts: datetime) -> str:
    """
    Daily bucket key for a timestamp.

    Example:
        2024-01-01T23:10:00Z → 2024-01-01
    """
    ts = parse_timestamp(ts)
    return ts.strftime("%Y-%m-%d")


def bucket_key(ts: datetime, granularity: Granularity) -> str:
    if granularity == Granularity.HOURLY:
        return hour_key(ts)
    return day_key(ts)


def key_to_datetime(key: str) -> datetime:
    """Bucket start time for an hourly or daily key"""
    if "T" in key:
        return datetime.strptime(key, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)
    return datetime.strptime(key, "%Y-%m-%d").replace(tzinfo=timezone.utc)


# =============================================================================
# Bucket Series
# =============================================================================

class _BucketSeries:
    """
    Sorted running-mean buckets for one granularity.

    Keys are ISO strings, so lexicographic order is chronological order.
    """

    def __init__(self, granularity: Granularity):
        self.granularity = granularity
        self._keys: List[str] = []
        # key -> [mean, count]
        self._buckets: Dict[str, List[float]] = {}

    def add(self, ts: datetime, price: float) -> bool:
        """Add a price to its bucket. Returns True if a new bucket was opened."""
        key = bucket_key(ts, self.granularity)
        bucket = self._buckets.get(key)

        if bucket is None:
            self._buckets[key] = [price, 1]
            self._keys.insert(bisect_left(self._keys, key), key)
            return True

        bucket[1] += 1
        bucket[0] += (price - bucket[0]) / bucket[1]
        return False

    def points(self) -> List[AggregatedPoint]:
        return [
            AggregatedPoint(
                key=key,
                ts=key_to_datetime(key),
                price=self._buckets[key][0],
                count=int(self._buckets[key][1]),
            )
            for key in self._keys
        ]

    def prices(self) -> List[float]:
        return [self._buckets[key][0] for key in self._keys]

    def latest_key(self) -> Optional[str]:
        return self._keys[-1] if self._keys else None

    def clear(self) -> None:
        self._keys.clear()
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._keys)


# =============================================================================
# Aggregator
# =============================================================================

class PriceAggregator:
    """
    Hourly + daily mean aggregation of a price sample stream.

    A single long-lived instance is owned by the ingestion engine. Readers get
    snapshot copies, so a later incremental add is never observed
    mid-computation.

    Usage:
        aggregator = PriceAggregator()
        aggregator.build(bootstrap_samples)

        aggregator.add(live_sample)
        daily = aggregator.daily()
    """

    def __init__(self):
        self._hourly = _BucketSeries(Granularity.HOURLY)
        self._daily = _BucketSeries(Granularity.DAILY)
        self._version = 0
        self._samples_seen = 0

    def build(self, samples: Iterable[PriceSample]) -> None:
        """Replace all buckets with an aggregation of a full sample set"""
        self._hourly.clear()
        self._daily.clear()
        self._samples_seen = 0
        for sample in sorted(samples, key=lambda s: s.ts):
            self._hourly.add(sample.ts, sample.price)
            self._daily.add(sample.ts, sample.price)
            self._samples_seen += 1
        self._version += 1

    def add(self, sample: PriceSample) -> None:
        """Fold one new sample into its hourly and daily buckets"""
        self._hourly.add(sample.ts, sample.price)
        self._daily.add(sample.ts, sample.price)
        self._samples_seen += 1
        self._version += 1

    # =========================================================================
    # Snapshots
    # =========================================================================

    def series(self, granularity: Granularity) -> List[AggregatedPoint]:
        return self._select(granularity).points()

    def hourly(self) -> List[AggregatedPoint]:
        return self._hourly.points()

    def daily(self) -> List[AggregatedPoint]:
        return self._daily.points()

    def hourly_prices(self) -> List[float]:
        return self._hourly.prices()

    def daily_prices(self) -> List[float]:
        return self._daily.prices()

    def latest_key(self, granularity: Granularity) -> Optional[str]:
        return self._select(granularity).latest_key()

    @property
    def version(self) -> int:
        """Incremented on every mutation"""
        return self._version

    def stats(self) -> dict:
        return {
            "samples_seen": self._samples_seen,
            "hourly_buckets": len(self._hourly),
            "daily_buckets": len(self._daily),
            "latest_hour": self._hourly.latest_key(),
            "latest_day": self._daily.latest_key(),
            "version": self._version,
        }

    def _select(self, granularity: Granularity) -> _BucketSeries:
        if granularity == Granularity.HOURLY:
            return self._hourly
        return self._daily
