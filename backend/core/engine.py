import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .aggregator import PriceAggregator
from .bootstrap import read_bootstrap_csv
from .models import IngestionResult, PriceSample


logger = logging.getLogger(__name__)


class IngestionEngine:
    """
    Single writer of the aggregated price series.

    Constructed once at process start and handed to whoever needs it; there
    is no module-level instance.
    """

    def __init__(self, aggregator: Optional[PriceAggregator] = None):
        self._aggregator = aggregator or PriceAggregator()
        self._latest: Optional[PriceSample] = None
        self._stats = {
            "samples_ingested": 0,
            "bootstrap_samples": 0,
            "errors": 0,
            "start_time": datetime.now(timezone.utc),
        }

    @property
    def aggregator(self) -> PriceAggregator:
        return self._aggregator

    @property
    def latest_sample(self) -> Optional[PriceSample]:
        return self._latest

    def load_bootstrap(self, path: Union[str, Path]) -> IngestionResult:
        samples = read_bootstrap_csv(path)
        if not samples:
            return IngestionResult(success=True, count=0, message="No bootstrap samples")

        self._aggregator.build(samples)
        self._stats["bootstrap_samples"] = len(samples)
        self._latest = max(samples, key=lambda s: s.ts)

        stats = self._aggregator.stats()
        logger.info(
            "Aggregated bootstrap history",
            extra={
                "samples": len(samples),
                "hourly_buckets": stats["hourly_buckets"],
                "daily_buckets": stats["daily_buckets"],
            },
        )
        return IngestionResult(
            success=True,
            count=len(samples),
            message=f"Processed {stats['daily_buckets']} daily and {stats['hourly_buckets']} hourly prices",
        )

    def ingest(self, sample: PriceSample) -> None:
        self._aggregator.add(sample)
        self._stats["samples_ingested"] += 1
        if self._latest is None or sample.ts >= self._latest.ts:
            self._latest = sample

    def ingest_batch(self, samples: List[PriceSample]) -> IngestionResult:
        if not samples:
            return IngestionResult(success=True, count=0, message="No samples")

        errors = 0
        for sample in samples:
            try:
                self.ingest(sample)
            except (TypeError, ValueError) as exc:
                errors += 1
                self._stats["errors"] += 1
                logger.warning("Rejected sample", extra={"sample": repr(sample), "reason": str(exc)})

        return IngestionResult(
            success=errors == 0,
            count=len(samples) - errors,
            errors=errors,
            message=f"Ingested {len(samples) - errors} samples",
        )

    def stats(self) -> Dict[str, Any]:
        uptime = (datetime.now(timezone.utc) - self._stats["start_time"]).total_seconds()
        return {
            **self._stats,
            "uptime_seconds": uptime,
            "latest_sample": self._latest.ts.isoformat() if self._latest else None,
            "aggregator": self._aggregator.stats(),
        }
