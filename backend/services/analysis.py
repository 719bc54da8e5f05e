"""
Analysis Service
Wires the live price, the aggregated series and the analytics together.

Owns two caches:
    - HorizonReference per horizon, keyed by the latest completed bucket
    - History series per horizon, keyed by the aggregator version (or the
      precomputed table's mtime)
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from analytics import batch, live
from analytics.models import HistoryPoint, HorizonReference, PriceAnalysis
from config import HORIZONS, Granularity, Horizon, Settings
from core import AggregatedPoint, IngestionEngine, PriceSample, bucket_key, parse_timestamp
from store import HistoryStore
from .price_feed import PriceFeedService


logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Summary and history for the API.

    One instance per process, created at startup with the engine, feed and
    store it uses.
    """

    def __init__(
        self,
        engine: IngestionEngine,
        feed: PriceFeedService,
        store: HistoryStore,
        settings: Optional[Settings] = None,
    ):
        self.engine = engine
        self.feed = feed
        self.store = store
        self.settings = settings or Settings()
        self._references: Dict[str, Tuple[Tuple[Optional[str], int], HorizonReference]] = {}
        self._histories: Dict[str, Tuple[Tuple[str, float], List[HistoryPoint]]] = {}
        self._last_live_ts: Optional[datetime] = None

    # =========================================================================
    # Summary
    # =========================================================================

    def summary(
        self,
        now: Optional[datetime] = None,
        sample: Optional[PriceSample] = None,
    ) -> PriceAnalysis:
        """
        Record the live price and analyze every horizon.

        The price is fetched from the feed unless `sample` is given.

        Raises:
            PriceFetchError when no live or last-known price is available
        """
        if sample is None:
            sample = self.feed.current_price()
        if self._last_live_ts is None or sample.ts > self._last_live_ts:
            self.engine.ingest(sample)
            self._last_live_ts = sample.ts

        now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
        daily = self.completed_points(Granularity.DAILY, now)
        hourly = self.completed_points(Granularity.HOURLY, now)

        points_by_granularity = {Granularity.DAILY: daily, Granularity.HOURLY: hourly}
        references = {
            horizon.name: self.reference(horizon, points_by_granularity[horizon.granularity])
            for horizon in HORIZONS
        }

        return live.analyze_price(
            sample.price,
            daily,
            hourly,
            now=now,
            price_source=self.settings.price_source,
            price_as_of=sample.ts,
            references=references,
        )

    def completed_points(self, granularity: Granularity, now: datetime) -> List[AggregatedPoint]:
        """Snapshot of buckets strictly before the one containing `now`"""
        current = bucket_key(now, granularity)
        return [p for p in self.engine.aggregator.series(granularity) if p.key < current]

    def reference(self, horizon: Horizon, points: List[AggregatedPoint]) -> HorizonReference:
        """HorizonReference for `points`, rebuilt only when the latest bucket changes"""
        key = (points[-1].key if points else None, len(points))
        cached = self._references.get(horizon.name)
        if cached is not None and cached[0] == key:
            return cached[1]

        prices, times = live.unpack_points(points)
        reference = live.build_reference(prices, horizon.window_length, times)
        self._references[horizon.name] = (key, reference)
        logger.debug(
            "Rebuilt horizon reference",
            extra={"horizon": horizon.name, "latest_bucket": key[0], "buckets": key[1]},
        )
        return reference

    # =========================================================================
    # History
    # =========================================================================

    def history(self) -> Dict[str, List[HistoryPoint]]:
        """Precomputed tables when present, otherwise computed on demand"""
        return {horizon.name: self.horizon_history(horizon) for horizon in HORIZONS}

    def horizon_history(self, horizon: Horizon) -> List[HistoryPoint]:
        if self.store.exists(horizon):
            key = ("store", self.store.path(horizon).stat().st_mtime)
            cached = self._histories.get(horizon.name)
            if cached is not None and cached[0] == key:
                return cached[1]
            points = self.store.load(horizon) or []
        else:
            key = ("live", float(self.engine.aggregator.version))
            cached = self._histories.get(horizon.name)
            if cached is not None and cached[0] == key:
                return cached[1]
            points = batch.build_history(
                self.engine.aggregator.series(horizon.granularity),
                horizon.window_length,
            )

        self._histories[horizon.name] = (key, points)
        return points
