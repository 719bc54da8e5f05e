"""
Live Analytics
Point-in-time reading of the current price against one horizon.

Update: Every summary request
Use: The gauge, the label, the "higher than" counters

The SMA always covers the `window_length` buckets before "now"; every
historical multiple is computed from data available at its own instant
(no look-ahead).
"""

import math
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from config import HORIZONS, VOL_ADJ_CUTOFF, Granularity
from core.models import AggregatedPoint, parse_timestamp, to_iso_z
from . import stats
from .labels import DEFAULT_LABEL, label_from_percentile
from .models import NAN, HorizonReference, PriceAnalysis, PriceMultiple


def sma_as_of_utc(now: datetime, granularity: Granularity) -> str:
    """
    Start of the bucket "now" falls in.

    The SMA only uses completed buckets, so it is as of the start of the
    current UTC day (daily) or hour (hourly).
    """
    now = parse_timestamp(now)
    if granularity == Granularity.DAILY:
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    else:
        start = now.replace(minute=0, second=0, microsecond=0)
    return to_iso_z(start)


def build_reference(
    historical_prices: Sequence[float],
    window_length: int,
    times: Optional[Sequence] = None,
    cutoff: datetime = VOL_ADJ_CUTOFF
) -> HorizonReference:
    """
    Derive the historical distributions for one horizon.

    Args:
        historical_prices: Bucket means, oldest first
        window_length: SMA window in buckets
        times: Bucket start times. When given, the z distribution only uses
            buckets at or after `cutoff`.
        cutoff: Start of the vol-adjusted base distribution

    Returns:
        HorizonReference, reusable for any live price until history changes
    """
    prices = np.asarray(historical_prices, dtype=float)

    multiples = stats.trailing_multiples(prices, window_length)
    winsorized = stats.winsorize(multiples[~np.isnan(multiples)])

    log_r = stats.log_multiples(multiples)
    # One extra slot: the sigma the next (live) point sees over the last
    # `window_length` log-multiples
    sigma = stats.rolling_log_sigma(np.append(log_r, np.nan), window_length)
    z = log_r / sigma[:-1]
    in_base = ~np.isnan(z)
    if times is not None:
        in_base &= stats.at_or_after(times, cutoff)
    winsorized_z = stats.winsorize(z[in_base])
    next_sigma = float(sigma[-1])

    return HorizonReference(
        window_length=window_length,
        sample_size=len(prices),
        multiples=multiples,
        winsorized=winsorized,
        winsorized_z=winsorized_z,
        next_sigma=next_sigma,
    )


def vol_adjusted_percentile(multiple: float, reference: HorizonReference) -> float:
    """Rank of ln(multiple) / sigma against the historical z distribution, 0-100"""
    if not multiple > 0 or math.isnan(reference.next_sigma) or len(reference.winsorized_z) == 0:
        return NAN
    z = math.log(multiple) / reference.next_sigma
    return stats.percentile_of(z, reference.winsorized_z) * 100


def horizon_analysis(
    current_price: float,
    historical_prices: Sequence[float],
    window_length: int,
    granularity: Granularity,
    now: Optional[datetime] = None,
    times: Optional[Sequence] = None,
    reference: Optional[HorizonReference] = None,
    cutoff: datetime = VOL_ADJ_CUTOFF
) -> PriceMultiple:
    """
    Compute the price multiple and its rankings for one horizon.

    Args:
        current_price: Live price
        historical_prices: One mean per completed bucket, oldest first
        window_length: SMA window in buckets (365 daily, 720 hourly)
        granularity: Bucket size, used for `sma_as_of_utc`
        now: Evaluation instant (defaults to current UTC time)
        times: Bucket start times, for the vol-adjusted cutoff
        reference: Cached HorizonReference for the same history
        cutoff: Start of the vol-adjusted base distribution

    Returns:
        PriceMultiple. With insufficient history or a degenerate SMA every
        numeric field is NaN and the label is "Around average".
    """
    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    prices = np.asarray(historical_prices, dtype=float)
    n = len(prices)

    if n < window_length:
        return _degenerate(n, window_length, now)

    sma = stats.sma(prices, window_length)
    if math.isnan(sma) or sma <= 0:
        return _degenerate(n, window_length, now)

    multiple = current_price / sma

    if reference is None or reference.sample_size != n or reference.window_length != window_length:
        reference = build_reference(prices, window_length, times, cutoff)

    if len(reference.winsorized) == 0:
        return PriceMultiple(
            multiple=multiple,
            percentile=NAN,
            higher_than_percent=NAN,
            label=DEFAULT_LABEL,
            sma=sma,
            sma_as_of_utc=sma_as_of_utc(now, granularity),
            sample_size=n,
            historical_average=NAN,
            count_higher_in_window=0,
            window_length=window_length,
        )

    winsorized = reference.winsorized
    percentile = stats.percentile_of(multiple, winsorized)
    count_higher, window_count = _window_counts(reference.multiples, window_length, multiple)

    return PriceMultiple(
        multiple=multiple,
        percentile=percentile,
        higher_than_percent=stats.higher_than_percent(multiple, winsorized),
        label=label_from_percentile(percentile),
        sma=sma,
        sma_as_of_utc=sma_as_of_utc(now, granularity),
        sample_size=n,
        historical_average=stats.mean(winsorized),
        count_higher_in_window=count_higher,
        window_length=window_count,
        vol_adj_percentile=vol_adjusted_percentile(multiple, reference),
    )


def analyze_price(
    current_price: float,
    daily: Sequence,
    hourly: Sequence,
    now: Optional[datetime] = None,
    price_source: str = "",
    price_as_of: Optional[datetime] = None,
    references: Optional[Dict[str, HorizonReference]] = None
) -> PriceAnalysis:
    """
    Run every horizon for one live price.

    `daily` and `hourly` are AggregatedPoint sequences (or plain price
    sequences) of completed buckets, oldest first.
    """
    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    references = references or {}
    series = {Granularity.DAILY: daily, Granularity.HOURLY: hourly}

    horizons = {}
    for horizon in HORIZONS:
        prices, times = unpack_points(series[horizon.granularity])
        horizons[horizon.name] = horizon_analysis(
            current_price,
            prices,
            horizon.window_length,
            horizon.granularity,
            now=now,
            times=times,
            reference=references.get(horizon.name),
        )

    return PriceAnalysis(
        as_of_utc=to_iso_z(now),
        current_price_usd=current_price,
        price_source=price_source,
        price_as_of_utc=to_iso_z(price_as_of if price_as_of is not None else now),
        horizons=horizons,
    )


def unpack_points(points: Sequence) -> Tuple[list, Optional[list]]:
    """Split AggregatedPoints into (prices, times); plain numbers have no times"""
    points = list(points)
    if points and isinstance(points[0], AggregatedPoint):
        return [p.price for p in points], [p.ts for p in points]
    return [float(p) for p in points], None


def _window_counts(multiples: np.ndarray, window_length: int, multiple: float) -> Tuple[int, int]:
    """
    Count window-local multiples above the live multiple.

    Only the last `window_length` positions whose own prior window is
    complete take part. Returns (count higher, count computed).
    """
    n = len(multiples)
    start = max(n - window_length, window_length)
    local = multiples[start:]
    local = local[~np.isnan(local)]
    return int(np.count_nonzero(local > multiple)), len(local)


def _degenerate(sample_size: int, window_length: int, now: datetime) -> PriceMultiple:
    return PriceMultiple(
        multiple=NAN,
        percentile=NAN,
        higher_than_percent=NAN,
        label=DEFAULT_LABEL,
        sma=NAN,
        sma_as_of_utc=to_iso_z(now),
        sample_size=sample_size,
        historical_average=NAN,
        count_higher_in_window=0,
        window_length=window_length,
    )
