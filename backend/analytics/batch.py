"""
Batch Analytics
Ranked history over a whole aggregated series, computed in one pass.

Update: On startup, on request when no precomputed table exists, or offline
Use: History chart, CSV export, precomputed tables

Same no-look-ahead SMA rule as the live analyzer. Rankings differ:
every point is ranked against ONE global winsorized distribution built from
the whole cutoff-restricted series, instead of "one live value against
its past".
"""

from datetime import datetime
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from config import VOL_ADJ_CUTOFF, Granularity
from core.models import AggregatedPoint, parse_timestamp
from . import stats
from .models import HistoryPoint


def build_history(
    points: Sequence,
    window_length: int,
    cutoff: datetime = VOL_ADJ_CUTOFF
) -> List[HistoryPoint]:
    """
    Compute SMA, multiple and rankings for every bucket of a series.

    Args:
        points: AggregatedPoints, or (time, price) pairs, oldest first
        window_length: SMA window in buckets
        cutoff: Only buckets at or after this instant form the ranking
            distributions. Every defined point is still ranked.

    Returns:
        One HistoryPoint per input bucket, in order. Deterministic.
    """
    times, prices = _unpack(points)
    if not prices:
        return []

    arr = np.asarray(prices, dtype=float)
    smas = stats.trailing_sma(arr, window_length)
    multiples = stats.trailing_multiples(arr, window_length)
    in_base = stats.at_or_after(times, cutoff)

    # Raw percentile: global winsorized distribution of multiples
    base = stats.winsorize(multiples[~np.isnan(multiples) & in_base])
    percentiles = stats.percentiles_of(multiples, base) * 100

    # Vol-adjusted percentile: same idea on z = ln(R) / rolling sigma(ln R)
    z = stats.vol_adjusted_z(multiples, window_length)
    z_base = stats.winsorize(z[~np.isnan(z) & in_base])
    vol_adj = stats.percentiles_of(z, z_base) * 100

    return [
        HistoryPoint(
            t=times[i],
            price=float(arr[i]),
            sma=float(smas[i]),
            multiple=float(multiples[i]),
            percentile=float(percentiles[i]),
            vol_adj_percentile=float(vol_adj[i]),
        )
        for i in range(len(arr))
    ]


def history_frame(points: Sequence[HistoryPoint], granularity: Granularity) -> pd.DataFrame:
    """
    Tabular form of a history series.

    Daily tables key rows by `date` (YYYY-MM-DD), hourly tables by
    `datetime` (YYYY-MM-DDTHH:00:00Z).
    """
    time_col = "date" if granularity == Granularity.DAILY else "datetime"
    rows = [
        {
            time_col: p.t.split("T")[0] if granularity == Granularity.DAILY else p.t,
            "price": p.price,
            "sma": p.sma,
            "multiple": p.multiple,
            "percentile": p.percentile,
            "volAdjPercentile": p.vol_adj_percentile,
        }
        for p in points
    ]
    return pd.DataFrame(
        rows,
        columns=[time_col, "price", "sma", "multiple", "percentile", "volAdjPercentile"],
    )


def _unpack(points: Sequence) -> Tuple[List[str], List[float]]:
    times = []
    prices = []
    for point in points:
        if isinstance(point, AggregatedPoint):
            times.append(point.t)
            prices.append(point.price)
        else:
            t, price = point
            times.append(parse_timestamp(t).strftime("%Y-%m-%dT%H:%M:%SZ"))
            prices.append(float(price))
    return times, prices
