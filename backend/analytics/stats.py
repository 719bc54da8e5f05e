"""
Statistics Primitives
Pure functions shared by the live analyzer and the batch history builder.

Contract:
    Empty or too-short input never raises. It yields NaN (or an empty
    array), so callers can render undefined values uniformly.
"""

import math
from datetime import datetime
from typing import Sequence, Union

import numpy as np
import pandas as pd

from config import WINSOR_LOWER_PCT, WINSOR_UPPER_PCT
from core.models import parse_timestamp


ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]


def _as_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=float)


def min_sigma_samples(window: int) -> int:
    """Minimum non-missing log-multiples needed for a rolling sigma"""
    return max(10, int(math.floor(window * 0.5)))


# =============================================================================
# Moving averages
# =============================================================================

def sma(values: ArrayLike, period: int) -> float:
    """
    Simple moving average of the last `period` values.

    No partial windows: NaN when fewer than `period` values exist.
    """
    arr = _as_array(values)
    if period <= 0 or len(arr) < period:
        return float('nan')
    return float(np.mean(arr[-period:]))


def trailing_sma(values: ArrayLike, window: int) -> np.ndarray:
    """
    Trailing SMA at every index, using prior values only.

        out[i] = mean(values[i - window : i])    for i >= window
        out[i] = NaN                             for i <  window

    The value at index i never sees values[i] or anything after it.
    """
    arr = _as_array(values)
    if window <= 0 or len(arr) == 0:
        return np.full(len(arr), np.nan)

    rolling = pd.Series(arr).rolling(window=window, min_periods=window).mean()
    return rolling.shift(1).to_numpy(dtype=float, copy=True)


def trailing_multiples(values: ArrayLike, window: int) -> np.ndarray:
    """
    Price / trailing SMA at every index.

    NaN wherever the trailing SMA is undefined or not strictly positive.
    """
    arr = _as_array(values)
    smas = trailing_sma(arr, window)
    out = np.full(len(arr), np.nan)
    valid = smas > 0
    out[valid] = arr[valid] / smas[valid]
    return out


def mean(values: ArrayLike) -> float:
    arr = _as_array(values)
    if len(arr) == 0:
        return float('nan')
    return float(np.mean(arr))


# =============================================================================
# Winsorization & ranking
# =============================================================================

def winsorize(
    values: ArrayLike,
    lower_pct: float = WINSOR_LOWER_PCT,
    upper_pct: float = WINSOR_UPPER_PCT
) -> np.ndarray:
    """
    Clamp values to the [lower_pct, upper_pct] order statistics.

    Bounds come from a sorted copy:
        lower_index = floor(lower_pct / 100 * n)
        upper_index = ceil(upper_pct / 100 * n) - 1

    Output keeps the input order. Idempotent.
    """
    arr = _as_array(values)
    n = len(arr)
    if n == 0:
        return np.array([], dtype=float)

    ordered = np.sort(arr)
    lower_index = min(max(int(math.floor(lower_pct / 100 * n)), 0), n - 1)
    upper_index = min(max(int(math.ceil(upper_pct / 100 * n)) - 1, 0), n - 1)

    return np.clip(arr, ordered[lower_index], ordered[upper_index])


def percentile_of(value: float, distribution: ArrayLike) -> float:
    """
    Fraction of the distribution that is <= value, in [0, 1].

    Ties count as <=, so the unique minimum of n distinct values sits at 1/n.
    NaN for an empty distribution or a NaN value.
    """
    arr = _as_array(distribution)
    if len(arr) == 0 or math.isnan(value):
        return float('nan')
    return float(np.count_nonzero(arr <= value)) / len(arr)


def percentiles_of(values: ArrayLike, distribution: ArrayLike) -> np.ndarray:
    """Vectorized percentile_of for many values against one distribution"""
    vals = _as_array(values)
    arr = _as_array(distribution)
    if len(arr) == 0:
        return np.full(len(vals), np.nan)

    ordered = np.sort(arr)
    out = np.searchsorted(ordered, vals, side='right') / len(ordered)
    out[np.isnan(vals)] = np.nan
    return out


def higher_than_percent(value: float, distribution: ArrayLike) -> float:
    """
    Fraction of the distribution strictly > value, in [0, 1].

    Together with percentile_of this need not sum to 1: values equal to
    `value` are counted by percentile_of only.
    """
    arr = _as_array(distribution)
    if len(arr) == 0 or math.isnan(value):
        return float('nan')
    return float(np.count_nonzero(arr > value)) / len(arr)


# =============================================================================
# Volatility normalization
# =============================================================================

def log_multiples(multiples: ArrayLike) -> np.ndarray:
    arr = _as_array(multiples)
    out = np.full(len(arr), np.nan)
    valid = arr > 0
    out[valid] = np.log(arr[valid])
    return out


def rolling_log_sigma(log_r: ArrayLike, window: int) -> np.ndarray:
    """
    Population std of the prior `window` log-multiples at every index.

        out[i] = std(log_r[i - window : i])    ignoring NaN

    NaN when i < window, when fewer than max(10, window / 2) values in the
    window are defined, or when the std is not strictly positive.
    """
    arr = _as_array(log_r)
    n = len(arr)
    min_periods = min_sigma_samples(window)
    # A window shorter than the minimum sample count never yields a sigma
    if window <= 0 or n == 0 or min_periods > window:
        return np.full(n, np.nan)

    sigma = (
        pd.Series(arr)
        .rolling(window=window, min_periods=min_periods)
        .std(ddof=0)
        .shift(1)
        .to_numpy(dtype=float, copy=True)
    )
    sigma[:window] = np.nan
    sigma[~(sigma > 0)] = np.nan
    return sigma


def vol_adjusted_z(multiples: ArrayLike, window: int) -> np.ndarray:
    """z = ln(multiple) / rolling sigma of ln(multiple)"""
    log_r = log_multiples(multiples)
    return log_r / rolling_log_sigma(log_r, window)


def at_or_after(times: Sequence, cutoff: datetime) -> np.ndarray:
    """Boolean mask of timestamps (datetimes or ISO strings) >= cutoff"""
    cutoff = parse_timestamp(cutoff)
    return np.array([parse_timestamp(t) >= cutoff for t in times], dtype=bool)
