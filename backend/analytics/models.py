"""
Analytics Output Types
Dataclasses for analytics results.

Undefined numeric fields hold NaN. `to_dict()` renders the JSON shape served
by the API, with NaN mapped to null.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np


def _json_float(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) or math.isinf(value) else value


NAN = float('nan')


# =============================================================================
# LIVE ANALYTICS OUTPUT TYPES
# =============================================================================

@dataclass
class PriceMultiple:
    """
    Point-in-time reading of one horizon.

    multiple = current price / trailing SMA of the prior window.
    percentile and higher_than_percent are fractions in [0, 1];
    vol_adj_percentile is on the 0-100 scale.
    """
    multiple: float
    percentile: float
    higher_than_percent: float
    label: str
    sma: float
    sma_as_of_utc: str
    sample_size: int
    historical_average: float
    count_higher_in_window: int
    window_length: int
    vol_adj_percentile: float = NAN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "multiple": _json_float(self.multiple),
            "percentile": _json_float(self.percentile),
            "volAdjPercentile": _json_float(self.vol_adj_percentile),
            "higherThanPercent": _json_float(self.higher_than_percent),
            "label": self.label,
            "sma": _json_float(self.sma),
            "smaAsOfUTC": self.sma_as_of_utc,
            "sampleSize": self.sample_size,
            "historicalAverage": _json_float(self.historical_average),
            "countHigherInWindow": self.count_higher_in_window,
            "windowLength": self.window_length,
        }


@dataclass
class PriceAnalysis:
    """Live summary across both horizons"""
    as_of_utc: str
    current_price_usd: float
    price_source: str
    price_as_of_utc: str
    horizons: Dict[str, PriceMultiple]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asOfUTC": self.as_of_utc,
            "currentPriceUSD": self.current_price_usd,
            "priceSource": self.price_source,
            "priceAsOfUTC": self.price_as_of_utc,
            "horizons": {name: pm.to_dict() for name, pm in self.horizons.items()},
        }


@dataclass
class HorizonReference:
    """
    Everything the live analyzer derives from history alone.

    Independent of the live price, so it can be cached until the
    aggregated series changes.

    multiples: trailing multiple at every historical index (NaN if undefined)
    winsorized: winsorized distribution of the defined multiples
    winsorized_z: winsorized vol-adjusted z distribution
    next_sigma: rolling log-multiple sigma for the point after the last one
    """
    window_length: int
    sample_size: int
    multiples: np.ndarray
    winsorized: np.ndarray
    winsorized_z: np.ndarray
    next_sigma: float


# =============================================================================
# BATCH ANALYTICS OUTPUT TYPES
# =============================================================================

@dataclass
class HistoryPoint:
    """
    One bucket of the ranked history series.

    sma and multiple are undefined for the first `window_length` buckets.
    percentile and vol_adj_percentile are on the 0-100 scale.
    """
    t: str
    price: float
    sma: float = NAN
    multiple: float = NAN
    percentile: float = NAN
    vol_adj_percentile: float = NAN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "t": self.t,
            "price": _json_float(self.price),
            "sma": _json_float(self.sma),
            "multiple": _json_float(self.multiple),
            "percentile": _json_float(self.percentile),
            "volAdjPercentile": _json_float(self.vol_adj_percentile),
        }
