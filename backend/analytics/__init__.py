"""
Analytics Module
Price-multiple analytics with clear Live vs Batch separation.

Structure:
    analytics/
    ├── stats.py     → Shared primitives (SMA, winsorize, percentile, sigma)
    ├── labels.py    → Percentile → label mapping
    ├── models.py    → Output types (dataclasses)
    ├── live.py      → Live analytics (one price, now)
    └── batch.py     → Batch analytics (whole history)

Usage:
    from analytics import live, batch

    # Live (every summary request)
    pm = live.horizon_analysis(price, daily_prices, 365, Granularity.DAILY)

    # Batch (whole series)
    points = batch.build_history(aggregator.daily(), 365)

Design Principles:
    ✓ ALL functions are PURE (inputs → computation → outputs)
    ✓ NO file or network access
    ✓ NO state management
"""

from . import stats
from . import live
from . import batch

from .labels import LABELS, label_from_percentile
from .models import (
    # Live types
    PriceMultiple,
    PriceAnalysis,
    HorizonReference,
    # Batch types
    HistoryPoint,
)

__all__ = [
    # Modules
    "stats",
    "live",
    "batch",
    # Labels
    "LABELS",
    "label_from_percentile",
    # Types
    "PriceMultiple",
    "PriceAnalysis",
    "HorizonReference",
    "HistoryPoint",
]
