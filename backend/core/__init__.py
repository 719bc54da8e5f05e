"""
Core Module
Price ingestion and bucket aggregation.

Exports:
    Models: PriceSample, AggregatedPoint, DataSource, IngestionResult
    Aggregator: PriceAggregator, hour_key, day_key
    Engine: IngestionEngine
    Bootstrap: read_bootstrap_csv, parse_rows, downsample, write_samples_csv
"""

from .models import (
    PriceSample,
    AggregatedPoint,
    DataSource,
    IngestionResult,
    parse_timestamp,
    to_iso_z,
    to_price_sample,
)

from .aggregator import PriceAggregator, hour_key, day_key, bucket_key, key_to_datetime
from .bootstrap import read_bootstrap_csv, parse_rows, downsample, write_samples_csv
from .engine import IngestionEngine

__all__ = [
    # Models
    "PriceSample",
    "AggregatedPoint",
    "DataSource",
    "IngestionResult",
    "parse_timestamp",
    "to_iso_z",
    "to_price_sample",
    # Aggregator
    "PriceAggregator",
    "hour_key",
    "day_key",
    "bucket_key",
    "key_to_datetime",
    # Bootstrap
    "read_bootstrap_csv",
    "parse_rows",
    "downsample",
    "write_samples_csv",
    # Engine
    "IngestionEngine",
]
