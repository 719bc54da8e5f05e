"""
Domain Models
The SINGLE SOURCE OF TRUTH for price data formats.

After normalization, the system only sees these types.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Data Source
# =============================================================================

class DataSource(str, Enum):
    """Where a sample came from. Tagged at entry, never changes"""
    BOOTSTRAP = "bootstrap"
    LIVE = "live"
    API = "api"


# =============================================================================
# Timestamp parsing
# =============================================================================

def parse_timestamp(value: Any) -> datetime:
    """
    Normalize a timestamp to a tz-aware UTC datetime.

    Handles:
    - datetime (naive values are taken as UTC)
    - ISO-8601 strings, with `Z` or an explicit offset
    - Unix epoch numbers or numeric strings: milliseconds when > 1e12,
      seconds otherwise

    Raises ValueError on anything else.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        ts = _from_epoch(float(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty timestamp")
        try:
            ts = _from_epoch(float(text))
        except ValueError:
            ts = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _from_epoch(epoch: float) -> datetime:
    if not math.isfinite(epoch):
        raise ValueError(f"Invalid epoch timestamp: {epoch!r}")
    if epoch > 1e12:
        epoch = epoch / 1000
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"Epoch timestamp out of range: {epoch!r}") from exc


def to_iso_z(ts: datetime) -> str:
    """Render a UTC datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ`"""
    ts = parse_timestamp(ts)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


# =============================================================================
# PriceSample: The Core Data Contract
# =============================================================================

class PriceSample(BaseModel):
    """
    A single observed price.

    This is THE internal representation of a raw price. Bootstrap CSV rows
    and live API responses both convert to this; the aggregator sees
    nothing else. Immutable once created.

    Fields:
        ts: UTC timestamp
        price: USD price, finite and strictly positive
        source: Where it came from
    """
    model_config = ConfigDict(frozen=True)

    ts: datetime
    price: float = Field(..., gt=0)
    source: DataSource = DataSource.BOOTSTRAP

    @field_validator('ts', mode='before')
    @classmethod
    def normalize_timestamp(cls, v):
        return parse_timestamp(v)

    @field_validator('price')
    @classmethod
    def finite_price(cls, v):
        if not math.isfinite(v):
            raise ValueError("price must be finite")
        return v


# =============================================================================
# AggregatedPoint: Bucketed Price Data
# =============================================================================

class AggregatedPoint(BaseModel):
    """
    Mean price of one calendar-aligned bucket (UTC hour or UTC day).

    Fields:
        key: ISO bucket key (`YYYY-MM-DDTHH:00:00Z` or `YYYY-MM-DD`)
        ts: Bucket start time
        price: Mean of every sample ever assigned to the bucket
        count: Number of samples assigned
    """
    model_config = ConfigDict(frozen=True)

    key: str
    ts: datetime
    price: float
    count: int = 1

    @property
    def t(self) -> str:
        """Bucket start as a full ISO instant"""
        return self.ts.strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# API Response Models
# =============================================================================

class IngestionResult(BaseModel):
    """Result of data ingestion"""
    success: bool = True
    count: int = 0
    errors: int = 0
    message: str = ""


# =============================================================================
# Converters: External → Internal
# =============================================================================

def to_price_sample(data: Mapping[str, Any], source: DataSource = DataSource.BOOTSTRAP) -> PriceSample:
    """
    Convert an external record to a PriceSample.

    This is the NORMALIZATION POINT. Accepts `time`, `timestamp` or `ts` for
    the timestamp field. Raises ValueError (pydantic ValidationError is a
    subclass) when the record is malformed.
    """
    ts = data.get('time')
    if ts is None:
        ts = data.get('timestamp')
    if ts is None:
        ts = data.get('ts')
    if ts is None:
        raise ValueError("Record has no timestamp")

    price = data.get('price')
    if price is None:
        raise ValueError("Record has no price")

    return PriceSample(ts=ts, price=float(price), source=source)
