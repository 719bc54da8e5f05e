"""
Configuration
Operational settings and the fixed analysis horizons.

Settings are explicit and immutable. Every field can be overridden through a
GAUGE_* environment variable so the same build runs locally and in a
container without code changes.
"""

import logging
import os
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)


# =============================================================================
# Horizons
# =============================================================================

class Granularity(str, Enum):
    """Bucket size of an aggregated price series"""
    HOURLY = "hourly"
    DAILY = "daily"


@dataclass(frozen=True)
class Horizon:
    """A lookback scope: `window_length` prior buckets of one granularity"""
    name: str
    window_length: int
    granularity: Granularity


HORIZON_365D = Horizon(name="365d", window_length=365, granularity=Granularity.DAILY)
HORIZON_30D = Horizon(name="30d", window_length=30 * 24, granularity=Granularity.HOURLY)

HORIZONS: Tuple[Horizon, ...] = (HORIZON_365D, HORIZON_30D)

# Base distributions for ranking only use buckets at or after this instant,
# keeping rankings comparable with the historical baseline.
VOL_ADJ_CUTOFF = datetime(2015, 1, 1, tzinfo=timezone.utc)

WINSOR_LOWER_PCT = 1.0
WINSOR_UPPER_PCT = 99.0


def get_horizon(name: str) -> Horizon:
    for horizon in HORIZONS:
        if horizon.name == name:
            return horizon
    available = ", ".join(h.name for h in HORIZONS)
    raise KeyError(f"Unknown horizon '{name}'. Available: {available}")


# =============================================================================
# Settings
# =============================================================================

ENV_PREFIX = "GAUGE_"


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for the API service and the batch CLI.

    Attributes
    ----------
    data_dir:
        Directory holding the bootstrap CSV and the precomputed history tables.
    bootstrap_file:
        Name of the `time,price` CSV loaded at startup, relative to `data_dir`.
    price_api_url:
        JSON-RPC endpoint returning the live BTC/USD index price.
    price_source:
        Human readable name of the price source, echoed in the summary.
    cache_seconds:
        How long a fetched live price is reused before hitting the API again.
    max_retries / backoff_seconds:
        Retry policy for the live price fetch. Attempt `n` waits
        `backoff_seconds * n` before the next try.
    """

    data_dir: Path = Path("data")
    bootstrap_file: str = "bootstrap.csv"
    price_api_url: str = "https://www.bullbitcoin.com/api/price"
    price_source: str = "BullBitcoin Index USD"
    request_timeout: float = 10.0
    cache_seconds: float = 30.0
    max_retries: int = 3
    backoff_seconds: float = 1.0
    host: str = "0.0.0.0"
    port: int = 8000

    def __post_init__(self) -> None:
        if not isinstance(self.data_dir, Path):
            object.__setattr__(self, "data_dir", Path(self.data_dir))
        self.validate()

    def validate(self) -> None:
        if self.max_retries <= 0:
            raise ValueError("max_retries must be positive")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be non-negative")
        if self.cache_seconds < 0:
            raise ValueError("cache_seconds must be non-negative")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if not 0 < self.port < 65536:
            raise ValueError("port must be a valid TCP port")
        if not self.bootstrap_file.strip():
            raise ValueError("bootstrap_file cannot be empty")

    @property
    def bootstrap_path(self) -> Path:
        return self.data_dir / self.bootstrap_file

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from GAUGE_* variables, falling back to defaults"""
        environ = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}

        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            default = f.default
            try:
                if isinstance(default, bool):
                    value = raw.strip().lower() in {"1", "true", "yes", "on"}
                elif isinstance(default, int):
                    value = int(raw)
                elif isinstance(default, float):
                    value = float(raw)
                elif isinstance(default, Path):
                    value = Path(raw)
                else:
                    value = raw
            except ValueError as exc:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{f.name.upper()}: {raw!r}") from exc
            overrides[f.name] = value
            logger.debug("Setting overridden from environment", extra={"setting": f.name})

        return cls(**overrides)
