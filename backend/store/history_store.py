"""
Precomputed History Store
CSV tables of ranked history, written once by the batch CLI.

Responsibilities:
- Write a history series to its table
- Read it back as HistoryPoints, verbatim

NOT responsible for:
- Computing history (analytics.batch does this)
- Deciding when to serve it (the analysis service does this)

Tables:
    - history_365d.csv:        date,price,sma,multiple,percentile,volAdjPercentile
    - history_30d_hourly.csv:  datetime,price,sma,multiple,percentile,volAdjPercentile
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from analytics.batch import history_frame
from analytics.models import HistoryPoint
from config import HORIZON_30D, HORIZON_365D, Granularity, Horizon


logger = logging.getLogger(__name__)

TABLE_FILES: Dict[str, str] = {
    HORIZON_365D.name: "history_365d.csv",
    HORIZON_30D.name: "history_30d_hourly.csv",
}


class HistoryStore:
    """
    File-backed precomputed history, one CSV table per horizon.

    Loaded tables carry exactly the HistoryPoint shape the batch builder
    produces, so the two are interchangeable sources.
    """

    def __init__(self, data_dir: Union[str, Path] = "data"):
        self.data_dir = Path(data_dir)

    def path(self, horizon: Horizon) -> Path:
        return self.data_dir / TABLE_FILES[horizon.name]

    def exists(self, horizon: Horizon) -> bool:
        return self.path(horizon).is_file()

    # =========================================================================
    # Write Operations
    # =========================================================================

    def save(
        self,
        horizon: Horizon,
        points: Sequence[HistoryPoint],
        path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """Write a history series, replacing any existing table"""
        path = Path(path) if path is not None else self.path(horizon)
        path.parent.mkdir(parents=True, exist_ok=True)

        df = history_frame(points, horizon.granularity)
        df.to_csv(path, index=False, na_rep="")

        logger.info("Wrote precomputed history", extra={"path": str(path), "rows": len(df)})
        return path

    # =========================================================================
    # Read Operations
    # =========================================================================

    def load(self, horizon: Horizon) -> Optional[List[HistoryPoint]]:
        """Read a table back. None when it has not been precomputed."""
        path = self.path(horizon)
        if not path.is_file():
            return None

        df = pd.read_csv(path, float_precision="round_trip")
        time_col = df.columns[0]

        points = []
        for row in df.itertuples(index=False):
            t = str(getattr(row, time_col))
            if horizon.granularity == Granularity.DAILY and "T" not in t:
                t = f"{t}T00:00:00Z"
            points.append(
                HistoryPoint(
                    t=t,
                    price=_float(row.price),
                    sma=_float(row.sma),
                    multiple=_float(row.multiple),
                    percentile=_float(row.percentile),
                    vol_adj_percentile=_float(row.volAdjPercentile),
                )
            )
        return points

    def stats(self) -> dict:
        return {
            name: {"path": str(self.data_dir / filename), "exists": (self.data_dir / filename).is_file()}
            for name, filename in TABLE_FILES.items()
        }


def _float(value) -> float:
    if value is None:
        return float('nan')
    value = float(value)
    return value if np.isfinite(value) else float('nan')
