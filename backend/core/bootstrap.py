"""
Bootstrap History
Parses the `time,price` CSV used to seed the aggregator at startup.

Malformed rows are skipped with a warning; a bad row never aborts the load.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

import pandas as pd

from .models import DataSource, PriceSample, to_iso_z, to_price_sample


logger = logging.getLogger(__name__)

HEADER_NAMES = {"time", "timestamp", "ts", "date", "datetime"}


def read_bootstrap_csv(path: Union[str, Path]) -> List[PriceSample]:
    """
    Read a bootstrap CSV into price samples.

    The header row is optional. Timestamps may be ISO-8601 strings or Unix
    epoch numbers (seconds, or milliseconds when > 1e12).

    Returns:
        Valid samples in file order. Empty list if the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No bootstrap CSV found", extra={"path": str(path)})
        return []

    df = pd.read_csv(
        path,
        header=None,
        names=["time", "price"],
        dtype=str,
        skip_blank_lines=True,
        keep_default_na=False,
        on_bad_lines=_warn_bad_line,
        engine="python",
    )

    first_line = 1
    if len(df) and _is_header(df.iloc[0]["time"], df.iloc[0]["price"]):
        df = df.iloc[1:]
        first_line = 2

    samples = parse_rows(zip(df["time"], df["price"]), first_line=first_line)
    logger.info(
        "Loaded bootstrap history",
        extra={"path": str(path), "rows": len(df), "valid": len(samples)},
    )
    return samples


def parse_rows(
    rows: Iterable[Sequence],
    source: DataSource = DataSource.BOOTSTRAP,
    first_line: int = 1,
) -> List[PriceSample]:
    """
    Convert `(time, price)` pairs to samples, skipping malformed rows.

    A row is malformed when either field is missing, the timestamp cannot be
    parsed, or the price is not a finite positive number.
    """
    samples = []
    skipped = 0

    for line, row in enumerate(rows, start=first_line):
        time_value, price_value = _split_row(row)
        try:
            sample = to_price_sample(
                {"time": _clean(time_value), "price": _clean(price_value)},
                source=source,
            )
        except (TypeError, ValueError) as exc:
            skipped += 1
            logger.warning(
                "Skipping malformed bootstrap row",
                extra={"line": line, "row": row, "reason": str(exc).splitlines()[0]},
            )
            continue
        samples.append(sample)

    if skipped:
        logger.warning("Skipped malformed rows", extra={"skipped": skipped, "valid": len(samples)})
    return samples


def downsample(samples: Sequence[PriceSample], minutes: int) -> List[PriceSample]:
    """
    Mean price per `minutes`-wide UTC bucket, stamped at the bucket start.

    Prices are rounded to cents.
    """
    if minutes <= 0:
        raise ValueError("minutes must be positive")
    if not samples:
        return []

    df = pd.DataFrame({"ts": [s.ts for s in samples], "price": [s.price for s in samples]})
    df["ts"] = pd.to_datetime(df["ts"], utc=True)
    means = df.groupby(df["ts"].dt.floor(f"{minutes}min"))["price"].mean().sort_index()

    return [
        PriceSample(ts=ts.to_pydatetime(), price=round(float(price), 2), source=DataSource.BOOTSTRAP)
        for ts, price in means.items()
    ]


def write_samples_csv(samples: Sequence[PriceSample], path: Union[str, Path]) -> Path:
    """Write samples as a `time,price` CSV with ISO UTC timestamps"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(
        {
            "time": [to_iso_z(s.ts) for s in samples],
            "price": [s.price for s in samples],
        },
        columns=["time", "price"],
    )
    df.to_csv(path, index=False)
    return path


def _warn_bad_line(bad_line: List[str]) -> None:
    # Returning None tells pandas to drop the line
    logger.warning("Skipping malformed bootstrap row", extra={"row": bad_line})
    return None


def _split_row(row: Sequence) -> Tuple[object, object]:
    if isinstance(row, dict):
        return row.get("time"), row.get("price")
    row = tuple(row)
    if len(row) < 2:
        return (row[0] if row else None), None
    return row[0], row[1]


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _is_header(time_value: str, price_value: str) -> bool:
    return (
        str(time_value).strip().lower() in HEADER_NAMES
        and str(price_value).strip().lower() == "price"
    )
