"""Offline batch jobs: precompute history tables, downsample raw CSVs."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from analytics.batch import build_history
from config import HORIZON_30D, HORIZON_365D, HORIZONS, Settings
from core import PriceAggregator, downsample, read_bootstrap_csv, write_samples_csv
from store import HistoryStore


logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def precompute(
    input_path: Path,
    data_dir: Path,
    out_daily: Optional[Path] = None,
    out_hourly: Optional[Path] = None,
) -> dict:
    """
    Aggregate a bootstrap CSV and write both precomputed history tables.

    Tables go to their standard names under `data_dir` unless an explicit
    output path is given.

    Returns:
        {horizon name: path written}
    """
    overrides = {HORIZON_365D.name: out_daily, HORIZON_30D.name: out_hourly}
    samples = read_bootstrap_csv(input_path)
    if not samples:
        raise FileNotFoundError(f"No usable samples in {input_path}")

    aggregator = PriceAggregator()
    aggregator.build(samples)
    logger.info("Aggregated samples", extra=aggregator.stats())

    store = HistoryStore(data_dir)
    written = {}
    for horizon in HORIZONS:
        points = build_history(aggregator.series(horizon.granularity), horizon.window_length)
        written[horizon.name] = store.save(horizon, points, path=overrides[horizon.name])
    return written


def run_downsample(input_path: Path, output_path: Path, minutes: int) -> int:
    samples = read_bootstrap_csv(input_path)
    if not samples:
        raise FileNotFoundError(f"No usable samples in {input_path}")
    buckets = downsample(samples, minutes)
    write_samples_csv(buckets, output_path)
    logger.info(
        "Downsample complete",
        extra={"input_samples": len(samples), "buckets": len(buckets), "output": str(output_path)},
    )
    return len(buckets)


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Bitcoin price gauge batch jobs")
    sub = parser.add_subparsers(dest="command", required=True)

    pre = sub.add_parser("precompute", help="Write precomputed 365d/30d history tables")
    pre.add_argument("input", type=Path, nargs="?", default=settings.bootstrap_path)
    pre.add_argument("--data-dir", type=Path, default=settings.data_dir, help="Output directory for the tables")
    pre.add_argument("--out-daily", type=Path, default=None, help="Path for the 365d daily table")
    pre.add_argument("--out-hourly", type=Path, default=None, help="Path for the 30d hourly table")

    down = sub.add_parser("downsample", help="Downsample a time,price CSV to N-minute buckets")
    down.add_argument("input", type=Path, nargs="?", default=settings.bootstrap_path)
    down.add_argument("output", type=Path, nargs="?", default=None)
    down.add_argument("--minutes", type=int, default=5)

    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    _configure_logging()
    args = parse_args(argv)

    try:
        if args.command == "precompute":
            written = precompute(args.input, args.data_dir, args.out_daily, args.out_hourly)
            for name, path in written.items():
                print(f"{name}: {path}")
        else:
            output = args.output or args.input.with_name(f"{args.input.stem}_{args.minutes}min.csv")
            count = run_downsample(args.input, output, args.minutes)
            print(f"Buckets written: {count} -> {output}")
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Batch job failed", extra={"command": args.command, "reason": str(exc)})
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
