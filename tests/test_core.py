"""Ingestion tests: models, aggregator, bootstrap CSV, engine"""

from datetime import datetime, timezone

import pydantic
import pytest

from config import Granularity
from core import (
    DataSource,
    IngestionEngine,
    PriceAggregator,
    PriceSample,
    day_key,
    downsample,
    hour_key,
    parse_rows,
    parse_timestamp,
    read_bootstrap_csv,
    to_iso_z,
    write_samples_csv,
)

from conftest import write_bootstrap


def sample(ts, price):
    return PriceSample(ts=ts, price=price)


# =============================================================================
# Models
# =============================================================================

class TestParseTimestamp:

    def test_iso_z(self):
        assert parse_timestamp("2024-01-01T00:30:00Z") == datetime(2024, 1, 1, 0, 30, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        assert parse_timestamp("2024-01-01T02:00:00+02:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds_and_millis(self):
        expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert parse_timestamp(1704067200) == expected
        assert parse_timestamp("1704067200000") == expected

    def test_naive_datetime_is_utc(self):
        assert parse_timestamp(datetime(2024, 1, 1)).tzinfo == timezone.utc

    @pytest.mark.parametrize("value", ["", "not-a-date", None, True, float('nan'), 1e25, "1e25", -1e20])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)


def test_to_iso_z():
    ts = datetime(2024, 5, 1, 12, 34, 56, 789000, tzinfo=timezone.utc)
    assert to_iso_z(ts) == "2024-05-01T12:34:56.789Z"


@pytest.mark.parametrize("price", [0, -1.0, float('inf'), float('nan')])
def test_price_sample_rejects_bad_price(price):
    with pytest.raises(pydantic.ValidationError):
        PriceSample(ts="2024-01-01T00:00:00Z", price=price)


# =============================================================================
# Aggregator
# =============================================================================

def test_bucket_keys():
    ts = datetime(2024, 1, 1, 23, 59, tzinfo=timezone.utc)
    assert hour_key(ts) == "2024-01-01T23:00:00Z"
    assert day_key(ts) == "2024-01-01"


class TestPriceAggregator:

    def test_samples_in_one_hour_average(self):
        agg = PriceAggregator()
        agg.build([
            sample("2024-01-01T00:59:00Z", 100.0),
            sample("2024-01-01T00:01:00Z", 200.0),
        ])
        hourly = agg.hourly()
        assert len(hourly) == 1
        assert hourly[0].key == "2024-01-01T00:00:00Z"
        assert hourly[0].price == pytest.approx(150.0)
        assert hourly[0].count == 2

    def test_running_mean_is_count_weighted(self):
        agg = PriceAggregator()
        for price in (100.0, 200.0, 600.0):
            agg.add(sample("2024-01-01T05:00:00Z", price))
        assert agg.daily()[0].price == pytest.approx(300.0)
        assert agg.daily()[0].count == 3

    def test_out_of_order_samples_stay_sorted(self):
        agg = PriceAggregator()
        agg.add(sample("2024-01-03T00:00:00Z", 3.0))
        agg.add(sample("2024-01-01T00:00:00Z", 1.0))
        agg.add(sample("2024-01-02T00:00:00Z", 2.0))
        assert [p.key for p in agg.daily()] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert agg.daily_prices() == [1.0, 2.0, 3.0]

    def test_hourly_and_daily_together(self):
        agg = PriceAggregator()
        agg.build([
            sample("2024-01-01T00:00:00Z", 100.0),
            sample("2024-01-01T01:00:00Z", 200.0),
            sample("2024-01-02T00:00:00Z", 300.0),
        ])
        assert agg.hourly_prices() == [100.0, 200.0, 300.0]
        assert agg.daily_prices() == [150.0, 300.0]
        assert agg.latest_key(Granularity.HOURLY) == "2024-01-02T00:00:00Z"
        assert agg.latest_key(Granularity.DAILY) == "2024-01-02"

    def test_version_changes_on_mutation(self):
        agg = PriceAggregator()
        before = agg.version
        agg.add(sample("2024-01-01T00:00:00Z", 1.0))
        assert agg.version > before

    def test_snapshot_is_independent(self):
        agg = PriceAggregator()
        agg.add(sample("2024-01-01T00:00:00Z", 1.0))
        snapshot = agg.daily()
        agg.add(sample("2024-01-01T01:00:00Z", 3.0))
        assert snapshot[0].price == 1.0
        assert agg.daily()[0].price == 2.0

    def test_build_replaces_state(self):
        agg = PriceAggregator()
        agg.add(sample("2020-01-01T00:00:00Z", 1.0))
        agg.build([sample("2024-01-01T00:00:00Z", 5.0)])
        assert [p.key for p in agg.daily()] == ["2024-01-01"]


# =============================================================================
# Bootstrap CSV
# =============================================================================

class TestBootstrap:

    def test_reads_header_and_skips_malformed_rows(self, tmp_path):
        path = tmp_path / "bootstrap.csv"
        path.write_text(
            "time,price\n"
            "2024-01-01T00:00:00Z,42000.5\n"
            "not-a-date,100\n"
            "2024-01-01T01:00:00Z,-5\n"
            "2024-01-01T02:00:00Z,abc\n"
            "2024-01-01T03:00:00Z,\n"
            "1704078000,43000\n"
        )
        samples = read_bootstrap_csv(path)
        assert [s.price for s in samples] == [42000.5, 43000.0]
        assert samples[1].ts == datetime(2024, 1, 1, 3, tzinfo=timezone.utc)
        assert all(s.source == DataSource.BOOTSTRAP for s in samples)

    def test_out_of_range_epoch_row_is_skipped(self, tmp_path):
        path = tmp_path / "bootstrap.csv"
        path.write_text("time,price\n1e25,100\n2024-01-01T00:00:00Z,100\n")
        samples = read_bootstrap_csv(path)
        assert len(samples) == 1
        assert samples[0].ts == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_header_is_optional(self, tmp_path):
        path = write_bootstrap(tmp_path / "b.csv", [("2024-01-01T00:00:00Z", 1.5)], header=False)
        assert [s.price for s in read_bootstrap_csv(path)] == [1.5]

    def test_missing_file(self, tmp_path):
        assert read_bootstrap_csv(tmp_path / "missing.csv") == []

    def test_parse_rows(self):
        rows = [("2024-01-01T00:00:00Z", "10"), ("bad",), ("2024-01-01T00:00:00Z", "0")]
        assert [s.price for s in parse_rows(rows)] == [10.0]

    def test_downsample(self):
        samples = [
            sample("2024-01-01T00:01:00Z", 100.0),
            sample("2024-01-01T00:03:00Z", 200.0),
            sample("2024-01-01T00:07:00Z", 300.333),
        ]
        buckets = downsample(samples, 5)
        assert [to_iso_z(b.ts) for b in buckets] == [
            "2024-01-01T00:00:00.000Z",
            "2024-01-01T00:05:00.000Z",
        ]
        assert [b.price for b in buckets] == [150.0, 300.33]

    def test_downsample_rejects_bad_width(self):
        with pytest.raises(ValueError):
            downsample([], 0)

    def test_write_then_read(self, tmp_path):
        samples = [sample("2024-01-01T00:00:00Z", 1.25), sample("2024-01-01T00:05:00Z", 2.5)]
        path = write_samples_csv(samples, tmp_path / "out" / "samples.csv")
        assert path.read_text().splitlines()[0] == "time,price"
        assert [(s.ts, s.price) for s in read_bootstrap_csv(path)] == [(s.ts, s.price) for s in samples]


# =============================================================================
# Engine
# =============================================================================

def test_engine_loads_bootstrap(tmp_path, bootstrap_rows):
    path = write_bootstrap(tmp_path / "bootstrap.csv", bootstrap_rows)
    engine = IngestionEngine()
    result = engine.load_bootstrap(path)
    assert result.success
    assert result.count == 400
    assert len(engine.aggregator.daily()) == 400
    assert engine.latest_sample.ts == bootstrap_rows[-1][0]


def test_engine_without_bootstrap(tmp_path):
    engine = IngestionEngine()
    result = engine.load_bootstrap(tmp_path / "none.csv")
    assert result.count == 0
    assert engine.latest_sample is None


def test_engine_ingest_updates_stats():
    engine = IngestionEngine()
    engine.ingest_batch([sample("2024-01-01T00:00:00Z", 1.0), sample("2024-01-01T00:30:00Z", 3.0)])
    stats = engine.stats()
    assert stats["samples_ingested"] == 2
    assert stats["aggregator"]["hourly_buckets"] == 1
