"""Settings and batch CLI tests"""

from pathlib import Path

import pytest

import cli
from config import HORIZON_30D, HORIZON_365D, HORIZONS, Settings, get_horizon
from core import read_bootstrap_csv
from store import HistoryStore

from conftest import write_bootstrap


# =============================================================================
# Settings
# =============================================================================

def test_defaults():
    settings = Settings()
    assert settings.data_dir == Path("data")
    assert settings.bootstrap_path == Path("data") / "bootstrap.csv"
    assert settings.max_retries == 3


def test_from_env():
    settings = Settings.from_env({
        "GAUGE_DATA_DIR": "/srv/gauge",
        "GAUGE_MAX_RETRIES": "5",
        "GAUGE_CACHE_SECONDS": "1.5",
        "GAUGE_PRICE_SOURCE": "Test Index",
        "GAUGE_PORT": "",
    })
    assert settings.data_dir == Path("/srv/gauge")
    assert settings.max_retries == 5
    assert settings.cache_seconds == 1.5
    assert settings.price_source == "Test Index"
    assert settings.port == 8000


def test_from_env_rejects_bad_number():
    with pytest.raises(ValueError):
        Settings.from_env({"GAUGE_MAX_RETRIES": "three"})


@pytest.mark.parametrize("overrides", [
    {"max_retries": 0},
    {"backoff_seconds": -1.0},
    {"request_timeout": 0.0},
    {"port": 70000},
    {"bootstrap_file": " "},
])
def test_validation(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)


def test_horizons():
    assert [h.name for h in HORIZONS] == ["365d", "30d"]
    assert HORIZON_365D.window_length == 365
    assert HORIZON_30D.window_length == 720
    assert get_horizon("30d") is HORIZON_30D
    with pytest.raises(KeyError):
        get_horizon("7d")


# =============================================================================
# CLI
# =============================================================================

def test_precompute_writes_both_tables(tmp_path, bootstrap_rows):
    source = write_bootstrap(tmp_path / "bootstrap.csv", bootstrap_rows)
    out = tmp_path / "tables"

    assert cli.main(["precompute", str(source), "--data-dir", str(out)]) == 0

    store = HistoryStore(out)
    assert len(store.load(HORIZON_365D)) == 400
    assert len(store.load(HORIZON_30D)) == 400


def test_precompute_explicit_paths(tmp_path, bootstrap_rows):
    source = write_bootstrap(tmp_path / "bootstrap.csv", bootstrap_rows)
    daily = tmp_path / "d.csv"
    hourly = tmp_path / "h.csv"

    written = cli.precompute(source, tmp_path / "unused", out_daily=daily, out_hourly=hourly)

    assert written == {"365d": daily, "30d": hourly}
    assert daily.read_text().startswith("date,")
    assert hourly.read_text().startswith("datetime,")


def test_precompute_missing_input(tmp_path):
    assert cli.main(["precompute", str(tmp_path / "missing.csv"), "--data-dir", str(tmp_path)]) == 1


def test_downsample(tmp_path):
    source = write_bootstrap(tmp_path / "raw.csv", [
        ("2024-01-01T00:00:10Z", 100.0),
        ("2024-01-01T00:04:50Z", 300.0),
        ("bad", 1.0),
        ("2024-01-01T00:05:00Z", 50.0),
    ])
    target = tmp_path / "out.csv"

    assert cli.main(["downsample", str(source), str(target), "--minutes", "5"]) == 0

    samples = read_bootstrap_csv(target)
    assert [s.price for s in samples] == [200.0, 50.0]


def test_downsample_default_output_name(tmp_path):
    source = write_bootstrap(tmp_path / "raw.csv", [("2024-01-01T00:00:00Z", 1.0)])
    assert cli.main(["downsample", str(source), "--minutes", "10"]) == 0
    assert (tmp_path / "raw_10min.csv").is_file()


def test_downsample_rejects_bad_width(tmp_path):
    source = write_bootstrap(tmp_path / "raw.csv", [("2024-01-01T00:00:00Z", 1.0)])
    assert cli.main(["downsample", str(source), str(tmp_path / "o.csv"), "--minutes", "0"]) == 1
