"""Test fixtures for the price gauge backend"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))


DAY = timedelta(days=1)
HOUR = timedelta(hours=1)


def series(prices, start=datetime(2020, 1, 1, tzinfo=timezone.utc), step=DAY):
    """(timestamp, price) pairs, one per step"""
    return [(start + i * step, p) for i, p in enumerate(prices)]


def write_bootstrap(path, rows, header=True):
    lines = ["time,price"] if header else []
    lines += [f"{t.strftime('%Y-%m-%dT%H:%M:%SZ') if isinstance(t, datetime) else t},{p}" for t, p in rows]
    path.write_text("\n".join(lines) + "\n")
    return path


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Replays queued responses; an Exception entry is raised instead"""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if not self.responses:
            raise requests.exceptions.ConnectionError("no response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def price_response(usd):
    return FakeResponse({"result": {"element": {"price": int(round(usd * 100))}}})


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    from config import Settings

    return Settings(data_dir=tmp_path, backoff_seconds=0.0)


@pytest.fixture
def bootstrap_rows():
    """400 daily samples at noon, a slow upward drift with a weekly wiggle"""
    start = datetime(2023, 1, 1, 12, tzinfo=timezone.utc)
    return [
        (start + i * DAY, round(20000 + 25 * i + 300 * ((i % 7) - 3), 2))
        for i in range(400)
    ]


@pytest.fixture
def app(settings, bootstrap_rows, fake_session):
    from main import create_app
    from services import PriceFeedService

    write_bootstrap(settings.bootstrap_path, bootstrap_rows)
    feed = PriceFeedService(settings, session=fake_session, sleep=lambda s: None)
    return create_app(settings=settings, feed=feed)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
