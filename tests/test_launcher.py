"""Launcher tests: child commands, environment and backend readiness"""

import importlib.util
import os
import sys

import pytest
import requests

from conftest import FakeResponse


LAUNCHER_PATH = os.path.join(os.path.dirname(__file__), '..', 'app.py')


@pytest.fixture
def launcher():
    spec = importlib.util.spec_from_file_location("gauge_launcher", LAUNCHER_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_backend_command_uses_port(launcher):
    command = launcher.backend_command(9123)
    assert command[:3] == [sys.executable, "-m", "uvicorn"]
    assert command[-2:] == ["--port", "9123"]


def test_child_env_points_dashboard_at_backend(launcher, monkeypatch):
    monkeypatch.delenv("GAUGE_DATA_DIR", raising=False)
    monkeypatch.delenv("GAUGE_BACKEND_URL", raising=False)
    env = launcher.child_env(9123)
    assert env["GAUGE_BACKEND_URL"] == "http://localhost:9123"
    assert env["GAUGE_DATA_DIR"] == str(launcher.ROOT / "data")


def test_child_env_keeps_explicit_settings(launcher, monkeypatch):
    monkeypatch.setenv("GAUGE_DATA_DIR", "/srv/gauge")
    env = launcher.child_env(8000)
    assert env["GAUGE_DATA_DIR"] == "/srv/gauge"


def test_wait_for_backend_retries_until_healthy(launcher, monkeypatch):
    responses = [requests.exceptions.ConnectionError("refused"), FakeResponse(status_code=503), FakeResponse()]
    urls = []

    def fake_get(url, timeout=None):
        urls.append(url)
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(launcher.requests, "get", fake_get)
    assert launcher.wait_for_backend("http://localhost:8000", attempts=5, interval=0)
    assert urls == ["http://localhost:8000/health"] * 3


def test_wait_for_backend_gives_up(launcher, monkeypatch):
    def fake_get(url, timeout=None):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(launcher.requests, "get", fake_get)
    assert not launcher.wait_for_backend("http://localhost:8000", attempts=3, interval=0)
