"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any application import so the global
settings object is built for tests: no durable store, plain logs.
"""

import os

DURABLE_ENV_VARS = (
    "KV_REST_API_URL",
    "KV_REST_API_TOKEN",
    "VERCEL_REST_API_URL",
    "VERCEL_REST_API_TOKEN",
    "KV_URL",
)

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
for _name in DURABLE_ENV_VARS:
    os.environ.pop(_name, None)
os.environ.setdefault("LOG_FORMAT", "plain")

import pytest

from counter_badge.core.admission import reset_admission_controller
from counter_badge.core.storage import reset_counter_store


class FakeClock:
    """Deterministic clock for admission tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def isolated_counter_state(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point the file store at a temp file and reset process-wide state."""

    for name in DURABLE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("COUNTER_FILE", str(tmp_path / "counter.json"))

    reset_admission_controller()
    reset_counter_store()
    yield
    reset_admission_controller()
    reset_counter_store()
