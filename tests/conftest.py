"""Shared pytest fixtures and configuration."""

import pytest
from loguru import logger

from veyu import sdk
from veyu.config import VeyuConfig
from veyu.session.lifecycle import TelemetrySession


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep VEYU_* settings from the real environment out of tests."""
    for key in (
        "VEYU_DATA_DIR",
        "VEYU_FLUSH_INTERVAL",
        "VEYU_BUILD_VERSION",
        "VEYU_UPLOAD_DELAY",
        "VEYU_TICK_INTERVAL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("VEYU_APP_DATA", str(tmp_path / "app-data"))
    yield
    sdk.reset_active_session()
    # CLI runs bind a sink to CliRunner's stream, which is closed afterwards
    logger.remove()


@pytest.fixture
def config(tmp_path):
    return VeyuConfig(data_dir=tmp_path, upload_delay=0, build_version="1.2.3")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def errors():
    return []


@pytest.fixture
def session(config, clock, errors):
    session = TelemetrySession(config=config, on_error=errors.append, clock=clock)
    yield session
    session.shutdown()
