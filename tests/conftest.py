"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from deskpilot.config import Config, reset_config
from deskpilot.config.secrets import clear_secret_cache
from deskpilot.geometry import ScreenGeometry
from tests.utils import FakeBackend, FakeClock

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep tests away from real user config, secrets and environment overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("DESKPILOT_LOG", raising=False)
    monkeypatch.delenv("DESKPILOT_MODEL", raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    clear_secret_cache()
    yield
    reset_config()
    clear_secret_cache()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def geometry() -> ScreenGeometry:
    return ScreenGeometry(1920, 1080)
