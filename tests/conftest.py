"""Shared fixtures for hooked tests."""

import pytest
from typer.testing import CliRunner

from hooked.config import HookedConfig, clear_config_cache
from hooked.continuation.pause import PauseFlag
from hooked.continuation.registry import ContinuationRegistry
from hooked.event_logger import EventLogger
from hooked.speak import Speaker
from hooked.state_store import StateStore


@pytest.fixture(autouse=True)
def hooked_home(tmp_path, monkeypatch):
    """Point HOOKED_HOME at a temp directory and reset cached config."""
    home = tmp_path / "hooked-home"
    home.mkdir()
    monkeypatch.setenv("HOOKED_HOME", str(home))
    monkeypatch.delenv("HOOKED_DEBUG", raising=False)
    monkeypatch.delenv("HOOKED_LOG_FILE", raising=False)
    clear_config_cache()
    yield home
    clear_config_cache()


@pytest.fixture
def config(hooked_home):
    """Default config rooted at the temp home, speech off."""
    cfg = HookedConfig(home=str(hooked_home))
    cfg.flags.speak = False
    return cfg


@pytest.fixture
def store(config):
    return StateStore(config)


@pytest.fixture
def events(config):
    return EventLogger(config)


@pytest.fixture
def registry(store, events):
    return ContinuationRegistry(store, events=events)


@pytest.fixture
def pause(store):
    return PauseFlag(store)


@pytest.fixture
def speaker(config):
    return Speaker(config)


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()
