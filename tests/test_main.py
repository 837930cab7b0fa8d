"""
Tests for the terminal entry point.
"""

import asyncio
import logging

import pytest
from pathlib import Path

from config.settings import CounterConfig, Settings, StorageConfig
from persistent_counter import main as entry
from persistent_counter.storage import (
    DataStoreAdapter,
    SharedPreferences,
    SharedPreferencesAdapter,
)


@pytest.fixture(autouse=True)
def root_logger():
    """Restore the root logger level changed by main."""
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


@pytest.fixture
def counter_env(monkeypatch, tmp_path) -> Path:
    """Point the entry point at a temporary storage directory."""
    storage = tmp_path / "storage"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("COUNTER_STORAGE_DIR", str(storage))
    monkeypatch.setenv("COUNTER_TICK_INTERVAL", "0.01")
    monkeypatch.delenv("COUNTER_STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("COUNTER_STORE_NAME", raising=False)
    monkeypatch.delenv("COUNTER_KEY", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return storage


def make_settings(storage_dir: Path, backend: str) -> Settings:
    return Settings(
        storage=StorageConfig(backend=backend, directory=storage_dir),
        counter=CounterConfig(tick_interval_seconds=0.01),
    )


def test_open_store_selects_backend(tmp_path):
    assert isinstance(entry.open_store(make_settings(tmp_path, "preferences")), SharedPreferencesAdapter)
    assert isinstance(entry.open_store(make_settings(tmp_path, "datastore")), DataStoreAdapter)


@pytest.mark.parametrize("backend", ["preferences", "datastore"])
def test_run_persists_ticks(counter_env, backend):
    """Test that a timed run leaves its final value in the store."""
    assert entry.main(["--run", "0.2", "--backend", backend]) == 0

    settings = make_settings(counter_env, backend)
    state = asyncio.run(entry.run_counter(settings, status_only=True))
    assert state.value > 0
    assert state.running is False


def test_reset(counter_env):
    prefs = SharedPreferences(counter_env, "CounterPrefs")
    with prefs.edit() as editor:
        editor.put_int("counter", 25)

    assert entry.main(["--reset", "--backend", "preferences"]) == 0

    assert prefs.get_int("counter") == 0


def test_status_reports_value(counter_env, caplog):
    caplog.set_level(logging.INFO)
    prefs = SharedPreferences(counter_env, "CounterPrefs")
    with prefs.edit() as editor:
        editor.put_int("counter", 11)

    assert entry.main(["--status", "--backend", "preferences"]) == 0

    assert "Value:       11" in caplog.text
    assert prefs.get_int("counter") == 11


def test_configuration_error_exit_code(counter_env, monkeypatch):
    monkeypatch.setenv("COUNTER_TICK_INTERVAL", "-1")

    assert entry.main(["--status"]) == 1


def test_corrupt_store_exit_code(counter_env):
    counter_env.mkdir(parents=True)
    (counter_env / "CounterPrefs.preferences_json").write_text("[]")

    assert entry.main(["--status", "--backend", "datastore"]) == 1


def test_non_integer_record_exit_code(counter_env):
    counter_env.mkdir(parents=True)
    (counter_env / "CounterPrefs.preferences_json").write_text('{"counter": "7"}')

    assert entry.main(["--status", "--backend", "datastore"]) == 1


def test_unreadable_database_exit_code(counter_env):
    counter_env.mkdir(parents=True)
    (counter_env / "CounterPrefs.db").write_bytes(b"not a database" * 100)

    assert entry.main(["--status", "--backend", "preferences"]) == 1


def test_log_level_applied(counter_env, monkeypatch, root_logger):
    monkeypatch.setenv("LOG_LEVEL", "warning")

    assert entry.main(["--status", "--backend", "preferences"]) == 0

    assert root_logger.level == logging.WARNING


def test_verbose_overrides_log_level(counter_env, monkeypatch, root_logger):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    root_logger.setLevel(logging.DEBUG)

    assert entry.main(["--status", "--backend", "preferences", "-v"]) == 0

    assert root_logger.level == logging.DEBUG
