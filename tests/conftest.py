"""
Pytest configuration and shared fixtures.

Provides temporary preference stores and counters wired to them.
"""

import pytest
from pathlib import Path
from typing import Optional

from persistent_counter.counter import PersistentCounter
from persistent_counter.storage import (
    DataStoreAdapter,
    DurableStore,
    PersistenceWriteFailure,
    PreferencesDataStore,
    SharedPreferences,
    SharedPreferencesAdapter,
)


# ============================================================================
# Test Doubles
# ============================================================================

class MemoryStore(DurableStore):
    """Dictionary-backed store recording every write."""

    def __init__(self, initial: Optional[dict] = None):
        self.values = dict(initial or {})
        self.writes: list[tuple[str, int]] = []

    def get(self, key: str) -> Optional[int]:
        return self.values.get(key)

    def set(self, key: str, value: int) -> None:
        self.writes.append((key, value))
        self.values[key] = value


class FailingStore(MemoryStore):
    """Store whose every write fails."""

    def set(self, key: str, value: int) -> None:
        self.writes.append((key, value))
        raise PersistenceWriteFailure("disk full", key=key)


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    """Private storage directory for one test."""
    path = tmp_path / "app_data"
    path.mkdir()
    return path


@pytest.fixture
def shared_preferences(storage_dir: Path) -> SharedPreferences:
    """Fresh SharedPreferences file."""
    return SharedPreferences(storage_dir, "CounterPrefs")


@pytest.fixture
def datastore(storage_dir: Path) -> PreferencesDataStore:
    """Fresh PreferencesDataStore."""
    return PreferencesDataStore(storage_dir, "CounterPrefs")


@pytest.fixture
def preferences_adapter(shared_preferences: SharedPreferences) -> SharedPreferencesAdapter:
    return SharedPreferencesAdapter(shared_preferences)


@pytest.fixture
def datastore_adapter(datastore: PreferencesDataStore) -> DataStoreAdapter:
    return DataStoreAdapter(datastore)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


# ============================================================================
# Counter Fixtures
# ============================================================================

@pytest.fixture
def counter(memory_store: MemoryStore) -> PersistentCounter:
    """Counter over an in-memory store with a tick interval long enough
    that the loop never fires during a test."""
    return PersistentCounter(memory_store, tick_interval=3600)
