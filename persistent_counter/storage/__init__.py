"""Durable preference storage module."""

from .base import DurableStore, StoreError, PersistenceWriteFailure, CorruptPreferencesError
from .adapters import SharedPreferencesAdapter, DataStoreAdapter
from .datastore import PreferencesDataStore
from .shared_preferences import SharedPreferences
from .models import Preferences, PreferenceKey, int_preferences_key

__all__ = [
    "DurableStore",
    "StoreError",
    "PersistenceWriteFailure",
    "CorruptPreferencesError",
    "SharedPreferencesAdapter",
    "DataStoreAdapter",
    "PreferencesDataStore",
    "SharedPreferences",
    "Preferences",
    "PreferenceKey",
    "int_preferences_key",
]
