"""
DurableStore adapters for the two preference backends.
"""

import asyncio
import logging
from typing import Optional

from .base import CorruptPreferencesError, DurableStore, PersistenceWriteFailure
from .datastore import PreferencesDataStore
from .models import Preferences, int_preferences_key
from .shared_preferences import SharedPreferences

logger = logging.getLogger(__name__)


def _typed_int(snapshot: Preferences, key: str) -> Optional[int]:
    try:
        return snapshot.get_value(int_preferences_key(key))
    except TypeError as e:
        raise CorruptPreferencesError(f"Stored record {key!r} is not an integer: {e}") from e


class SharedPreferencesAdapter(DurableStore):
    """
    Synchronous adapter: values are readable at construction time and
    every write is committed before ``set`` returns.
    """

    def __init__(self, preferences: SharedPreferences):
        self.preferences = preferences

    def get(self, key: str) -> Optional[int]:
        try:
            return self.preferences.get_int(key)
        except TypeError as e:
            raise CorruptPreferencesError(f"Stored record {key!r} is not an integer: {e}") from e

    def set(self, key: str, value: int) -> None:
        with self.preferences.edit() as editor:
            editor.put_int(key, value)


class DataStoreAdapter(DurableStore):
    """
    Asynchronous adapter over PreferencesDataStore.

    ``set`` records the value in a local cache and launches the edit as a
    detached task, returning immediately; a failed edit is logged and
    dropped. ``get`` answers from that cache first and otherwise from the
    last snapshot the data store has loaded, so a key never written here
    reads as None until the first ``load``. ``flush`` waits for every edit
    still in flight.
    """

    def __init__(self, datastore: PreferencesDataStore):
        self.datastore = datastore
        self._values: dict[str, int] = {}
        self._pending: set[asyncio.Task] = set()

    def get(self, key: str) -> Optional[int]:
        if key in self._values:
            return self._values[key]
        snapshot = self.datastore.snapshot
        if snapshot is None:
            return None
        return _typed_int(snapshot, key)

    async def load(self, key: str) -> Optional[int]:
        snapshot = await self.datastore.read()
        if key in self._values:
            return self._values[key]
        return _typed_int(snapshot, key)

    def set(self, key: str, value: int) -> None:
        pref_key = int_preferences_key(key)
        # Validate eagerly so a bad value fails at the call site
        pref_key.check(value)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise PersistenceWriteFailure(
                "Data store writes require a running event loop", key=key
            ) from e

        self._values[key] = value
        task = loop.create_task(
            self.datastore.edit(lambda prefs: prefs.set_value(pref_key, value)),
            name=f"persist-{key}",
        )
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.debug(f"Write {task.get_name()} cancelled")
            return
        error = task.exception()
        if isinstance(error, PersistenceWriteFailure):
            logger.warning(f"Write {task.get_name()} failed and was dropped: {error}")
        elif error is not None:
            logger.error(
                f"Unexpected error in write {task.get_name()}: {error}",
                exc_info=error,
            )

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        while self._pending:
            await asyncio.wait(list(self._pending))

    def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
