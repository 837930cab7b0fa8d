"""
Asynchronous typed preference data store.

Preferences live in a small JSON file. File I/O runs in a worker
thread so the event loop never blocks on disk, edits are serialized,
and every committed change is published to subscribers of ``data()``.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from .base import CorruptPreferencesError, PersistenceWriteFailure
from .models import MutablePreferences, Preferences

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".preferences_json"


class PreferencesDataStore:
    """
    Typed preference store with asynchronous reads and writes.

    Edits apply to a copy of the latest snapshot and are written with a
    temp file + rename, so the file on disk is always either the old or
    the new snapshot. Edits are applied in the order they were submitted.

    Usage:
        store = PreferencesDataStore(Path("data"), "CounterPrefs")
        counter_key = int_preferences_key("counter")

        prefs = await store.read()
        count = prefs.get_value(counter_key) or 0

        await store.edit(lambda p: p.set_value(counter_key, count + 1))

        async for prefs in store.data():
            print(prefs.get_value(counter_key))
    """

    def __init__(self, directory: Path, name: str = "CounterPrefs"):
        """
        Args:
            directory: Private storage directory of the application
            name: Data store name, without extension
        """
        self.name = name
        self.path = Path(directory) / f"{name}{FILE_SUFFIX}"

        self._lock = asyncio.Lock()
        self._snapshot: Optional[Preferences] = None
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def snapshot(self) -> Optional[Preferences]:
        """Latest loaded snapshot, or None if nothing has been read yet."""
        return self._snapshot

    async def read(self) -> Preferences:
        """
        Return the current preferences, loading the file on first use.

        Raises:
            CorruptPreferencesError: If the file cannot be decoded
        """
        if self._snapshot is not None:
            return self._snapshot
        async with self._lock:
            if self._snapshot is None:
                self._snapshot = await asyncio.to_thread(self._read_file)
                logger.info(f"Data store '{self.name}' loaded from {self.path}")
            return self._snapshot

    async def edit(self, transform: Callable[[MutablePreferences], None]) -> Preferences:
        """
        Atomically apply ``transform`` to the preferences and persist them.

        Args:
            transform: Function mutating the working copy in place

        Returns:
            The committed snapshot

        Raises:
            PersistenceWriteFailure: If the file cannot be written. The
                published snapshot is left unchanged.
        """
        async with self._lock:
            if self._snapshot is None:
                self._snapshot = await asyncio.to_thread(self._read_file)

            working = self._snapshot.to_mutable()
            transform(working)
            updated = working.freeze()

            if updated == self._snapshot:
                return self._snapshot

            await asyncio.to_thread(self._write_file, updated)
            self._snapshot = updated
            logger.debug(f"Data store '{self.name}' committed {len(updated)} preferences")

        self._publish(updated)
        return updated

    async def data(self) -> AsyncIterator[Preferences]:
        """
        Stream the current preferences followed by every committed change.

        Subscribers that fall behind only see the latest snapshot.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        try:
            current = await self.read()
            yield current
            while True:
                updated = await queue.get()
                if updated != current:
                    current = updated
                    yield current
        finally:
            self._subscribers.discard(queue)

    def _publish(self, snapshot: Preferences) -> None:
        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snapshot)

    def _read_file(self) -> Preferences:
        if not self.path.exists():
            return Preferences()
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise CorruptPreferencesError(f"Unable to read {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise CorruptPreferencesError(f"{self.path} does not contain a JSON object")
        return Preferences(raw)

    def _write_file(self, snapshot: Preferences) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(snapshot.as_dict(), f, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceWriteFailure(
                f"Failed to write data store '{self.name}': {e}"
            ) from e
