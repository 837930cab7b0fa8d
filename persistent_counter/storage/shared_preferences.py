"""
SQLite-based named preference file.

Synchronous key-value storage for small typed values. Reads return
immediately; writes are grouped by an editor and committed atomically.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from .base import CorruptPreferencesError, PersistenceWriteFailure

logger = logging.getLogger(__name__)

_TYPE_TAGS = {
    bool: "bool",
    int: "int",
    float: "float",
    str: "str",
}
_DECODERS = {
    "bool": lambda raw: raw == "1",
    "int": int,
    "float": float,
    "str": str,
}


class Editor:
    """
    Pending changes to a SharedPreferences file.

    Obtained from ``SharedPreferences.edit()``; nothing is written until
    the surrounding ``with`` block exits without an exception.
    """

    def __init__(self):
        self._puts: dict[str, tuple[str, str]] = {}
        self._removals: set[str] = set()
        self._clear = False

    def _put(self, key: str, value: Any) -> "Editor":
        tag = _TYPE_TAGS[type(value)]
        raw = ("1" if value else "0") if tag == "bool" else str(value)
        self._removals.discard(key)
        self._puts[key] = (tag, raw)
        return self

    def put_int(self, key: str, value: int) -> "Editor":
        if type(value) is not int:
            raise TypeError(f"put_int expects int, got {type(value).__name__}")
        return self._put(key, value)

    def put_float(self, key: str, value: float) -> "Editor":
        return self._put(key, float(value))

    def put_string(self, key: str, value: str) -> "Editor":
        if not isinstance(value, str):
            raise TypeError(f"put_string expects str, got {type(value).__name__}")
        return self._put(key, value)

    def put_bool(self, key: str, value: bool) -> "Editor":
        return self._put(key, bool(value))

    def remove(self, key: str) -> "Editor":
        self._puts.pop(key, None)
        self._removals.add(key)
        return self

    def clear(self) -> "Editor":
        self._clear = True
        self._puts.clear()
        self._removals.clear()
        return self

    @property
    def is_empty(self) -> bool:
        return not (self._puts or self._removals or self._clear)


class SharedPreferences:
    """
    Named preference file backed by SQLite.

    Features:
    - Typed values (int, float, str, bool)
    - Batched edits committed in one transaction
    - Automatic schema migration

    Usage:
        prefs = SharedPreferences(Path("data"), "CounterPrefs")

        count = prefs.get_int("counter", 0)

        with prefs.edit() as editor:
            editor.put_int("counter", count + 1)
    """

    SCHEMA_VERSION = 1

    CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS preferences (
            key TEXT PRIMARY KEY,
            value_type TEXT NOT NULL,
            value TEXT NOT NULL
        )
    """

    CREATE_METADATA_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS _metadata (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """

    def __init__(self, directory: Path, name: str = "CounterPrefs"):
        """
        Open (or create) a preference file.

        Args:
            directory: Private storage directory of the application
            name: Preference file name, without extension
        """
        self.name = name
        self.database_path = Path(directory) / f"{name}.db"

        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialize_database()

        logger.info(f"Shared preferences '{name}' opened at {self.database_path}")

    def _initialize_database(self) -> None:
        """Create tables and run migrations."""
        with self._checked_connection() as conn:
            cursor = conn.cursor()

            cursor.execute(self.CREATE_METADATA_TABLE_SQL)

            cursor.execute("SELECT value FROM _metadata WHERE key = 'schema_version'")
            row = cursor.fetchone()
            current_version = int(row[0]) if row else 0

            if current_version < self.SCHEMA_VERSION:
                logger.info(f"Upgrading schema from v{current_version} to v{self.SCHEMA_VERSION}")
                cursor.execute(
                    "INSERT OR REPLACE INTO _metadata (key, value) VALUES (?, ?)",
                    ("schema_version", str(self.SCHEMA_VERSION)),
                )

            cursor.execute(self.CREATE_TABLE_SQL)

            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection with proper settings.

        Yields:
            SQLite connection in WAL mode
        """
        conn = sqlite3.connect(
            self.database_path,
            timeout=30.0,
            isolation_level="DEFERRED",
        )

        try:
            conn.execute("PRAGMA journal_mode=WAL")
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _checked_connection(self) -> Iterator[sqlite3.Connection]:
        """
        Connection for opening and reading the file.

        Raises:
            CorruptPreferencesError: If SQLite cannot read the file
        """
        try:
            with self._get_connection() as conn:
                yield conn
        except sqlite3.Error as e:
            raise CorruptPreferencesError(
                f"Unable to read preferences '{self.name}' at {self.database_path}: {e}"
            ) from e

    def _read(self, key: str) -> Optional[tuple[str, str]]:
        with self._checked_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT value_type, value FROM preferences WHERE key = ?",
                (key,),
            )
            return cursor.fetchone()

    def _get_typed(self, key: str, expected: str, default: Any) -> Any:
        row = self._read(key)
        if row is None:
            return default
        value_type, raw = row
        if value_type != expected:
            raise TypeError(f"preference {key!r} holds {value_type}, expected {expected}")
        return _DECODERS[value_type](raw)

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """
        Get an integer preference.

        Args:
            key: Preference name
            default: Returned when the preference is absent

        Returns:
            Stored integer or ``default``

        Raises:
            TypeError: If the preference holds another type
            CorruptPreferencesError: If the file cannot be read
        """
        return self._get_typed(key, "int", default)

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        return self._get_typed(key, "float", default)

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._get_typed(key, "str", default)

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        return self._get_typed(key, "bool", default)

    def contains(self, key: str) -> bool:
        return self._read(key) is not None

    def get_all(self) -> dict[str, Any]:
        """Return every stored preference decoded to its Python type."""
        with self._checked_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT key, value_type, value FROM preferences ORDER BY key")
            return {
                key: _DECODERS[value_type](raw)
                for key, value_type, raw in cursor.fetchall()
            }

    @contextmanager
    def edit(self) -> Iterator[Editor]:
        """
        Batch preference changes.

        Changes made on the yielded editor are committed in a single
        transaction when the block exits normally and discarded if it
        raises.

        Raises:
            PersistenceWriteFailure: If the commit fails
        """
        editor = Editor()
        yield editor
        if not editor.is_empty:
            self._commit(editor)

    def _commit(self, editor: Editor) -> None:
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                if editor._clear:
                    cursor.execute("DELETE FROM preferences")
                for key in editor._removals:
                    cursor.execute("DELETE FROM preferences WHERE key = ?", (key,))
                for key, (value_type, raw) in editor._puts.items():
                    cursor.execute(
                        "INSERT OR REPLACE INTO preferences (key, value_type, value) VALUES (?, ?, ?)",
                        (key, value_type, raw),
                    )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceWriteFailure(
                f"Failed to commit preferences '{self.name}': {e}"
            ) from e

        if editor._clear:
            logger.warning(f"All preferences in '{self.name}' cleared")
        logger.debug(
            f"Committed {len(editor._puts)} puts and {len(editor._removals)} removals to '{self.name}'"
        )
