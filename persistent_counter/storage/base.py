"""
Durable store interface consumed by the counter.

The counter only ever needs two operations on a single integer record:
read it and overwrite it. Backends differ in whether a read can be
answered immediately and in whether writes complete before ``set``
returns; neither difference leaks into the counter's state machine.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StoreError(Exception):
    """Base class for durable store failures."""
    pass


class PersistenceWriteFailure(StoreError):
    """Raised when a write cannot be committed to the durable store."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class CorruptPreferencesError(StoreError):
    """Raised when a preference file exists but cannot be decoded."""
    pass


class DurableStore(ABC):
    """
    Narrow key-value contract between the counter and its persistence backend.

    Implementations must provide a synchronous ``get`` and ``set``. Backends
    whose reads complete asynchronously answer ``None`` from ``get`` until
    their data is loaded and override ``load`` to await it.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[int]:
        """
        Read an integer record.

        Args:
            key: Record name

        Returns:
            Stored value, or None if absent or not loaded yet
        """
        pass

    @abstractmethod
    def set(self, key: str, value: int) -> None:
        """
        Write an integer record.

        Args:
            key: Record name
            value: Full value to store

        Raises:
            PersistenceWriteFailure: If the write fails before returning
        """
        pass

    async def load(self, key: str) -> Optional[int]:
        """Read a record, waiting for the backend if it loads asynchronously."""
        return self.get(key)

    async def flush(self) -> None:
        """Wait for writes still in flight. Synchronous backends have none."""
        return None

    def close(self) -> None:
        """Release backend resources."""
        return None
