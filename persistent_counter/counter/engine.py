"""
Persistent counter state machine.

Owns the counter value and the running flag, drives the once-per-interval
tick loop and writes the value to a durable store after every change.
"""

import asyncio
import logging
from typing import Callable, Optional

from ..storage.base import DurableStore, PersistenceWriteFailure
from .models import CounterState

logger = logging.getLogger(__name__)

COUNTER_KEY = "counter"
DEFAULT_TICK_INTERVAL = 1.0

Observer = Callable[[CounterState], None]


class PersistentCounter:
    """
    Counter that ticks once per interval while running and survives restarts.

    Two states: paused (initial) and running. The in-memory value is
    authoritative; every change to it issues exactly one write of the full
    value to the store, and a failed write is logged and dropped.

    The running flag is never persisted, so a new counter always starts
    paused at the last stored value.

    Usage:
        counter = PersistentCounter(store)
        await counter.restore()

        unsubscribe = counter.subscribe(lambda state: print(state.value))
        counter.toggle_running()
        ...
        counter.reset()
        await counter.aclose()
    """

    def __init__(
        self,
        store: DurableStore,
        key: str = COUNTER_KEY,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
    ):
        """
        Initialize the counter from the store.

        Synchronous stores provide the stored value here. Asynchronous
        stores start at 0 until ``restore()`` completes.

        Args:
            store: Durable store holding the counter record
            key: Name of the counter record
            tick_interval: Seconds slept before each tick
        """
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")

        self.store = store
        self.key = key
        self.tick_interval = tick_interval

        self._value = self._accept_stored(store.get(key)) or 0
        self._running = False
        self._mutated = False
        self._loop_task: Optional[asyncio.Task] = None
        self._observers: list[Observer] = []

    @property
    def value(self) -> int:
        return self._value

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> CounterState:
        """Current snapshot, for presentation layers that poll."""
        return CounterState(value=self._value, running=self._running)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register a callback invoked with a fresh CounterState after each change.

        Args:
            observer: Callable receiving the new state

        Returns:
            Function that removes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def restore(self) -> int:
        """
        Load the stored value, waiting for asynchronous stores.

        The loaded value is ignored if the counter was ticked or reset in
        the meantime, since local state is authoritative.

        Returns:
            Counter value after restoring
        """
        stored = self._accept_stored(await self.store.load(self.key))
        if stored is not None and not self._mutated and stored != self._value:
            logger.info(f"Restored counter '{self.key}' to {stored}")
            self._value = stored
            self._notify()
        return self._value

    def toggle_running(self) -> bool:
        """
        Switch between paused and running.

        Must be called from a running event loop when starting.

        Returns:
            The new running flag
        """
        running = not self._running
        if running:
            self._ensure_loop()
        self._running = running
        logger.debug(f"Counter '{self.key}' {'started' if self._running else 'paused'} at {self._value}")
        self._notify()
        return self._running

    def start(self) -> None:
        if not self._running:
            self.toggle_running()

    def pause(self) -> None:
        if self._running:
            self.toggle_running()

    def reset(self) -> None:
        """Pause the counter and set it back to zero, persisting the zero."""
        self._running = False
        self._value = 0
        self._mutated = True
        self._persist(0)
        logger.debug(f"Counter '{self.key}' reset")
        self._notify()

    def tick(self) -> bool:
        """
        Advance the counter by one if it is running.

        Returns:
            True if the value was incremented
        """
        if not self._running:
            return False
        self._value += 1
        self._mutated = True
        self._persist(self._value)
        self._notify()
        return True

    async def aclose(self) -> None:
        """Stop the tick loop, drop observers and wait for pending writes."""
        self._running = False
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._observers.clear()
        await self.store.flush()

    async def __aenter__(self) -> "PersistentCounter":
        await self.restore()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _ensure_loop(self) -> None:
        # A loop paused moments ago may still be sleeping; it picks the
        # running flag back up, so never start a second one.
        if self._loop_task is None or self._loop_task.done():
            loop = asyncio.get_running_loop()
            self._loop_task = loop.create_task(
                self._run_loop(), name=f"counter-{self.key}"
            )

    async def _run_loop(self) -> None:
        logger.debug(f"Tick loop for '{self.key}' started")
        try:
            while self._running:
                await asyncio.sleep(self.tick_interval)
                if not self._running:
                    break
                self.tick()
        finally:
            logger.debug(f"Tick loop for '{self.key}' stopped")

    def _persist(self, value: int) -> None:
        try:
            self.store.set(self.key, value)
        except PersistenceWriteFailure as e:
            logger.warning(f"Could not persist counter '{self.key}' = {value}: {e}")

    def _notify(self) -> None:
        state = self.state
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception as e:
                logger.error(f"Counter observer {observer!r} failed: {e}", exc_info=True)

    def _accept_stored(self, stored: Optional[int]) -> Optional[int]:
        if stored is not None and stored < 0:
            logger.warning(f"Ignoring negative stored value {stored} for '{self.key}'")
            return None
        return stored
