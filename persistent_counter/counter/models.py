"""
Counter state models.
"""

from dataclasses import dataclass
from enum import Enum


class ToggleAction(Enum):
    """What the start/pause control does when pressed in the current state."""

    # Paused at zero
    START = "start"

    # Paused with progress to continue from
    RESUME = "resume"

    # Running
    PAUSE = "pause"


@dataclass(frozen=True)
class CounterState:
    """
    Snapshot of a PersistentCounter handed to observers.

    Attributes:
        value: Number of ticks since the last reset
        running: Whether the tick loop is advancing the value
    """
    value: int = 0
    running: bool = False

    @property
    def toggle_action(self) -> ToggleAction:
        if self.running:
            return ToggleAction.PAUSE
        if self.value > 0:
            return ToggleAction.RESUME
        return ToggleAction.START

    def __str__(self) -> str:
        status = "running" if self.running else "paused"
        return f"{self.value} ({status})"
