"""Counter state machine module."""

from .engine import PersistentCounter, COUNTER_KEY
from .models import CounterState, ToggleAction

__all__ = ["PersistentCounter", "COUNTER_KEY", "CounterState", "ToggleAction"]
