"""
Unit tests for counter state models.
"""

import dataclasses

import pytest

from persistent_counter.counter.models import CounterState, ToggleAction


class TestCounterState:
    """Tests for CounterState."""

    def test_defaults(self):
        state = CounterState()
        assert state.value == 0
        assert state.running is False

    def test_is_immutable(self):
        state = CounterState(value=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.value = 2

    @pytest.mark.parametrize(
        "value,running,expected",
        [
            (0, False, ToggleAction.START),
            (5, False, ToggleAction.RESUME),
            (0, True, ToggleAction.PAUSE),
            (5, True, ToggleAction.PAUSE),
        ],
    )
    def test_toggle_action(self, value, running, expected):
        """Test which action the start/pause control offers."""
        assert CounterState(value=value, running=running).toggle_action is expected

    def test_str(self):
        assert str(CounterState(value=3, running=True)) == "3 (running)"
        assert str(CounterState(value=3)) == "3 (paused)"
