"""
Unit tests for typed preference models.
"""

import pytest

from persistent_counter.storage.models import (
    PreferenceKey,
    Preferences,
    bool_preferences_key,
    float_preferences_key,
    int_preferences_key,
)


class TestPreferenceKey:
    """Tests for typed keys."""

    def test_bool_is_not_int(self):
        with pytest.raises(TypeError):
            int_preferences_key("counter").check(True)
        assert bool_preferences_key("flag").check(False) is False

    def test_float_accepts_int(self):
        assert float_preferences_key("ratio").check(2) == 2.0

    def test_unsupported_type(self):
        with pytest.raises(TypeError, match="unsupported"):
            PreferenceKey("items", list)

    def test_empty_name(self):
        with pytest.raises(ValueError):
            int_preferences_key("")


class TestPreferences:
    """Tests for snapshots and working copies."""

    def test_mutable_copy_does_not_change_snapshot(self):
        counter = int_preferences_key("counter")
        snapshot = Preferences({"counter": 1})

        working = snapshot.to_mutable()
        working.set_value(counter, 2)

        assert snapshot.get_value(counter) == 1
        assert working.freeze().get_value(counter) == 2

    def test_remove_and_clear(self):
        counter = int_preferences_key("counter")
        working = Preferences({"counter": 1, "other": 2}).to_mutable()

        working.remove(counter)
        assert dict(working) == {"other": 2}
        assert not working.has(counter)

        working.clear()
        assert len(working) == 0

    def test_equality(self):
        assert Preferences({"a": 1}) == Preferences({"a": 1})
        assert Preferences({"a": 1}) != Preferences({"a": 2})
        assert hash(Preferences({"a": 1})) == hash(Preferences({"a": 1}))
