"""
Typed preference models.

A preference key couples a name with the Python type of its value, so
reading ``int_preferences_key("counter")`` can never silently hand back
a string. Snapshots of a whole preference file are immutable; edits go
through a mutable copy.
"""

from dataclasses import dataclass
from typing import Any, Generic, Iterator, Mapping, Optional, TypeVar

T = TypeVar("T")

SUPPORTED_TYPES = (int, float, str, bool)


@dataclass(frozen=True)
class PreferenceKey(Generic[T]):
    """
    Name and value type of a single preference.

    Attributes:
        name: Key under which the value is stored
        value_type: One of int, float, str or bool
    """
    name: str
    value_type: type

    def __post_init__(self):
        if not self.name:
            raise ValueError("preference keys must have a name")
        if self.value_type not in SUPPORTED_TYPES:
            raise TypeError(f"unsupported preference type: {self.value_type!r}")

    def check(self, value: Any) -> T:
        """
        Validate that a value matches this key's type.

        bool is a subclass of int, so the comparison is on the exact type.
        Integers are accepted for float keys.

        Raises:
            TypeError: If the value has the wrong type
        """
        if type(value) is self.value_type:
            return value
        if self.value_type is float and type(value) is int:
            return float(value)
        raise TypeError(
            f"preference {self.name!r} holds {type(value).__name__}, "
            f"expected {self.value_type.__name__}"
        )


def int_preferences_key(name: str) -> PreferenceKey[int]:
    return PreferenceKey(name, int)


def float_preferences_key(name: str) -> PreferenceKey[float]:
    return PreferenceKey(name, float)


def string_preferences_key(name: str) -> PreferenceKey[str]:
    return PreferenceKey(name, str)


def bool_preferences_key(name: str) -> PreferenceKey[bool]:
    return PreferenceKey(name, bool)


class Preferences(Mapping[str, Any]):
    """Immutable snapshot of a preference file."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = dict(values or {})

    def get_value(self, key: PreferenceKey[T]) -> Optional[T]:
        """Return the typed value for ``key`` or None if it is absent."""
        if key.name not in self._values:
            return None
        return key.check(self._values[key.name])

    def has(self, key: PreferenceKey) -> bool:
        return key.name in self._values

    def to_mutable(self) -> "MutablePreferences":
        return MutablePreferences(self._values)

    def as_dict(self) -> dict:
        return dict(self._values)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Preferences):
            return self._values == other._values
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._values.items())))

    def __repr__(self) -> str:
        return f"Preferences({self._values!r})"


class MutablePreferences(Preferences):
    """Working copy handed to data store edit transforms."""

    def set_value(self, key: PreferenceKey[T], value: T) -> None:
        self._values[key.name] = key.check(value)

    def remove(self, key: PreferenceKey) -> None:
        self._values.pop(key.name, None)

    def clear(self) -> None:
        self._values.clear()

    def freeze(self) -> Preferences:
        return Preferences(self._values)

    __hash__ = None  # type: ignore[assignment]
