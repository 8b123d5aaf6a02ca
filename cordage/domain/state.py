"""Layered key-value state over a session."""

from typing import Any, Iterator, Mapping

APP_PREFIX = "app:"
USER_PREFIX = "user:"
TEMP_PREFIX = "temp:"


class State:
    """
    A two-layer view over session state.

    ``value`` is the committed session state, ``delta`` holds the writes made
    during the current step. Reads prefer the delta layer; writes land in
    both so later readers in the same invocation see them immediately while
    the delta still records what has to be persisted.
    """

    def __init__(self, value: dict[str, Any], delta: dict[str, Any]):
        self._value = value
        self._delta = delta

    def __getitem__(self, key: str) -> Any:
        if key in self._delta:
            return self._delta[key]
        return self._value[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._value[key] = value
        self._delta[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._delta or key in self._value

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_dict())

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self:
            return default
        return self[key]

    def set(self, key: str, value: Any) -> None:
        self[key] = value

    def has_delta(self) -> bool:
        return bool(self._delta)

    def update(self, delta: Mapping[str, Any]) -> None:
        self._value.update(delta)
        self._delta.update(delta)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        result.update(self._value)
        result.update(self._delta)
        return result


def strip_temp_keys(delta: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``delta`` without invocation-scoped keys."""
    return {key: value for key, value in delta.items() if not key.startswith(TEMP_PREFIX)}


__all__ = ["State", "APP_PREFIX", "USER_PREFIX", "TEMP_PREFIX", "strip_temp_keys"]
