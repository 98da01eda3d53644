from __future__ import annotations

from typing import Any

_SCALAR_TYPES = (str, int, float, bool, type(None))


def is_session_value(value: Any) -> bool:
    if isinstance(value, _SCALAR_TYPES):
        return True
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_session_value(v) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return all(is_session_value(v) for v in value)
    return False


class Session:
    """Mutable view of one conversation's key/value state for the duration of one call.

    Values are restricted to JSON-like variants (str, int, float, bool, None and
    nested mappings/lists of those) so that every store backend can persist them.
    The typed accessors never raise: a missing key or a value of another variant
    reads as the zero value of the requested type.
    """

    __slots__ = ("_session_id", "_data")

    def __init__(self, session_id: str, data: dict[str, Any] | None = None) -> None:
        self._session_id = session_id
        self._data: dict[str, Any] = data if data is not None else {}

    @property
    def session_id(self) -> str:
        return self._session_id

    def data(self) -> dict[str, Any]:
        return self._data

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if not is_session_value(value):
            raise TypeError(f"unsupported session value for key={key!r}: {type(value).__name__}")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def get_str(self, key: str) -> str:
        value = self._data.get(key)
        return value if isinstance(value, str) else ""

    def get_int(self, key: str) -> int:
        value = self._data.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return 0
        return value

    def get_float(self, key: str) -> float:
        value = self._data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    def get_bool(self, key: str) -> bool:
        value = self._data.get(key)
        return value if isinstance(value, bool) else False

    def get_map(self, key: str) -> dict[str, Any]:
        value = self._data.get(key)
        return value if isinstance(value, dict) else {}

    def __repr__(self) -> str:
        return f"Session(session_id={self._session_id!r}, keys={sorted(self._data)!r})"
