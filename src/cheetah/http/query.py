"""Query string parameters.

``QueryParams`` is the raw, immutable multi-value view kept on ``Request``.
``parse_query`` is the coercing parser behind ``c.req.query``.
"""

import re
from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import parse_qs, parse_qsl

# A value that is entirely a number: 5, -3, 2.5, .5, 1e3
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    _data: dict[str, list[str]]
    _raw: str

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: str = "") -> None:
        object.__setattr__(self, "_raw", query_string)
        parsed = parse_qs(query_string, keep_blank_values=True)
        object.__setattr__(self, "_data", parsed)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"QueryParams({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    @property
    def raw(self) -> str:
        return self._raw


def coerce_query_value(value: str) -> Any:
    """Coerce one decoded query value.

    ``""``/``"true"`` → True, ``"false"`` → False, ``"a,b"`` → list,
    numeric text → int or float, ``"null"`` → None, else the string.
    ``"undefined"`` is handled by the caller (the key is dropped).
    """
    if value in ("", "true"):
        return True
    if value == "false":
        return False
    if "," in value:
        return value.split(",")
    if _INTEGER.fullmatch(value):
        return int(value)
    if _NUMBER.fullmatch(value):
        return float(value)
    if value == "null":
        return None
    return value


def parse_query(query_string: str) -> dict[str, Any]:
    """Parse a query string into a dict of coerced values.

    Later occurrences of a key overwrite earlier ones. A key whose value is
    the literal ``undefined`` is left out of the result.

    Examples::

        parse_query("a")         -> {"a": True}
        parse_query("a=false")   -> {"a": False}
        parse_query("a=1,2")     -> {"a": ["1", "2"]}
        parse_query("a=5")       -> {"a": 5}
        parse_query("a=hello")   -> {"a": "hello"}
    """
    result: dict[str, Any] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        if not key:
            continue
        if value == "undefined":
            result.pop(key, None)
            continue
        result[key] = coerce_query_value(value)
    return result
