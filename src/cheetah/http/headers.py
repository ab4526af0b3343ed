"""HTTP header containers.

``Headers`` is the immutable, case-insensitive request side: it stores raw
byte pairs from the ASGI scope and decodes on access.

``MutableHeaders`` is the response side: the header map held by the
per-request accumulator, written by handlers and post-dispatch extensions.
"""

from collections.abc import Iterable, Iterator, Mapping, MutableMapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header (e.g. multiple ``Cookie``).
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> "Headers":
        """Build from ``str`` pairs (edge hosts, tests)."""
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        return cls(
            tuple(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in pairs
            )
        )

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name.lower() == key_lower:
                return value.decode("latin-1")
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower().encode("latin-1")
        return any(name.lower() == key_lower for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.decode("latin-1").lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        key_lower = key.lower().encode("latin-1")
        return [value.decode("latin-1") for name, value in self._raw if name.lower() == key_lower]

    def pairs(self) -> Iterator[tuple[str, str]]:
        """Every header in arrival order, duplicates included, names lower-cased."""
        for name, value in self._raw:
            yield name.decode("latin-1").lower(), value.decode("latin-1")

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Access raw header byte pairs for ASGI compatibility."""
        return self._raw


class MutableHeaders(MutableMapping[str, str]):
    """Case-insensitive, order-preserving response headers.

    ``self[name] = value`` replaces every existing value for *name*;
    ``append`` adds another (``set-cookie``). Names are stored lower-cased.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = [(k.lower(), v) for k, v in items]

    def __getitem__(self, key: str) -> str:
        key = key.lower()
        for name, value in self._items:
            if name == key:
                return value
        raise KeyError(key)

    def __setitem__(self, key: str, value: str) -> None:
        key = key.lower()
        self._items = [(k, v) for k, v in self._items if k != key]
        self._items.append((key, value))

    def __delitem__(self, key: str) -> None:
        key = key.lower()
        remaining = [(k, v) for k, v in self._items if k != key]
        if len(remaining) == len(self._items):
            raise KeyError(key)
        self._items = remaining

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key = key.lower()
        return any(name == key for name, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._items:
            if name not in seen:
                seen.add(name)
                yield name

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"

    def append(self, key: str, value: str) -> None:
        """Add a value without replacing existing ones."""
        self._items.append((key.lower(), value))

    def discard(self, key: str) -> None:
        """Remove *key* if present."""
        key = key.lower()
        self._items = [(k, v) for k, v in self._items if k != key]

    def get_list(self, key: str) -> list[str]:
        key = key.lower()
        return [v for k, v in self._items if k == key]

    def multi_items(self) -> tuple[tuple[str, str], ...]:
        """All ``(name, value)`` pairs, duplicates included."""
        return tuple(self._items)
