"""Handler payload kinds.

A handler may leave any of these in the accumulator body. ``classify``
decides how normalization turns it into a response.
"""

from collections.abc import AsyncIterable, Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from cheetah.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Blob:
    """Binary content with a media type.

    Normalization uses ``size`` for ``content-length`` and ``type`` for
    ``content-type`` when the handler did not set one.
    """

    data: bytes
    type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


class PayloadKind(Enum):
    TEXT = auto()
    BINARY = auto()
    BLOB = auto()
    FORM = auto()
    STREAM = auto()
    JSON = auto()


def classify(payload: Any) -> PayloadKind:
    """Return the ``PayloadKind`` of a non-empty payload."""
    if isinstance(payload, str):
        return PayloadKind.TEXT
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return PayloadKind.BINARY
    if isinstance(payload, Blob):
        return PayloadKind.BLOB
    if isinstance(payload, FormData):
        return PayloadKind.FORM
    # Lists and dicts are iterable but not iterators: they serialize as JSON
    if isinstance(payload, (AsyncIterable, Iterator)):
        return PayloadKind.STREAM
    return PayloadKind.JSON


def is_empty(payload: Any) -> bool:
    """Whether *payload* leaves the body unset.

    ``None`` and zero-length text or bytes-likes are empty. Falsy scalars
    such as ``0`` or ``False`` are bodies: they serialize as JSON.
    """
    if payload is None:
        return True
    return isinstance(payload, (str, bytes, bytearray, memoryview)) and len(payload) == 0
