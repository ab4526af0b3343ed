"""Response normalization — accumulator to Response.

``normalize`` runs right after the handler chain and settles the body
kind, status and headers in place. Post-dispatch extensions then see
(and may change) the normalized accumulator, and ``build_response``
produces the outbound ``Response`` or ``StreamingResponse``.

Dispatch by payload kind:

1. nothing, or a ``location`` header -> bodyless response
2. ``str``                 -> UTF-8, text/plain default
3. bytes-like              -> as is
4. ``Blob``                -> its data, its type as content-type default
5. ``FormData``            -> multipart-encoded, streamed
6. sync/async iterator     -> streamed, no content-length
7. anything else           -> JSON, application/json default; a truthy
                              integer ``code`` field sets the status
"""

import dataclasses
import json as json_module
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel

from cheetah.context.response import Accumulator
from cheetah.http.forms import encode_multipart
from cheetah.http.payload import PayloadKind, classify, is_empty
from cheetah.http.response import AnyResponse, Response, StreamingResponse

TEXT_TYPE = "text/plain; charset=utf-8"
JSON_TYPE = "application/json; charset=utf-8"

# Statuses that keep a handler's cache-control header
_CACHEABLE = frozenset({200, 301})


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def dump_json(value: Any) -> str:
    """Serialize *value* compactly; pydantic models and dataclasses included."""
    return json_module.dumps(value, default=_jsonable, ensure_ascii=False, separators=(",", ":"))


def _status_from(value: Any) -> int | None:
    if isinstance(value, Mapping):
        code = value.get("code")
        if isinstance(code, int) and not isinstance(code, bool) and code:
            return code
    return None


def _chunked(data: bytes, size: int = 64 * 1024) -> Iterator[bytes]:
    for start in range(0, len(data), size):
        yield data[start : start + size]


def normalize(acc: Accumulator) -> None:
    """Settle the accumulator's body, status and headers in place."""
    headers = acc.headers

    if acc.code not in _CACHEABLE:
        headers.discard("cache-control")

    if "location" in headers or is_empty(acc.body):
        acc.body = None
        return

    body = acc.body
    match classify(body):
        case PayloadKind.TEXT:
            headers["content-length"] = str(len(body.encode("utf-8")))
            headers.setdefault("content-type", TEXT_TYPE)
        case PayloadKind.BINARY:
            acc.body = bytes(body)
            headers["content-length"] = str(len(acc.body))
        case PayloadKind.BLOB:
            headers["content-length"] = str(body.size)
            if body.type:
                headers.setdefault("content-type", body.type)
        case PayloadKind.FORM:
            content_type, data = encode_multipart(body)
            headers["content-type"] = content_type
            headers.discard("content-length")
            acc.body = _chunked(data)
        case PayloadKind.STREAM:
            headers.discard("content-length")
        case PayloadKind.JSON:
            if isinstance(body, BaseModel) or (
                dataclasses.is_dataclass(body) and not isinstance(body, type)
            ):
                body = _jsonable(body)
            status = _status_from(body)
            if status is not None:
                acc.code = status
            acc.body = dump_json(body)
            headers["content-length"] = str(len(acc.body.encode("utf-8")))
            headers.setdefault("content-type", JSON_TYPE)


def build_response(acc: Accumulator) -> AnyResponse:
    """Build the outbound response from a normalized accumulator.

    Post-dispatch extensions may have replaced the body after
    normalization, so ``content-length`` is recomputed for complete bodies.
    """
    headers = acc.headers
    body = acc.body

    if "location" in headers or is_empty(body):
        headers.discard("content-length")
        return Response(body=b"", status=acc.code, headers=headers.multi_items())

    match classify(body):
        case PayloadKind.STREAM:
            return StreamingResponse(chunks=body, status=acc.code, headers=headers.multi_items())
        case PayloadKind.TEXT:
            data = body.encode("utf-8")
        case PayloadKind.BINARY:
            data = bytes(body)
        case PayloadKind.BLOB:
            data = body.data
        case PayloadKind.FORM:
            content_type, data = encode_multipart(body)
            headers["content-type"] = content_type
        case _:
            data = dump_json(body).encode("utf-8")
            headers.setdefault("content-type", JSON_TYPE)

    headers["content-length"] = str(len(data))
    return Response(body=data, status=acc.code, headers=headers.multi_items())


def to_response(value: Any) -> AnyResponse:
    """Turn a not-found or error handler's return value into a response."""
    if isinstance(value, (Response, StreamingResponse)):
        return value
    acc = Accumulator(body=value)
    normalize(acc)
    return build_response(acc)

