"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, unquote, urlsplit

from cheetah._internal.asgi import Receive
from cheetah.http.forms import media_type
from cheetah.http.headers import Headers
from cheetah.http.query import QueryParams

if TYPE_CHECKING:
    from cheetah.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.form()``.
    The body is read from the host once and buffered, so every reader can
    be called more than once.
    """

    method: str
    path: str
    query_string: str
    headers: Headers
    client: tuple[str, int] | None = None
    server: tuple[str, int] | None = None
    http_version: str = "1.1"
    # Path as received, still percent-encoded; routing decodes it once
    raw_path: str = ""

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for body and parsed form data
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def encoded_path(self) -> str:
        """The path still percent-encoded, as matched by the router."""
        return self.raw_path or quote(self.path)

    @property
    def url(self) -> str:
        """Request target as received (encoded path + query string)."""
        if self.query_string:
            return f"{self.encoded_path}?{self.query_string}"
        return self.encoded_path

    @property
    def query(self) -> QueryParams:
        """Raw multi-value query parameters."""
        if "_query" not in self._cache:
            self._cache["_query"] = QueryParams(self.query_string)
        return self._cache["_query"]

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def is_multipart(self) -> bool:
        return media_type(self.content_type) == "multipart/form-data"

    @property
    def body_used(self) -> bool:
        """True once the body has been fully read from the host."""
        return "_body" in self._cache

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Cached: the ASGI receive is consumed once, then the same bytes are
        returned on subsequent calls. Chunks are buffered as they arrive,
        so a read cut short by a deadline loses nothing and the next call
        resumes where it stopped.
        """
        if "_body" not in self._cache:
            buffered = self._cache.setdefault("_chunks", [])
            async for chunk in self._receive_chunks():
                buffered.append(chunk)
            self._finish()
        return self._cache["_body"]

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks.

        Chunks go through the same buffer as ``body()``: already-buffered
        chunks are replayed first, and once the stream ends the body is
        available to every other reader.
        """
        if "_body" in self._cache:
            if self._cache["_body"]:
                yield self._cache["_body"]
            return
        buffered = self._cache.setdefault("_chunks", [])
        for chunk in list(buffered):
            yield chunk
        async for chunk in self._receive_chunks():
            buffered.append(chunk)
            yield chunk
        self._finish()

    def _finish(self) -> None:
        self._cache["_body"] = b"".join(self._cache.pop("_chunks", ()))

    async def _receive_chunks(self) -> AsyncGenerator[bytes]:
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def form(self) -> FormData:
        """Parse the body as form data (URL-encoded or multipart).

        Cached: the body is read and parsed once, then
        the same ``FormData`` is returned on subsequent calls.

        Raises:
            ValueError: If Content-Type is not a form encoding or the
                body is malformed.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from cheetah.http.forms import parse_form_data

        ct = self.content_type or "application/x-www-form-urlencoded"
        raw = await self.body()
        result = await parse_form_data(raw, ct)
        self._cache["_form"] = result
        return result

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable.

        ``path`` in the scope is already percent-decoded. The encoded form
        comes from ``raw_path`` when the server provides it.
        """
        server = scope.get("server")
        client = scope.get("client")
        raw_path = scope.get("raw_path")
        if raw_path:
            raw = raw_path.decode("latin-1").split("?", 1)[0]
        else:
            raw = quote(scope["path"])
        return cls(
            method=scope["method"],
            path=scope["path"],
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=Headers(tuple(scope.get("headers", ()))),
            client=tuple(client) if client else None,
            server=tuple(server) if server else None,
            http_version=scope.get("http_version", "1.1"),
            raw_path=raw,
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        body: bytes | str = b"",
        client: tuple[str, int] | None = None,
    ) -> Request:
        """Create a Request without an ASGI server (edge hosts, tests).

        *url* may be absolute or a bare path with an optional query string,
        percent-encoded as it would arrive on the wire.
        """
        parts = urlsplit(url)
        raw_path = parts.path or "/"
        payload = body.encode("utf-8") if isinstance(body, str) else body

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": payload, "more_body": False}

        return cls(
            method=method.upper(),
            path=unquote(raw_path),
            query_string=parts.query,
            raw_path=raw_path,
            headers=Headers.from_mapping(headers or {}),
            client=client,
            _receive=receive,
        )
