"""``c.req`` — the request side of the per-request context.

Validated views (``headers``, ``cookies``, ``query``) are computed on first
access and memoized for the rest of the request. Each validates against
the route's schema when one is configured and raises ``BadRequest`` on a
mismatch. Without a schema the parsed value is returned as is.

The raw readers (``blob``, ``buffer``, ``form_data``, ``text``, ``json``)
never raise: any failure, a timeout or a decode error included, gives
``None``. A read cut short by its deadline keeps what arrived, so a later
reader still sees the whole body.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import anyio

from cheetah.config import AppConfig
from cheetah.errors import BadRequest, ContentTooLarge
from cheetah.http.cookies import parse_cookies
from cheetah.http.payload import Blob
from cheetah.http.query import parse_query
from cheetah.schema import Schema, is_text_schema

if TYPE_CHECKING:
    from cheetah.http.forms import FormData
    from cheetah.http.request import Request
    from cheetah.routing.route import RouteOptions

logger = logging.getLogger("cheetah.server")

DEFAULT_DEADLINE = 2.5

_UNSET: Any = object()


def _validate(schema: Schema | None, value: Any) -> Any:
    if schema is None:
        return value
    result = schema.safe_parse(value)
    if not result.success:
        raise BadRequest()
    return result.data


class RequestContext:
    """Request facts, validated accessors and raw body readers."""

    __slots__ = (
        "_config",
        "_cookies",
        "_headers",
        "_ip",
        "_options",
        "_params",
        "_query",
        "_request",
    )

    def __init__(
        self,
        request: Request,
        *,
        params: dict[str, str] | None = None,
        options: RouteOptions | None = None,
        config: AppConfig | None = None,
        ip: str | None = None,
    ) -> None:
        self._request = request
        self._params = params or {}
        self._options = options
        self._config = config or AppConfig()
        self._ip = ip
        self._cookies: Any = _UNSET
        self._headers: Any = _UNSET
        self._query: Any = _UNSET

    # -- Request facts --

    @property
    def method(self) -> str:
        return self._request.method

    @property
    def raw(self) -> Request:
        """The underlying ``Request``."""
        return self._request

    @property
    def ip(self) -> str | None:
        return self._ip

    @property
    def url(self) -> str:
        return self._request.url

    @property
    def stream(self) -> AsyncIterator[bytes]:
        """An async iterator over the request body chunks."""
        return self._request.stream()

    # -- Validated accessors --

    def param(self, name: str) -> Any:
        """The captured path parameter *name*, coerced by its schema if any."""
        value = self._params.get(name)
        schema = self._options.param_schema(name) if self._options else None
        return _validate(schema, value)

    @property
    def params(self) -> dict[str, str]:
        """All captured path parameters, unvalidated."""
        return dict(self._params)

    @property
    def headers(self) -> dict[str, str]:
        if self._headers is _UNSET:
            captured: dict[str, str] = {}
            for index, (name, value) in enumerate(self._request.headers.pairs()):
                if index == self._config.max_header_count:
                    break
                captured.setdefault(name, value)
            _validate(self._options.headers if self._options else None, captured)
            self._headers = captured
        return self._headers

    @property
    def cookies(self) -> dict[str, str]:
        if self._cookies is _UNSET:
            header = self._request.headers.get("cookie") or ""
            if len(header) > self._config.max_cookie_length:
                raise ContentTooLarge()
            try:
                parsed = parse_cookies(header)
            except ValueError:
                parsed = {}
            _validate(self._options.cookies if self._options else None, parsed)
            self._cookies = parsed
        return self._cookies

    @property
    def query(self) -> dict[str, Any]:
        if self._query is _UNSET:
            parsed = parse_query(self._request.query_string)
            _validate(self._options.query if self._options else None, parsed)
            self._query = parsed
        return self._query

    async def body(self, transform: bool = False) -> Any:
        """The request body, validated and coerced by the route's body schema.

        Returns ``None`` when the route has no body schema. A text-shaped
        schema reads the body as text; any other reads JSON, or the
        flattened form fields when *transform* (or the route's
        ``transform`` option) is set and the body is multipart.

        Raises:
            ContentTooLarge: The body was not received within the deadline.
            BadRequest: The body could not be decoded or failed validation.
        """
        schema = self._options.body if self._options else None
        if schema is None:
            return None
        transform = transform or self._options.transform  # type: ignore[union-attr]

        try:
            with anyio.fail_after(self._config.body_deadline):
                if is_text_schema(schema):
                    value = await self._request.text()
                elif transform and self._request.is_multipart:
                    value = (await self._request.form()).to_dict()
                else:
                    value = await self._request.json()
        except TimeoutError:
            raise ContentTooLarge() from None
        except ValueError:
            raise BadRequest() from None

        return _validate(schema, value)

    # -- Raw readers --

    async def _read(self, kind: str, deadline: float) -> Any:
        try:
            with anyio.fail_after(deadline):
                if kind == "text":
                    return await self._request.text()
                if kind == "json":
                    return await self._request.json()
                if kind == "form":
                    return await self._request.form()
                return await self._request.body()
        except Exception as exc:
            logger.debug("Could not read request body as %s: %r", kind, exc)
            return None

    async def buffer(self, deadline: float = DEFAULT_DEADLINE) -> bytes | None:
        """The body as bytes."""
        return await self._read("bytes", deadline)

    async def blob(self, deadline: float = DEFAULT_DEADLINE) -> Blob | None:
        """The body as a ``Blob`` typed by the request's content type."""
        data = await self._read("bytes", deadline)
        if data is None:
            return None
        return Blob(data, self._request.content_type or "")

    async def form_data(self, deadline: float = DEFAULT_DEADLINE) -> FormData | None:
        return await self._read("form", deadline)

    async def text(self, deadline: float = DEFAULT_DEADLINE) -> str | None:
        return await self._read("text", deadline)

    async def json(self, deadline: float = DEFAULT_DEADLINE) -> Any:
        return await self._read("json", deadline)
