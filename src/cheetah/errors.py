"""Cheetah exception hierarchy.

Shared across Router, App, dispatcher, and the request context so every
module raises and catches the same types.
"""

from dataclasses import dataclass
from http import HTTPStatus


class CheetahError(Exception):
    """Base for all cheetah-specific errors."""


class ConfigurationError(CheetahError):
    """Raised when app configuration is invalid.

    Raised while routes, collections, and extensions are being attached,
    never while serving.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(CheetahError):
    """An error that maps directly to an HTTP status code.

    Raised by validated accessors, handlers, or extensions. The dispatcher
    catches these once and renders ``detail`` as the response body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """400 — malformed input or schema validation failure."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(status=404, detail=detail)


class ContentTooLarge(HTTPError):  # noqa: N818
    """413 — a body or cookie read exceeded its size or time bound."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(status=413, detail=detail)


class InternalServerError(HTTPError):  # noqa: N818
    """500 — anything not otherwise classified."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(status=500, detail=detail)


_BY_STATUS: dict[int, type[HTTPError]] = {
    400: BadRequest,
    404: NotFound,
    413: ContentTooLarge,
    500: InternalServerError,
}

# Reason phrases accepted by ``http_error()`` in addition to HTTPStatus names.
_BY_REASON: dict[str, int] = {
    "bad request": 400,
    "not found": 404,
    "content too large": 413,
    "payload too large": 413,
    "something went wrong": 500,
    "internal server error": 500,
}


def http_error(status: int | str, detail: str = "") -> HTTPError:
    """Build an ``HTTPError`` from a status code or a reason phrase.

    ``http_error(400)`` and ``http_error("Bad Request")`` both return a
    ``BadRequest``. Unknown phrases raise ``ValueError``.
    """
    if isinstance(status, str):
        code = _BY_REASON.get(status.strip().lower())
        if code is None:
            try:
                code = HTTPStatus[status.strip().upper().replace(" ", "_")].value
            except KeyError:
                msg = f"Unknown HTTP reason phrase: {status!r}"
                raise ValueError(msg) from None
        status = code

    error_cls = _BY_STATUS.get(status)
    if error_cls is not None:
        return error_cls(detail)
    return HTTPError(status=status, detail=detail)
