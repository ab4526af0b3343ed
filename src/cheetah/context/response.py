"""The response accumulator and its handler-facing facade."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from cheetah.http.cookies import SetCookie
from cheetah.http.headers import MutableHeaders


@dataclass(slots=True)
class Accumulator:
    """Mutable response state owned by one request.

    Handlers write it through ``ResponseContext``; normalization turns it
    into a ``Response`` and it is discarded.
    """

    body: Any = None
    code: int = 200
    headers: MutableHeaders = field(default_factory=MutableHeaders)


class ResponseContext:
    """``c.res`` — what a handler uses to shape the response.

    Usage::

        def create(c):
            c.res.code(201)
            c.res.header("x-request-id", "abc")
            c.res.cookie("session", "s3cr3t", http_only=True, same_site="lax")
            return {"created": True}
    """

    __slots__ = ("_acc",)

    def __init__(self, accumulator: Accumulator) -> None:
        self._acc = accumulator

    @property
    def body(self) -> Any:
        return self._acc.body

    @body.setter
    def body(self, value: Any) -> None:
        self._acc.body = value

    @property
    def status(self) -> int:
        return self._acc.code

    @property
    def headers(self) -> MutableHeaders:
        return self._acc.headers

    def code(self, status: int) -> None:
        """Set the status code of the response."""
        self._acc.code = status

    def header(self, name: str, value: str | None) -> None:
        """Set a header, replacing any previous value. ``None`` deletes it."""
        if value is None:
            self._acc.headers.discard(name)
        else:
            self._acc.headers[name] = value

    def cookie(
        self,
        name: str,
        value: str,
        *,
        expires_at: datetime | None = None,
        max_age: int | None = None,
        domain: str | None = None,
        path: str | None = None,
        secure: bool = False,
        http_only: bool = False,
        same_site: str | None = None,
    ) -> None:
        """Attach a ``Set-Cookie`` header. Repeated calls add more cookies."""
        cookie = SetCookie(
            name=name,
            value=value,
            expires_at=expires_at,
            max_age=max_age,
            domain=domain,
            path=path,
            secure=secure,
            http_only=http_only,
            same_site=same_site,
        )
        self._acc.headers.append("set-cookie", cookie.to_header_value())

    def redirect(self, url: str, code: int = 307) -> None:
        """Redirect the request to *url*. The response has no body."""
        self._acc.code = code
        self._acc.headers["location"] = url
