"""Cookie parsing and SetCookie serialization.

Consolidates the read side (parse_cookies, used by ``c.req.cookies``) and
the write side (SetCookie, used by ``c.res.cookie()``) in one module.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime

_SEPARATOR = re.compile(r";\s*")


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Pairs are split on ``;`` (leading whitespace trimmed) and each pair on
    its first ``=``. Entries with an empty name are dropped; a pair without
    ``=`` maps to ``""``. Later duplicates win.
    """
    cookies: dict[str, str] = {}
    for pair in _SEPARATOR.split(header):
        key, _, value = pair.partition("=")
        if key:
            cookies[key] = value
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a response.

    Only the attributes that are set are emitted.
    """

    name: str
    value: str
    expires_at: datetime | None = None
    max_age: int | None = None
    domain: str | None = None
    path: str | None = None
    secure: bool = False
    http_only: bool = False
    same_site: str | None = None  # "strict" | "lax" | "none"

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.expires_at is not None:
            expires = self.expires_at
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=UTC)
            parts.append(f"Expires={format_datetime(expires.astimezone(UTC), usegmt=True)}")
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        if self.same_site:
            parts.append(f"SameSite={self.same_site.capitalize()}")
        return "; ".join(parts)
