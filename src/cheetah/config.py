"""Application configuration.

AppConfig and CacheConfig are frozen dataclasses, immutable once the app
is created.
"""

from dataclasses import dataclass

from cheetah.runtime import Runtime


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Response caching for GET requests.

    ``max_age`` feeds the ``cache-control`` header; ``name`` identifies the
    shared cache on hosts that keep several.
    """

    name: str = "cheetah"
    max_age: int = 0

    @property
    def cache_control(self) -> str:
        if self.max_age <= 0:
            return "max-age=0, private, must-revalidate"
        return f"max-age={self.max_age}"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(base="/api", cors="*", debug=True)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Hosting runtime (selects cache availability and client-IP strategy)
    runtime: Runtime = Runtime.SERVER

    # Routing
    base: str | None = None  # Prepended to every route path
    preflight: bool = False  # OPTIONS matches routes registered under any method

    # Cross-origin / caching defaults (per-route RouteOptions override these)
    cors: str | None = None
    cache: CacheConfig | None = None

    # Limits
    body_deadline: float = 2.5  # Seconds allowed for a validated body read
    max_header_count: int = 50
    max_cookie_length: int = 1000

    @property
    def base_path(self) -> str:
        """``base`` normalized: no trailing slash, ``""`` for the root."""
        if not self.base or self.base == "/":
            return ""
        return "/" + self.base.strip("/")
