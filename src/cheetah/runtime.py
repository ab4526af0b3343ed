"""Hosting-runtime capabilities.

Cheetah runs unmodified on two hosts: a long-lived ASGI server process and
a stateless edge sandbox that calls ``App.fetch()`` per request. They differ
in what they provide:

- only the edge runtime has a shared response cache,
- the client IP comes from the connection (server) or from a forwarded-IP
  header (edge),
- deferred work is drained by the host after the response is sent.

The capabilities are resolved once, at app construction, into a frozen
``HostCapabilities`` record instead of being probed per request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from cheetah.http.request import Request
    from cheetah.http.response import Response

logger = logging.getLogger("cheetah.server")

FORWARDED_IP_HEADER = "cf-connecting-ip"


class Runtime(StrEnum):
    SERVER = "server"
    EDGE = "edge"


class IPStrategy(StrEnum):
    """Where the client IP is read from."""

    REMOTE_ADDR = "remote_addr"
    FORWARDED_HEADER = "forwarded_header"


class ResponseCache(Protocol):
    """A shared response cache keyed by request identity."""

    async def match(self, request: Request) -> Response | None: ...

    async def put(self, request: Request, response: Response) -> None: ...


def cache_lifetime(response: Response) -> int:
    """Seconds a shared cache may keep *response*, 0 when it must not store it.

    Follows the response's own ``cache-control``: ``private``, ``no-store``
    and ``no-cache`` forbid storing, as does a missing or non-positive
    ``max-age``. ``s-maxage`` wins over ``max-age``. A response that sets
    cookies is never shared.
    """
    if response.header("set-cookie") is not None:
        return 0
    max_age = s_maxage = None
    for directive in (response.header("cache-control") or "").split(","):
        name, _, value = directive.strip().partition("=")
        name = name.lower()
        if name in ("private", "no-store", "no-cache"):
            return 0
        if name in ("max-age", "s-maxage"):
            try:
                seconds = int(value.strip().strip('"'))
            except ValueError:
                return 0
            if name == "max-age":
                max_age = seconds
            else:
                s_maxage = seconds
    lifetime = s_maxage if s_maxage is not None else max_age
    return max(lifetime or 0, 0)


class MemoryResponseCache:
    """In-process ``ResponseCache`` keyed on the request URL.

    Stands in for the edge host's cache when running locally and in tests.
    Entries live as long as their ``cache-control`` allows and expired ones
    are dropped on lookup. Past *max_entries* the oldest entry is evicted.
    """

    __slots__ = ("_clock", "_entries", "_max_entries")

    def __init__(
        self,
        max_entries: int = 1024,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, tuple[float, Response]] = {}
        self._max_entries = max_entries
        self._clock = clock

    async def match(self, request: Request) -> Response | None:
        entry = self._entries.get(request.url)
        if entry is None:
            return None
        expires_at, response = entry
        if self._clock() >= expires_at:
            del self._entries[request.url]
            return None
        return response

    async def put(self, request: Request, response: Response) -> None:
        lifetime = cache_lifetime(response)
        if lifetime <= 0:
            return
        self._entries.pop(request.url, None)
        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[request.url] = (self._clock() + lifetime, response)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries


@dataclass(frozen=True, slots=True)
class HostCapabilities:
    """What the hosting runtime provides to the dispatcher."""

    runtime: Runtime = Runtime.SERVER
    cache: ResponseCache | None = None
    ip_strategy: IPStrategy = IPStrategy.REMOTE_ADDR

    @classmethod
    def for_runtime(
        cls,
        runtime: Runtime,
        *,
        cache: ResponseCache | None = None,
    ) -> HostCapabilities:
        """Default capabilities for *runtime*.

        The server runtime never gets a cache. The edge runtime uses the
        given cache, or an in-process ``MemoryResponseCache``.
        """
        if runtime is Runtime.EDGE:
            return cls(
                runtime=runtime,
                cache=cache if cache is not None else MemoryResponseCache(),
                ip_strategy=IPStrategy.FORWARDED_HEADER,
            )
        return cls(runtime=runtime, cache=None, ip_strategy=IPStrategy.REMOTE_ADDR)

    @property
    def supports_cache(self) -> bool:
        return self.runtime is Runtime.EDGE and self.cache is not None

    def client_ip(self, request: Request) -> str | None:
        """Extract the client IP as an opaque string, if the host exposes one."""
        if self.ip_strategy is IPStrategy.FORWARDED_HEADER:
            return request.headers.get(FORWARDED_IP_HEADER)
        if request.client is not None:
            return request.client[0]
        return None


# Strong references to detached tasks so they are not garbage collected
# before they finish.
_detached: set[asyncio.Task[Any]] = set()


class TaskQueue:
    """Deferred work pushed during a request and drained by the host.

    The dispatcher pushes fire-and-forget work (cache writes, ``c.defer()``)
    here. The ASGI handler drains the queue after the response is sent; an
    edge host passes its own queue to ``App.fetch()`` and drains it itself.
    """

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending: list[Awaitable[Any]] = []

    def push(self, work: Awaitable[Any]) -> None:
        self._pending.append(work)

    def __len__(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Await every pending unit of work in push order.

        A failing unit is logged and does not stop the rest.
        """
        while self._pending:
            work = self._pending.pop(0)
            try:
                await work
            except Exception:
                logger.exception("Deferred work failed")

    def detach(self) -> None:
        """Hand the pending work to the running event loop and return.

        Used when no host queue was provided. The tasks are tracked until
        they complete.
        """
        if not self._pending:
            return
        task = asyncio.get_running_loop().create_task(self.drain())
        _detached.add(task)
        task.add_done_callback(_detached.discard)
