"""The per-request ``Context`` handed to every handler."""

from __future__ import annotations

import os
from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any

from cheetah.config import AppConfig
from cheetah.context.request import RequestContext
from cheetah.context.response import Accumulator, ResponseContext
from cheetah.errors import HTTPError, http_error
from cheetah.runtime import Runtime, TaskQueue

if TYPE_CHECKING:
    from cheetah.http.request import Request
    from cheetah.routing.route import RouteOptions


class Context:
    """Everything a handler needs for one request.

    ``c.req`` reads the request, ``c.res`` shapes the response. The rest
    are facts about the host: the runtime, the client IP, environment
    bindings, and a queue for work that should finish after the response.

    Usage::

        @app.get("/users/:id", RouteOptions(params={"id": int}))
        async def show(c: Context):
            if c.req.param("id") == 0:
                raise c.exception("Not Found")
            c.defer(audit(c.req.param("id")))
            return {"id": c.req.param("id"), "runtime": c.runtime}
    """

    __slots__ = ("_env", "_runtime", "_tasks", "req", "res")

    def __init__(
        self,
        request: Request,
        *,
        accumulator: Accumulator | None = None,
        params: dict[str, str] | None = None,
        options: RouteOptions | None = None,
        config: AppConfig | None = None,
        ip: str | None = None,
        runtime: Runtime = Runtime.SERVER,
        env: Mapping[str, Any] | None = None,
        tasks: TaskQueue | None = None,
    ) -> None:
        self.req = RequestContext(request, params=params, options=options, config=config, ip=ip)
        self.res = ResponseContext(accumulator if accumulator is not None else Accumulator())
        self._runtime = runtime
        self._env = env or {}
        self._tasks = tasks if tasks is not None else TaskQueue()

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    @property
    def ip(self) -> str | None:
        return self.req.ip

    def env(self, name: str, default: Any = None) -> Any:
        """An environment binding from the host, else the process environment."""
        if name in self._env:
            return self._env[name]
        return os.environ.get(name, default)

    def defer(self, work: Awaitable[Any]) -> None:
        """Run *work* after the response has been sent."""
        self._tasks.push(work)

    def exception(self, status: int | str, detail: str = "") -> HTTPError:
        """Build an ``HTTPError`` from a status code or reason phrase, to raise."""
        return http_error(status, detail)
