"""Request dispatch — one request in, one response out.

The dispatcher is runtime-agnostic: the ASGI handler and ``App.fetch()``
both build a ``Request`` and a ``TaskQueue`` and call ``dispatch()``.

Pipeline::

    cache lookup -> pre-dispatch extensions -> route match
        -> preflight | context -> handler chain -> normalize
        -> post-dispatch extensions -> cache write -> HEAD strip

Everything from the pre-dispatch extensions to the post-dispatch
extensions runs inside one error boundary. ``HTTPError`` renders as its
status; any other exception goes to the app's error handler or a 500.
"""

import logging
from collections.abc import Mapping
from typing import Any

from cheetah._internal.invoke import invoke
from cheetah._internal.types import ErrorHandler, NotFoundHandler
from cheetah.chain import Outcome, as_result
from cheetah.config import AppConfig, CacheConfig
from cheetah.context.context import Context
from cheetah.context.current import context_var
from cheetah.context.response import Accumulator
from cheetah.errors import HTTPError, NotFound
from cheetah.extensions import ExtensionRegistry
from cheetah.http.payload import is_empty
from cheetah.http.request import Request
from cheetah.http.response import AnyResponse, Response
from cheetah.routing.route import RouteMatch, RouteOptions
from cheetah.routing.router import Router
from cheetah.runtime import HostCapabilities, TaskQueue
from cheetah.server.errors import handle_http_error, handle_internal_error
from cheetah.server.normalize import build_response, normalize, to_response

logger = logging.getLogger("cheetah.server")

NO_CACHE = "max-age=0, private, must-revalidate"
PREFLIGHT_MAX_AGE = "600"


class Dispatcher:
    """Runs requests against a frozen router and extension registry."""

    __slots__ = ("_config", "_error_handler", "_extensions", "_host", "_not_found", "_router")

    def __init__(
        self,
        *,
        router: Router,
        extensions: ExtensionRegistry,
        config: AppConfig,
        host: HostCapabilities,
        not_found: NotFoundHandler | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self._router = router
        self._extensions = extensions
        self._config = config
        self._host = host
        self._not_found = not_found
        self._error_handler = error_handler

    async def dispatch(
        self,
        request: Request,
        *,
        env: Mapping[str, Any] | None = None,
        tasks: TaskQueue,
    ) -> AnyResponse:
        """Process a single request through the full pipeline."""
        response = await self._dispatch(request, env or {}, tasks)
        if request.method == "HEAD":
            return response.without_body()
        return response

    async def _dispatch(
        self,
        request: Request,
        env: Mapping[str, Any],
        tasks: TaskQueue,
    ) -> AnyResponse:
        cache = self._host.cache
        use_cache = (
            self._config.cache is not None
            and request.method == "GET"
            and self._host.supports_cache
        )
        if use_cache and cache is not None:
            cached = await cache.match(request)
            if cached is not None:
                return cached

        try:
            short_circuit = await self._extensions.run_pre_dispatch(request, request.path)
            if short_circuit is not None:
                return to_response(short_circuit)

            match = self._router.match(
                request.method,
                request.encoded_path,
                allow_preflight=self._config.preflight,
            )
            if match is None:
                if self._not_found is None:
                    raise NotFound()
                response = to_response(await invoke(self._not_found, request))
                self._log(request, response.status, failed=True)
                return response

            response = await self._handle(request, match, env, tasks)

            cache_config = self._cache_for(match.route.options)
            if (
                use_cache
                and cache is not None
                and cache_config is not None
                and cache_config.max_age > 0
                and 200 <= response.status < 300
                and isinstance(response, Response)
            ):
                tasks.push(cache.put(request, response))

        except HTTPError as exc:
            response = handle_http_error(exc, request)
            self._log(request, response.status, failed=True)
            return response
        except Exception as exc:
            response = await handle_internal_error(exc, request, self._error_handler)
            self._log(request, response.status, failed=True)
            return response

        self._log(request, response.status, failed=response.status >= 400)
        return response

    async def _handle(
        self,
        request: Request,
        match: RouteMatch,
        env: Mapping[str, Any],
        tasks: TaskQueue,
    ) -> AnyResponse:
        options = match.route.options

        if (
            request.method == "OPTIONS"
            and "origin" in request.headers
            and "access-control-request-method" in request.headers
        ):
            return self._preflight(request, options)

        acc = Accumulator()
        if request.method == "GET":
            cache_control = self._cache_control(options)
            if cache_control is not None:
                acc.headers["cache-control"] = cache_control
        origin = self._cors_origin(options)
        if origin is not None:
            acc.headers["access-control-allow-origin"] = origin

        context = Context(
            request,
            accumulator=acc,
            params=match.params,
            options=options,
            config=self._config,
            ip=self._host.client_ip(request),
            runtime=self._host.runtime,
            env=env,
            tasks=tasks,
        )

        token = context_var.set(context)
        try:
            for handler in match.route.handlers:
                result = as_result(await invoke(handler, context))
                if not is_empty(result.body):
                    acc.body = result.body
                if not is_empty(acc.body) and result.outcome is not Outcome.CONTINUE:
                    break

            normalize(acc)
            await self._extensions.run_post_dispatch(context, request.path)
        finally:
            context_var.reset(token)

        return build_response(acc)

    def _preflight(self, request: Request, options: RouteOptions | None) -> Response:
        headers: list[tuple[str, str]] = []
        origin = self._cors_origin(options)
        if origin is not None:
            headers.append(("access-control-allow-origin", origin))
        headers.extend(
            [
                ("access-control-allow-methods", "*"),
                (
                    "access-control-allow-headers",
                    request.headers.get("access-control-request-headers") or "*",
                ),
                ("access-control-allow-credentials", "false"),
                ("access-control-max-age", PREFLIGHT_MAX_AGE),
            ]
        )
        return Response(body=b"", status=204, headers=tuple(headers))

    def _cors_origin(self, options: RouteOptions | None) -> str | None:
        if options is not None and options.cors:
            return options.cors
        return self._config.cors

    def _cache_for(self, options: RouteOptions | None) -> CacheConfig | None:
        """The cache settings that apply to a route, ``None`` when disabled."""
        route_cache = options.cache if options is not None else None
        if route_cache is False:
            return None
        return route_cache or self._config.cache

    def _cache_control(self, options: RouteOptions | None) -> str | None:
        if options is not None and options.cache is False:
            return NO_CACHE
        cache = self._cache_for(options)
        return cache.cache_control if cache is not None else None

    def _log(self, request: Request, status: int, *, failed: bool) -> None:
        if not self._config.debug:
            return
        if failed:
            logger.warning("%d - %s %s", status, request.method, request.path)
        else:
            logger.info("%d - %s %s", status, request.method, request.path)
