"""Cheetah application class.

Mutable during setup (routes, collections, extensions, handlers).
Frozen at runtime when ``app.run()``, ``app.fetch()`` or ``__call__()`` is
first invoked.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from cheetah._internal.asgi import Receive, Scope, Send
from cheetah._internal.invoke import invoke
from cheetah._internal.types import ErrorHandler, NotFoundHandler
from cheetah.collection import Collection
from cheetah.config import AppConfig
from cheetah.errors import ConfigurationError
from cheetah.extensions import GLOBAL_PREFIX, Extension, ExtensionRegistry
from cheetah.http.request import Request
from cheetah.http.response import AnyResponse
from cheetah.routing.registrar import RouteRegistrar, join_paths
from cheetah.routing.route import Route
from cheetah.routing.router import Router
from cheetah.runtime import HostCapabilities, TaskQueue
from cheetah.server.dispatch import Dispatcher
from cheetah.server.handler import handle_request

logger = logging.getLogger("cheetah.app")


class App(RouteRegistrar):
    """The cheetah application.

    Mutable during setup (route registration, collections, extensions).
    Frozen at runtime when the first request arrives.

    Usage::

        app = App(AppConfig(cors="*"))

        @app.get("/hello/:name")
        def hello(c):
            return f"Hello {c.req.param('name')}"

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when several ASGI workers call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_dispatcher",
        "_error_handler",
        "_extensions",
        "_freeze_lock",
        "_frozen",
        "_not_found",
        "_pending_routes",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "host",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        host: HostCapabilities | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        # Resolved once; the dispatcher never probes the environment.
        self.host: HostCapabilities = host or HostCapabilities.for_runtime(self.config.runtime)
        self._pending_routes: list[Route] = []
        self._extensions = ExtensionRegistry()
        self._not_found: NotFoundHandler | None = None
        self._error_handler: ErrorHandler | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Set during _freeze()
        self._router: Router | None = None
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def _register(self, route: Route) -> None:
        self._check_not_frozen()
        path = join_paths(self.config.base_path, route.path)
        self._pending_routes.append(
            Route(method=route.method, path=path, handlers=route.handlers, options=route.options)
        )

    def use(self, *items: str | Collection | Extension) -> App:
        """Attach collections and extensions.

        A string sets the prefix for the items after it. A ``Collection``
        is mounted under the current prefix, which is required. An
        ``Extension`` is scoped to the current prefix, or to every path
        (``"*"``) when no prefix was given::

            app.use(logger_ext())                 # every path
            app.use("/api", api, auth_ext())      # /api routes and hooks
        """
        self._check_not_frozen()
        prefix: str | None = None

        for item in items:
            if isinstance(item, str):
                prefix = item
            elif isinstance(item, Collection):
                if prefix is None:
                    msg = "A collection needs a prefix: app.use('/prefix', collection)."
                    raise ConfigurationError(msg)
                for route in item.routes:
                    self._register(
                        Route(
                            method=route.method,
                            path=join_paths(prefix, route.path),
                            handlers=route.handlers,
                            options=route.options,
                        )
                    )
            elif isinstance(item, Extension):
                self._extensions.register(prefix or GLOBAL_PREFIX, item)
            else:
                msg = (
                    f"Cannot use {type(item).__name__}. "
                    f"Pass a prefix string, a Collection, or an Extension."
                )
                raise ConfigurationError(msg)

        return self

    # -- Not-found and error handlers --

    def not_found(self, func: NotFoundHandler) -> NotFoundHandler:
        """Register the handler for requests that match no route.

        Receives the ``Request``; sync or async. Its return value becomes
        the response (a ``Response`` or any handler payload).
        """
        self._check_not_frozen()
        self._not_found = func
        return func

    def on_error(self, func: ErrorHandler) -> ErrorHandler:
        """Register the handler for unexpected exceptions.

        Receives ``(exc, request)``; sync or async. ``HTTPError`` never
        reaches it. If it raises, the response is a plain 500.
        """
        self._check_not_frozen()
        self._error_handler = func
        return func

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def routes(self) -> list[Route]:
        """Registered routes, with the base path and prefixes applied."""
        if self._router is not None:
            return self._router.routes
        return list(self._pending_routes)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start a pounce server for this app.

        Compiles the app (freezing routes and extensions) and starts
        serving requests.
        """
        self._ensure_frozen()

        from cheetah.server.dev import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
        )

    # -- Edge entry point --

    async def fetch(
        self,
        request: Request,
        env: Mapping[str, Any] | None = None,
        tasks: TaskQueue | None = None,
    ) -> AnyResponse:
        """Dispatch one request and return the response.

        Used by edge hosts and tests. Work deferred during the request goes
        to *tasks* for the host to drain; without a queue it is scheduled
        on the running event loop once the response is ready.
        """
        self._ensure_frozen()
        assert self._dispatcher is not None

        queue = tasks if tasks is not None else TaskQueue()
        response = await self._dispatcher.dispatch(request, env=env, tasks=queue)
        if tasks is None:
            queue.detach()
        return response

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to the
        request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None

        await handle_request(scope, receive, send, dispatcher=self._dispatcher)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking.

        Several ASGI worker threads could call __call__() concurrently on
        first request. This pattern ensures exactly one thread compiles.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its runtime form.

        MUST only be called while holding _freeze_lock.
        """
        router = Router()
        for route in self._pending_routes:
            router.add_route(route)
        router.compile()
        self._extensions.freeze()

        self._router = router
        self._dispatcher = Dispatcher(
            router=router,
            extensions=self._extensions,
            config=self.config,
            host=self.host,
            not_found=self._not_found,
            error_handler=self._error_handler,
        )
        self._frozen = True

        logger.debug(
            "Compiled %d routes, %d extensions (%s runtime)",
            len(self._pending_routes),
            len(self._extensions),
            self.host.runtime,
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, collections, and extensions before the first request."
            )
            raise RuntimeError(msg)
