"""Cheetah — request dispatch for ASGI servers and edge runtimes.

Routes a request to a chain of handlers and prefix-scoped extensions,
hands each handler a per-request context with validated accessors, and
normalizes whatever the chain leaves behind into a response.

Basic usage::

    from cheetah import App, RouteOptions

    app = App()

    @app.get("/animals/:name", RouteOptions(params={"name": Literal["cat", "dog"]}))
    def animal(c):
        return {"name": c.req.param("name")}

    app.run()

On an edge host, call ``await app.fetch(request, env, tasks)`` instead.
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "App",
    "AppConfig",
    "BadRequest",
    "Blob",
    "CacheConfig",
    "CheetahError",
    "Collection",
    "ConfigurationError",
    "ContentTooLarge",
    "Context",
    "Extension",
    "FormData",
    "HTTPError",
    "HandlerResult",
    "HostCapabilities",
    "NotFound",
    "Outcome",
    "Request",
    "Response",
    "RouteOptions",
    "Runtime",
    "StreamingResponse",
    "TaskQueue",
    "create_extension",
    "get_context",
    "halt",
    "proceed",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import cheetah`` fast while providing a clean top-level API.
    """
    if name == "App":
        from cheetah.app import App

        return App

    if name in ("AppConfig", "CacheConfig"):
        from cheetah import config as _config

        return getattr(_config, name)

    if name == "Collection":
        from cheetah.collection import Collection

        return Collection

    if name in ("Context", "get_context"):
        from cheetah import context as _ctx

        return getattr(_ctx, name)

    if name in ("Extension", "create_extension"):
        from cheetah import extensions as _ext

        return getattr(_ext, name)

    if name in ("HandlerResult", "Outcome", "halt", "proceed"):
        from cheetah import chain as _chain

        return getattr(_chain, name)

    if name == "RouteOptions":
        from cheetah.routing.route import RouteOptions

        return RouteOptions

    if name in ("HostCapabilities", "Runtime", "TaskQueue"):
        from cheetah import runtime as _runtime

        return getattr(_runtime, name)

    if name == "Request":
        from cheetah.http.request import Request

        return Request

    if name in ("AnyResponse", "Response", "StreamingResponse"):
        from cheetah.http import response as _resp

        return getattr(_resp, name)

    if name == "Blob":
        from cheetah.http.payload import Blob

        return Blob

    if name == "FormData":
        from cheetah.http.forms import FormData

        return FormData

    if name in (
        "BadRequest",
        "CheetahError",
        "ConfigurationError",
        "ContentTooLarge",
        "HTTPError",
        "NotFound",
    ):
        from cheetah import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
