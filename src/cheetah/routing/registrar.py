"""Method-named route registration shared by ``App`` and ``Collection``.

Both forms are supported::

    app.get("/users/:id", RouteOptions(params={"id": int}), show_user)

    @app.get("/health")
    def health(c):
        return "ok"

With handlers in the call, the registrar returns itself so calls chain.
Without handlers (only an optional ``RouteOptions``), it returns a decorator.
"""

from collections.abc import Callable
from typing import Any

from cheetah.errors import ConfigurationError
from cheetah.routing.route import Route, RouteOptions, split_chain
from cheetah.routing.router import parse_path


def join_paths(*parts: str | None) -> str:
    """Join path pieces with single slashes. ``"/"`` and ``""`` add nothing."""
    pieces = [part.strip("/") for part in parts if part and part.strip("/")]
    return "/" + "/".join(pieces)


class RouteRegistrar:
    """Mixin providing ``route()`` and the per-method shorthands.

    Subclasses implement ``_register(route)``.
    """

    __slots__ = ()

    def _register(self, route: Route) -> None:
        raise NotImplementedError

    def route(self, method: str, path: str, *chain: Any) -> Any:
        """Register a handler chain for ``(method, path)``."""
        if any(not isinstance(item, RouteOptions) for item in chain):
            self._add(method, path, chain)
            return self

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._add(method, path, (*chain, func))
            return func

        return decorator

    def _add(self, method: str, path: str, chain: tuple[Any, ...]) -> None:
        if not path.startswith("/"):
            msg = f"Route paths must start with '/': {path!r}."
            raise ConfigurationError(msg)
        options, handlers = split_chain(chain)
        parse_path(path)
        self._register(Route(method=method.upper(), path=path, handlers=handlers, options=options))

    def get(self, path: str, *chain: Any) -> Any:
        return self.route("GET", path, *chain)

    def post(self, path: str, *chain: Any) -> Any:
        return self.route("POST", path, *chain)

    def put(self, path: str, *chain: Any) -> Any:
        return self.route("PUT", path, *chain)

    def patch(self, path: str, *chain: Any) -> Any:
        return self.route("PATCH", path, *chain)

    def delete(self, path: str, *chain: Any) -> Any:
        return self.route("DELETE", path, *chain)

    def head(self, path: str, *chain: Any) -> Any:
        return self.route("HEAD", path, *chain)

    def options(self, path: str, *chain: Any) -> Any:
        return self.route("OPTIONS", path, *chain)
