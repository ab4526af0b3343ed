"""Route collections — groups of routes mounted under a prefix.

A ``Collection`` is built like an app and attached with ``App.use()``::

    users = Collection()
    users.get("/", list_users)
    users.get("/:id", show_user)

    app.use("/users", users)   # GET /users, GET /users/:id
"""

from cheetah.routing.registrar import RouteRegistrar
from cheetah.routing.route import Route


class Collection(RouteRegistrar):
    """A standalone, prefix-less group of routes."""

    __slots__ = ("_routes",)

    def __init__(self) -> None:
        self._routes: list[Route] = []

    def _register(self, route: Route) -> None:
        self._routes.append(route)

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"Collection({len(self._routes)} routes)"
