"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from cheetah.errors import ConfigurationError
from cheetah.routing.route import (
    PathSegment,
    Route,
    RouteMatch,
    RouteOptions,
    SegmentKind,
    split_chain,
)

WILDCARD = "*"


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route pattern into segments.

    Examples::

        "/users"           -> [PathSegment("users")]
        "/users/:id"       -> [PathSegment("users"), PathSegment(":id", PARAM, "id")]
        "/files/*"         -> [PathSegment("files"), PathSegment("*", WILDCARD, "*")]

    Raises:
        ConfigurationError: For an empty parameter name or a wildcard that
            is not the final segment.
    """
    parts = [part for part in path.strip("/").split("/") if part]
    segments: list[PathSegment] = []
    for index, part in enumerate(parts):
        if part == WILDCARD:
            if index != len(parts) - 1:
                msg = f"Wildcard must be the final segment in {path!r}."
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part, kind=SegmentKind.WILDCARD, name=WILDCARD))
        elif part.startswith(":"):
            name = part[1:]
            if not name:
                msg = f"Empty parameter name in {path!r}."
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part, kind=SegmentKind.PARAM, name=name))
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("children", "param_child", "routes_by_method", "wildcard_routes")

    def __init__(self) -> None:
        # Literal segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Wildcard routes, keyed by HTTP method; consume the rest of the path
        self.wildcard_routes: dict[str, Route] = {}
        # Routes at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie.

    Routes may name the parameter differently at the same depth, so names
    are resolved per route at the terminal node.
    """

    node: _TrieNode


def _select(routes: dict[str, Route], method: str, allow_preflight: bool) -> Route | None:
    """Pick the route for *method* among the routes registered at one node."""
    route = routes.get(method)
    if route is not None:
        return route
    if method == "HEAD":
        return routes.get("GET")
    if allow_preflight and method == "OPTIONS" and routes:
        return next(iter(routes.values()))
    return None


def _bind(route: Route, values: list[str]) -> dict[str, str]:
    """Name the captured segment values using the route's own pattern."""
    return dict(zip(route.param_names, values, strict=True))


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add("GET", "/users", handler)
        router.add("GET", "/users/:id", RouteOptions(params={"id": int}), handler)
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False

    def add(self, method: str, pattern: str, *chain: RouteOptions | Callable[..., Any]) -> Route:
        """Register *chain* for ``(method, pattern)``. Must be called before compile()."""
        options, handlers = split_chain(chain)
        route = Route(method=method.upper(), path=pattern, handlers=handlers, options=options)
        self.add_route(route)
        return route

    def add_route(self, route: Route) -> None:
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise ConfigurationError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.kind is SegmentKind.WILDCARD:
                self._register(node.wildcard_routes, route)
                return
            if seg.kind is SegmentKind.PARAM:
                if node.param_child is None:
                    node.param_child = _ParamEdge(node=_TrieNode())
                node = node.param_child.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        self._register(node.routes_by_method, route)

    @staticmethod
    def _register(routes: dict[str, Route], route: Route) -> None:
        if route.method in routes:
            msg = f"Duplicate route: {route.method} {route.path!r}."
            raise ConfigurationError(msg)
        routes[route.method] = route

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes.

        Traverses the trie to collect every Route object.
        """
        result: list[Route] = []
        self._collect_routes(self._root, result)
        return result

    def _collect_routes(self, node: _TrieNode, result: list[Route]) -> None:
        result.extend(node.routes_by_method.values())
        for child in node.children.values():
            self._collect_routes(child, result)
        if node.param_child is not None:
            self._collect_routes(node.param_child.node, result)
        result.extend(node.wildcard_routes.values())

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str, allow_preflight: bool = False) -> RouteMatch | None:
        """Match a request method and path against the registered routes.

        *path* is the percent-encoded request path. Each segment is decoded
        once before matching, so captured values are the decoded segments.
        Returns a ``RouteMatch`` on success, ``None`` when nothing matches.
        A literal segment wins over a parameter at the same depth, but the
        search backtracks when the literal branch has no route for *method*.
        """
        parts = [unquote(p) for p in path.split("/") if p]
        return self._match_node(self._root, parts, 0, [], method.upper(), allow_preflight)

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        values: list[str],
        method: str,
        allow_preflight: bool,
    ) -> RouteMatch | None:
        """Recursively match path parts against the trie."""
        # All parts consumed, select by method at this node
        if index == len(parts):
            route = _select(node.routes_by_method, method, allow_preflight)
            if route is None:
                return None
            return RouteMatch(route=route, params=_bind(route, values))

        part = parts[index]

        # 1. Try literal child first (exact match)
        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, parts, index + 1, values, method, allow_preflight)
            if result is not None:
                return result

        # 2. Try parameter child
        if node.param_child is not None:
            result = self._match_node(
                node.param_child.node,
                parts,
                index + 1,
                [*values, part],
                method,
                allow_preflight,
            )
            if result is not None:
                return result

        # 3. Try wildcard (at least one segment remains here)
        route = _select(node.wildcard_routes, method, allow_preflight)
        if route is not None:
            remaining = "/".join(parts[index:])
            return RouteMatch(route=route, params=_bind(route, [*values, remaining]))

        return None
