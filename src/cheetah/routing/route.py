"""Route, RouteOptions and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal

from cheetah.config import CacheConfig
from cheetah.errors import ConfigurationError
from cheetah.schema import Schema, as_schema


class SegmentKind(Enum):
    LITERAL = "literal"
    PARAM = "param"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Literal:  ``/users``  (kind=LITERAL)
    Param:    ``/:id``    (kind=PARAM, name="id")
    Wildcard: ``/*``      (kind=WILDCARD, name="*"), final segment only
    """

    value: str
    kind: SegmentKind = SegmentKind.LITERAL
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteOptions:
    """Per-route validation schemas and overrides.

    Schemas may be pydantic models, plain annotations, or any object with
    ``safe_parse``; they are adapted once, at construction. ``params`` maps
    a path parameter name to its schema. ``cache=False`` disables caching
    for the route; ``None`` inherits the app setting.
    """

    body: Any = None
    cookies: Any = None
    headers: Any = None
    query: Any = None
    params: Mapping[str, Any] = field(default_factory=dict)
    transform: bool = False
    cors: str | None = None
    cache: CacheConfig | Literal[False] | None = None

    def __post_init__(self) -> None:
        for name in ("body", "cookies", "headers", "query"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, as_schema(value))
        object.__setattr__(
            self,
            "params",
            MappingProxyType({key: as_schema(value) for key, value in self.params.items()}),
        )

    def param_schema(self, name: str) -> Schema | None:
        return self.params.get(name)


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created during app setup, compiled into the router at freeze time.
    """

    method: str
    path: str
    handlers: tuple[Callable[..., Any], ...]
    options: RouteOptions | None = None
    # Names of the captured segments in path order, "*" for a wildcard
    param_names: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = tuple(
            part if part == "*" else part[1:]
            for part in self.path.split("/")
            if part == "*" or part.startswith(":")
        )
        object.__setattr__(self, "param_names", names)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: dict[str, str]


def split_chain(
    chain: tuple[Any, ...],
) -> tuple[RouteOptions | None, tuple[Callable[..., Any], ...]]:
    """Separate a registration chain into its options record and handlers.

    Raises:
        ConfigurationError: If an options record is not first, appears
            twice, or no callable handler follows it.
    """
    options: RouteOptions | None = None
    handlers: list[Callable[..., Any]] = []
    for index, item in enumerate(chain):
        if isinstance(item, RouteOptions):
            if index != 0:
                msg = "RouteOptions must be the first item of a handler chain."
                raise ConfigurationError(msg)
            options = item
        elif callable(item):
            handlers.append(item)
        else:
            msg = f"Handler chain items must be callable, got {type(item).__name__}."
            raise ConfigurationError(msg)
    if not handlers:
        msg = "A route needs at least one handler."
        raise ConfigurationError(msg)
    return options, tuple(handlers)
