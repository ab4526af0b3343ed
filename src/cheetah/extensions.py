"""Extensions — prefix-scoped request/response hooks.

An extension has up to two hooks, each sync or async:

- ``on_request(request, config)`` runs before routing. Returning anything
  other than ``None`` short-circuits dispatch: that value becomes the
  response and nothing else runs.
- ``on_response(context, config)`` runs after the response has been
  normalized and may change ``context.res`` headers or body. Its return
  value is ignored.

Extensions are registered with ``App.use()`` under a path prefix
(``"*"`` for every path) and run in registration order::

    def stamp(c, config):
        c.res.header("x-powered-by", config["name"])

    powered_by = create_extension(on_response=stamp)
    app.use(powered_by(name="cheetah"))
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeAlias

from cheetah._internal.invoke import invoke

if TYPE_CHECKING:
    from cheetah.context import Context
    from cheetah.http.request import Request

GLOBAL_PREFIX = "*"

RequestHook: TypeAlias = "Callable[[Request, Mapping[str, Any]], Any]"
ResponseHook: TypeAlias = "Callable[[Context, Mapping[str, Any]], Any]"


@dataclass(frozen=True, slots=True)
class Extension:
    """A configured extension, ready to pass to ``App.use()``."""

    on_request: RequestHook | None = None
    on_response: ResponseHook | None = None
    config: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


def create_extension(
    *,
    on_request: RequestHook | None = None,
    on_response: ResponseHook | None = None,
) -> Callable[..., Extension]:
    """Build an extension factory.

    Calling the factory with keyword configuration returns an ``Extension``
    whose hooks receive that configuration as a read-only mapping.
    """

    def factory(**config: Any) -> Extension:
        return Extension(
            on_request=on_request,
            on_response=on_response,
            config=MappingProxyType(dict(config)),
        )

    return factory


def _applies(prefix: str, path: str) -> bool:
    return prefix == GLOBAL_PREFIX or path.startswith(prefix)


class ExtensionRegistry:
    """Ordered ``(prefix, Extension)`` registrations.

    Appended during setup, read-only once frozen.
    """

    __slots__ = ("_entries", "_frozen")

    def __init__(self) -> None:
        self._entries: list[tuple[str, Extension]] = []
        self._frozen = False

    def register(self, prefix: str, extension: Extension) -> None:
        if self._frozen:
            msg = "Cannot register extensions after the app has started serving requests."
            raise RuntimeError(msg)
        self._entries.append((prefix, extension))

    def freeze(self) -> None:
        self._frozen = True

    def __len__(self) -> int:
        return len(self._entries)

    def matching(self, path: str) -> Iterator[Extension]:
        """Extensions whose prefix covers *path*, in registration order."""
        for prefix, extension in self._entries:
            if _applies(prefix, path):
                yield extension

    async def run_pre_dispatch(self, request: Request, path: str) -> Any:
        """Run ``on_request`` hooks; return the first non-``None`` result."""
        for extension in self.matching(path):
            if extension.on_request is None:
                continue
            result = await invoke(extension.on_request, request, extension.config)
            if result is not None:
                return result
        return None

    async def run_post_dispatch(self, context: Context, path: str) -> None:
        """Run every ``on_response`` hook against the normalized context."""
        for extension in self.matching(path):
            if extension.on_response is not None:
                await invoke(extension.on_response, context, extension.config)
