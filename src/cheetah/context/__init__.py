"""Per-request context: ``Context``, ``c.req`` and ``c.res``."""

from cheetah.context.context import Context
from cheetah.context.current import context_var, get_context
from cheetah.context.request import RequestContext
from cheetah.context.response import Accumulator, ResponseContext

__all__ = [
    "Accumulator",
    "Context",
    "RequestContext",
    "ResponseContext",
    "context_var",
    "get_context",
]
