"""Request-scoped context via ContextVar.

The dispatcher sets ``context_var`` while the handler chain and the
post-dispatch extensions run, so helpers deep in a call stack can reach
the current ``Context`` without it being passed down.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. No locks needed.
"""

from contextvars import ContextVar

from cheetah.context.context import Context

context_var: ContextVar[Context] = ContextVar("cheetah_context")
"""The current context. Set by the dispatcher for the duration of a request."""


def get_context() -> Context:
    """Return the current context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
