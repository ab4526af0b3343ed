"""Handler results — how a handler tells the chain whether to go on.

A handler returns a plain payload, ``None``, or a ``HandlerResult``. A
plain payload is shorthand for ``halt(payload)``; ``None`` leaves the body
untouched. Only ``proceed()`` asks to continue: the chain stops after the
first handler that leaves a body in the accumulator without asking to
continue, whether that body came from its return value or from an
earlier handler.

Usage::

    def authorize(c):
        c.res.header("x-checked", "1")
        return proceed()

    def show(c):
        return {"ok": True}

    app.get("/", authorize, show)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Outcome(Enum):
    CONTINUE = "continue"
    HALT = "halt"


@dataclass(frozen=True, slots=True)
class HandlerResult:
    outcome: Outcome
    body: Any = None


def proceed(body: Any = None) -> HandlerResult:
    """Continue to the next handler, optionally setting the body first."""
    return HandlerResult(Outcome.CONTINUE, body)


def halt(body: Any) -> HandlerResult:
    """Set the body and end the chain."""
    return HandlerResult(Outcome.HALT, body)


def as_result(value: Any) -> HandlerResult:
    """Interpret a handler's return value."""
    if isinstance(value, HandlerResult):
        return value
    return HandlerResult(Outcome.HALT, value)
