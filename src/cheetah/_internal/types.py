"""Shared type aliases used across cheetah modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: receives the Context, returns a payload or HandlerResult
Handler: TypeAlias = Callable[..., Any]

# Not-found handler: receives the Request
NotFoundHandler: TypeAlias = Callable[..., Any]

# Error handler: receives (exc, request) and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]
