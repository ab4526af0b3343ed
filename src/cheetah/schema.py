"""Validation schemas for the request accessors.

Every accessor validates through one structural protocol, ``Schema``: an
object with ``safe_parse(value) -> ParseResult``. ``as_schema`` adapts
pydantic models and any annotation ``pydantic.TypeAdapter`` understands;
objects that already implement ``safe_parse`` pass through untouched.

Usage::

    class Login(BaseModel):
        user: str

    RouteOptions(body=Login, params={"id": int})
"""

import types
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Protocol, Union, get_args, get_origin, runtime_checkable

from pydantic import TypeAdapter, ValidationError


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of ``Schema.safe_parse``: coerced data or an error message."""

    success: bool
    data: Any = None
    error: str | None = None


@runtime_checkable
class Schema(Protocol):
    def safe_parse(self, value: Any) -> ParseResult: ...


def _reads_text(annotation: Any) -> bool:
    """True for ``str``, a ``Literal`` of strings, or a union of those."""
    if annotation is str:
        return True
    origin = get_origin(annotation)
    if origin is Annotated:
        return _reads_text(get_args(annotation)[0])
    if origin is Literal:
        return all(isinstance(arg, str) for arg in get_args(annotation))
    if origin is Union or origin is types.UnionType:
        return all(_reads_text(arg) for arg in get_args(annotation))
    return False


class TypeSchema:
    """A ``Schema`` backed by ``pydantic.TypeAdapter``."""

    __slots__ = ("_adapter", "annotation")

    def __init__(self, annotation: Any) -> None:
        self.annotation = annotation
        self._adapter: TypeAdapter[Any] = TypeAdapter(annotation)

    @property
    def reads_text(self) -> bool:
        """Whether a body validated by this schema is read as text."""
        return _reads_text(self.annotation)

    def safe_parse(self, value: Any) -> ParseResult:
        try:
            return ParseResult(success=True, data=self._adapter.validate_python(value))
        except ValidationError as exc:
            return ParseResult(success=False, error=str(exc))

    def __repr__(self) -> str:
        return f"TypeSchema({self.annotation!r})"


def as_schema(obj: Any) -> Schema:
    """Adapt *obj* to the ``Schema`` protocol."""
    if isinstance(obj, Schema):
        return obj
    return TypeSchema(obj)


def is_text_schema(schema: Schema) -> bool:
    return bool(getattr(schema, "reads_text", False))
