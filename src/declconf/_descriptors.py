"""Type descriptors and the coercion engine.

Every config entry carries exactly one ``TypeDescriptor``. ``coerce()`` only
talks to that protocol, so primitive kinds, plain callables, pydantic schemas
and predicate specs are interchangeable.

Descriptor families:

* ``Primitive`` - ``str``, ``int``, ``float``, ``bool`` and ``Keyword``.
* ``Caster`` - any callable taking the raw string (``pathlib.Path``, ``Decimal``, ...).
* ``Schema`` - a pydantic type or model; raw strings are parsed as YAML.
* ``Spec`` - a predicate with an optional conformer; raw strings are parsed
  as Python literals.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, get_origin, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError

from ._casters import Keyword, _cast_bool, _cast_float, _cast_int, _cast_keyword, _cast_str
from ._grammars import GrammarError, parse_block, parse_literal
from ._types import DeclarationError, InvalidValueError


@runtime_checkable
class TypeDescriptor(Protocol):
    """What the coercion engine needs from a type description.

    ``structured`` descriptors get a ``parse`` step for string input before
    ``conform``; non-structured ones receive the raw string in ``conform``.
    """

    structured: bool

    def describe(self) -> str:
        ...

    def parse(self, text: str) -> Any:
        ...

    def conform(self, value: Any) -> Any:
        ...


# ---------------------------------------------------------------------------
# Primitive kinds
# ---------------------------------------------------------------------------

_PRIMITIVE_CASTERS: dict[Any, Callable[[str], Any]] = {
    str: _cast_str,
    int: _cast_int,
    float: _cast_float,
    bool: _cast_bool,
    Keyword: _cast_keyword,
}

_PRIMITIVE_NAMES = {str: "string", int: "int", float: "double", bool: "bool", Keyword: "keyword"}


class Primitive:
    """One of the built-in scalar kinds."""

    structured = False

    def __init__(self, kind: Any) -> None:
        if kind not in _PRIMITIVE_CASTERS:
            raise DeclarationError(f"{kind!r} is not a primitive config type")
        self.kind = kind
        self._caster = _PRIMITIVE_CASTERS[kind]

    def describe(self) -> str:
        return _PRIMITIVE_NAMES[self.kind]

    def parse(self, text: str) -> Any:
        return text

    def conform(self, value: Any) -> Any:
        # Typed values (overrides, defaults) are trusted as given.
        if not isinstance(value, str):
            return value
        try:
            return self._caster(value)
        except (ValueError, TypeError) as e:
            raise InvalidValueError(value, f"cannot parse as {self.describe()}: {e}", "cast") from e

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Primitive):
            return self.kind is other.kind
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.kind)

    def __repr__(self) -> str:
        return f"Primitive({self.describe()})"


# ---------------------------------------------------------------------------
# Plain callables
# ---------------------------------------------------------------------------


class Caster:
    """Wraps a plain callable such as ``Decimal`` or a user function."""

    structured = False

    def __init__(self, fn: Callable[[Any], Any]) -> None:
        self.fn = fn

    def describe(self) -> str:
        return getattr(self.fn, "__name__", None) or repr(self.fn)

    def parse(self, text: str) -> Any:
        return text

    def conform(self, value: Any) -> Any:
        try:
            return self.fn(value)
        except InvalidValueError:
            raise
        except Exception as e:
            raise InvalidValueError(value, f"{self.describe()} rejected value: {e}", "cast") from e

    def __repr__(self) -> str:
        return f"Caster({self.describe()})"


# ---------------------------------------------------------------------------
# Structured: pydantic schema + YAML
# ---------------------------------------------------------------------------


def _format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors without echoing the input value."""
    parts = []
    for item in error.errors(include_url=False, include_input=False):
        loc = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


class Schema:
    """Structured descriptor backed by a pydantic ``TypeAdapter``.

    >>> Schema(list[int]).conform(Schema(list[int]).parse("[1, 2]"))
    [1, 2]
    """

    structured = True

    def __init__(self, type_: Any) -> None:
        self.type_ = type_
        try:
            self._adapter: TypeAdapter[Any] = TypeAdapter(type_)
        except Exception as e:
            raise DeclarationError(f"cannot build a schema for {type_!r}: {e}") from e

    def describe(self) -> str:
        return getattr(self.type_, "__name__", None) or repr(self.type_)

    def parse(self, text: str) -> Any:
        try:
            return parse_block(text)
        except GrammarError as e:
            raise InvalidValueError(text, str(e), "parse") from e

    def conform(self, value: Any) -> Any:
        try:
            return self._adapter.validate_python(value)
        except ValidationError as e:
            raise InvalidValueError(
                value, f"does not match {self.describe()}: {_format_validation_error(e)}", "shape"
            ) from e

    def __repr__(self) -> str:
        return f"Schema({self.describe()})"


# ---------------------------------------------------------------------------
# Structured: predicate spec + Python literals
# ---------------------------------------------------------------------------


class Spec:
    """Structured descriptor built from a predicate and optional conformer.

    A ``type`` predicate is an ``isinstance`` check::

        Spec(dict)
        Spec(lambda v: isinstance(v, list) and all(isinstance(i, int) for i in v))
        Spec(tuple, conform=list, name="pair")
    """

    structured = True

    def __init__(
        self,
        predicate: Callable[[Any], Any] | type,
        conform: Callable[[Any], Any] | None = None,
        name: str | None = None,
    ) -> None:
        if not callable(predicate):
            raise DeclarationError(f"Spec predicate must be callable, got {predicate!r}")
        self.predicate = predicate
        self.conformer = conform
        self.name = name

    def describe(self) -> str:
        if self.name:
            return self.name
        return getattr(self.predicate, "__name__", None) or repr(self.predicate)

    def parse(self, text: str) -> Any:
        try:
            return parse_literal(text)
        except GrammarError as e:
            raise InvalidValueError(text, str(e), "parse") from e

    def _check(self, value: Any) -> bool:
        if isinstance(self.predicate, type):
            return isinstance(value, self.predicate)
        return bool(self.predicate(value))

    def conform(self, value: Any) -> Any:
        try:
            ok = self._check(value)
        except Exception as e:
            raise InvalidValueError(value, f"predicate {self.describe()} raised: {e}", "shape") from e
        if not ok:
            raise InvalidValueError(
                value, f"{type(value).__name__} value does not satisfy {self.describe()}", "shape"
            )
        if self.conformer is None:
            return value
        try:
            return self.conformer(value)
        except Exception as e:
            raise InvalidValueError(value, f"cannot conform to {self.describe()}: {e}", "shape") from e

    def __repr__(self) -> str:
        return f"Spec({self.describe()})"


# ---------------------------------------------------------------------------
# Descriptor resolution
# ---------------------------------------------------------------------------


def as_descriptor(cast: Any) -> TypeDescriptor:
    """Turn the ``cast=`` argument of a declaration into a descriptor."""
    if isinstance(cast, TypeDescriptor):
        return cast
    # ``list[int]``, ``dict[str, int]``, ``Optional[...]``
    if get_origin(cast) is not None:
        return Schema(cast)
    if isinstance(cast, type):
        if cast in _PRIMITIVE_CASTERS:
            return Primitive(cast)
        if issubclass(cast, BaseModel):
            return Schema(cast)
    if callable(cast):
        return Caster(cast)
    raise DeclarationError(f"unsupported cast {cast!r}")


def coerce(raw: Any, descriptor: TypeDescriptor) -> Any:
    """Convert *raw* according to *descriptor*.

    Raises ``InvalidValueError`` on every failure path, with ``stage`` telling
    whether parsing, the shape check or a primitive cast failed.
    """
    value = raw
    if descriptor.structured and isinstance(raw, str):
        try:
            value = descriptor.parse(raw)
        except InvalidValueError:
            raise
        except Exception as e:
            raise InvalidValueError(raw, f"{type(e).__name__}: {e}", "parse") from e
    try:
        return descriptor.conform(value)
    except InvalidValueError as e:
        if e.raw_value is not raw:
            raise InvalidValueError(raw, e.detail, e.stage) from e
        raise
    except Exception as e:
        stage = "shape" if descriptor.structured else "cast"
        raise InvalidValueError(raw, f"{type(e).__name__}: {e}", stage) from e
