"""Foundation types for declconf.

Provides sentinel values, the exception hierarchy, the ``NotLoaded`` marker
returned for entries that failed to resolve, and the ``Secret`` wrapper.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, Sequence, TypeVar, get_args

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

if TYPE_CHECKING:
    from ._report import EntryError

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Sentinel
# ---------------------------------------------------------------------------


class _Undefined:
    """Sentinel for "no value given" (distinct from ``None``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


# ---------------------------------------------------------------------------
# Provenance and error kinds
# ---------------------------------------------------------------------------


class Source(str, Enum):
    """Which layer supplied an entry's value."""

    ENVIRONMENT = "environment"
    OVERRIDE = "override"
    DEFAULT = "default"


class ErrorKind(str, Enum):
    REQUIRED_NOT_PRESENT = "required_not_present"
    INVALID_VALUE = "invalid_value"
    UNRESOLVED = "unresolved"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Base exception for config-related errors."""


class DeclarationError(ConfigError):
    """Raised when a config entry is declared with an invalid combination."""


class UndefinedValueError(ConfigError):
    """Raised when a required configuration variable is missing."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Configuration variable '{key}' is required but not set.")


class InvalidValueError(ConfigError):
    """Raised by the coercion engine when a raw value cannot be converted.

    ``stage`` is one of ``"parse"``, ``"shape"`` or ``"cast"``.
    """

    def __init__(self, raw_value: Any, detail: str, stage: str = "cast") -> None:
        self.raw_value = raw_value
        self.detail = detail
        self.stage = stage
        super().__init__(f"{stage} error: {detail}")


class ConfigValidationError(ConfigError):
    """Raised by ``validate()`` with every entry currently in error."""

    def __init__(self, errors: Sequence[EntryError]) -> None:
        self.errors = tuple(errors)
        lines = [f"{len(self.errors)} configuration error(s):"]
        lines.extend(f"  {error}" for error in self.errors)
        super().__init__("\n".join(lines))


# ---------------------------------------------------------------------------
# NotLoaded
# ---------------------------------------------------------------------------


class NotLoaded:
    """Placeholder value for an entry that did not resolve.

    Returned in place of the value so code that reads a config entry at import
    time keeps running until ``validate()`` is called.
    """

    __slots__ = ("kind", "detail")

    def __init__(self, kind: ErrorKind, detail: str) -> None:
        self.kind = kind
        self.detail = detail

    def __repr__(self) -> str:
        return f"<NotLoaded {self.kind.value}: {self.detail}>"

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NotLoaded):
            return self.kind == other.kind and self.detail == other.detail
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.kind, self.detail))


# ---------------------------------------------------------------------------
# Secret
# ---------------------------------------------------------------------------


class Secret(Generic[T]):
    """Wraps a value so it is redacted in ``repr`` / ``str`` output.

    Access the real value via ``.secret_value``.
    """

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        object.__setattr__(self, "_value", value)

    @property
    def secret_value(self) -> T:
        return self._value  # type: ignore[return-value]

    # -- redaction ----------------------------------------------------------

    def __repr__(self) -> str:
        return "Secret('***')"

    def __str__(self) -> str:
        return "***"

    # -- comparison ---------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Secret):
            return bool(self._value == other._value)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __bool__(self) -> bool:
        return bool(self._value)

    # -- Pydantic v2 integration --------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        # Validate the inner value against ``T`` from ``Secret[T]``, then wrap.
        args = get_args(source_type)
        inner_schema = handler.generate_schema(args[0] if args else Any)

        def _wrap(value: Any) -> "Secret[Any]":
            return Secret(value)

        def _serialize(value: "Secret[Any]", _info: Any) -> str:
            return "***"

        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                core_schema.no_info_after_validator_function(_wrap, inner_schema),
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(
                _serialize,
                info_arg=True,
            ),
        )
