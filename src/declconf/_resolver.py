"""Per-entry resolution.

Lookup order:
1. Override mapping, then environment (``SourceSnapshot.lookup``)
2. Default value (a non-string default is used as-is, **not** coerced)
3. ``Failed(REQUIRED_NOT_PRESENT)`` for required entries
4. ``Resolved(None, DEFAULT)`` for optional entries
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ._descriptors import coerce
from ._source import SourceSnapshot
from ._spec import ConfigSpec
from ._types import UNDEFINED, ErrorKind, InvalidValueError, Source


@dataclass(frozen=True)
class Resolved:
    value: Any
    source: Source


@dataclass(frozen=True)
class Failed:
    kind: ErrorKind
    detail: str
    stage: str | None = None


Outcome = Union[Resolved, Failed]


@dataclass(frozen=True)
class Resolution:
    """Everything one resolution run produced for an entry.

    ``raw_value`` is the pre-coercion input (``UNDEFINED`` when nothing was
    found); ``from_default`` tells whether the default layer was used.
    """

    outcome: Outcome
    raw_value: Any = UNDEFINED
    from_default: bool = False


def resolve(spec: ConfigSpec, source: SourceSnapshot) -> Resolution:
    """Resolve *spec* against *source*. Never raises for bad input values."""
    found = source.lookup(spec.var_name)

    if found is None:
        if spec.has_default:
            if not isinstance(spec.default, str):
                return Resolution(Resolved(spec.default, Source.DEFAULT), spec.default, True)
            raw, origin = spec.default, Source.DEFAULT
        elif spec.required:
            return Resolution(
                Failed(ErrorKind.REQUIRED_NOT_PRESENT, f"{spec.var_name} is required but not set")
            )
        else:
            return Resolution(Resolved(None, Source.DEFAULT), UNDEFINED, True)
    else:
        raw, origin = found.value, found.source

    try:
        value = coerce(raw, spec.descriptor)
    except InvalidValueError as e:
        return Resolution(
            Failed(ErrorKind.INVALID_VALUE, e.detail, e.stage),
            raw,
            origin is Source.DEFAULT,
        )
    return Resolution(Resolved(value, origin), raw, origin is Source.DEFAULT)
