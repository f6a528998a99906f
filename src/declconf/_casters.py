"""Primitive casters for config values.

Each caster takes the raw string read from a source and returns the typed
value, raising ``ValueError`` on bad input. Typed (non-string) values never
reach these functions; ``Primitive.conform`` passes them through.
"""

from __future__ import annotations

import math
import sys
from typing import Any


class Keyword:
    """Marker type for symbolic identifiers.

    ``defconfig("log_level", cast=Keyword)`` turns ``":info"`` or ``"info"``
    into the interned string ``"info"``.
    """

    def __new__(cls, *args: Any, **kwargs: Any) -> Keyword:
        raise TypeError("Keyword is a cast marker and cannot be instantiated")


# Canonical boolean literals, matched after trimming and lower-casing.
_BOOL_TOKENS = {
    **dict.fromkeys(("1", "true", "yes", "on", "t", "y"), True),
    **dict.fromkeys(("0", "false", "no", "off", "f", "n", ""), False),
}


def _cast_bool(value: str) -> bool:
    try:
        return _BOOL_TOKENS[value.strip().lower()]
    except KeyError:
        raise ValueError(f"{value!r} is not a boolean literal") from None


def _cast_int(value: str) -> int:
    return int(value.strip(), 10)


def _cast_float(value: str) -> float:
    result = float(value.strip())
    if math.isnan(result) or math.isinf(result):
        raise ValueError(f"{value!r} is out of range for float")
    return result


def _cast_keyword(value: str) -> str:
    token = value.strip()
    if token.startswith(":"):
        token = token[1:]
    if not token:
        raise ValueError("keyword must not be empty")
    if any(ch.isspace() for ch in token):
        raise ValueError(f"{value!r} is not a valid keyword")
    return sys.intern(token)


def _cast_str(value: str) -> str:
    return value
