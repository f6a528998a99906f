"""Layered raw-value sources.

A ``SourceSnapshot`` is a frozen view of the process environment (``base``)
with an optional ``override`` mapping on top. Overrides may hold already
typed values, which lets tests and dev tooling inject Python objects.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

from ._types import Source


class SourceValue(NamedTuple):
    value: Any
    source: Source


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class SourceSnapshot:
    """Immutable merged view of ``base`` overlaid by ``override``."""

    base: Mapping[str, str] = field(default_factory=lambda: _freeze(None))
    override: Mapping[str, Any] = field(default_factory=lambda: _freeze(None))

    def lookup(self, var_name: str) -> SourceValue | None:
        """Return the value for *var_name* and which layer held it.

        Returns ``None`` when neither layer has the key.
        """
        if var_name in self.override:
            return SourceValue(self.override[var_name], Source.OVERRIDE)
        if var_name in self.base:
            return SourceValue(self.base[var_name], Source.ENVIRONMENT)
        return None

    def with_override(self, override: Mapping[str, Any] | None) -> SourceSnapshot:
        """Return a new snapshot sharing ``base`` with a replaced override."""
        return SourceSnapshot(base=self.base, override=_freeze(override))

    def with_base(self, base: Mapping[str, str]) -> SourceSnapshot:
        return SourceSnapshot(base=_freeze(base), override=self.override)


def read_environ() -> dict[str, str]:
    """Copy of the current process environment."""
    return dict(os.environ)


def snapshot(
    base: Mapping[str, str] | None = None,
    override: Mapping[str, Any] | None = None,
) -> SourceSnapshot:
    """Build a snapshot; ``base=None`` reads ``os.environ`` once.

    >>> snapshot({"PORT": "80"}, {"PORT": 8080}).lookup("PORT")
    SourceValue(value=8080, source=<Source.OVERRIDE: 'override'>)
    """
    if base is None:
        base = read_environ()
    return SourceSnapshot(base=_freeze(base), override=_freeze(override))
