"""Test utilities for declconf."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from ._registry import Registry, get_registry


@contextmanager
def override_config(
    *,
    override: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    registry: Registry | None = None,
) -> Iterator[Registry]:
    """Temporarily re-resolve the registry against different sources.

    Usage::

        with override_config(override={"HTTP_PORT": 9000}, environ={}):
            assert PORT.value == 9000
            validate()

    ``environ=None`` keeps the current base source. The previous snapshot is
    restored (and everything re-resolved) on exit.
    """
    active = registry if registry is not None else get_registry()
    previous = active.source
    replacement = previous.with_override(override)
    if environ is not None:
        replacement = replacement.with_base(environ)
    active.reresolve_all(replacement)
    try:
        yield active
    finally:
        active.reresolve_all(previous)
