"""Bulk validation and the human-readable config report."""

from __future__ import annotations

from dataclasses import dataclass

from ._registry import Registry, RegistryEntry, get_registry, public_detail
from ._resolver import Failed
from ._types import ConfigValidationError, ErrorKind, Source


@dataclass(frozen=True)
class EntryError:
    """One failed entry, as reported by ``errors()`` / ``validate()``."""

    name: str
    var_name: str
    kind: ErrorKind
    detail: str
    info: str | None = None

    def __str__(self) -> str:
        text = f"{self.name} ({self.var_name}): {self.detail}"
        if self.info:
            text += f" // {self.info}"
        return text


def _active(registry: Registry | None) -> Registry:
    return registry if registry is not None else get_registry()


def errors(registry: Registry | None = None) -> list[EntryError]:
    """Every entry currently in error, in declaration order."""
    found: list[EntryError] = []
    for entry in _active(registry).entries():
        outcome = entry.outcome
        if not isinstance(outcome, Failed):
            continue
        spec = entry.spec
        found.append(
            EntryError(
                name=spec.name,
                var_name=spec.var_name,
                kind=outcome.kind,
                detail=public_detail(spec, outcome),
                info=spec.info,
            )
        )
    return found


def validate(registry: Registry | None = None) -> None:
    """Raise ``ConfigValidationError`` listing every failed entry, if any."""
    found = errors(registry)
    if found:
        raise ConfigValidationError(found)


# ---------------------------------------------------------------------------
# show()
# ---------------------------------------------------------------------------


def _render_line(entry: RegistryEntry) -> str:
    spec = entry.spec
    state = entry.state
    var = spec.var_name

    if state is None:
        line = f"{spec.name}: <UNRESOLVED>"
    elif isinstance(state.outcome, Failed):
        failed = state.outcome
        if spec.secret:
            reason = (
                f"{var} is not set"
                if failed.kind is ErrorKind.REQUIRED_NOT_PRESENT
                else f"{var} has an invalid value"
            )
            line = f"{spec.name}: <SECRET> because {reason}"
        elif failed.kind is ErrorKind.REQUIRED_NOT_PRESENT:
            line = f"{spec.name}: <ERROR> because {var} is required but not set"
        else:
            line = f"{spec.name}: <ERROR> because {var}={state.raw_value!r} is invalid: {failed.detail}"
    else:
        resolved = state.outcome
        shown = "<SECRET>" if spec.secret else repr(resolved.value)
        if resolved.source is Source.DEFAULT:
            line = f"{spec.name}: {shown} because {var} is not set"
        else:
            line = f"{spec.name}: {shown} from {var} in {resolved.source.value}"

    if spec.info:
        line += f" // {spec.info}"
    return line


def show(registry: Registry | None = None) -> str:
    """One line per entry, in declaration order, secrets redacted.

    ``port: 8080 from HTTP_PORT in environment // Listen port``
    """
    return "\n".join(_render_line(entry) for entry in _active(registry).entries())
