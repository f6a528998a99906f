"""Command line entry points: ``declconf show`` and ``declconf validate``."""

from __future__ import annotations

import importlib
import logging
import sys
from typing import Iterable

import click

from .._registry import Registry, get_registry
from .._report import errors, show

EXIT_OK = 0
EXIT_INVALID = 1


def _parse_overrides(pairs: Iterable[str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--override")
        overrides[key] = value
    return overrides


class TargetError(Exception):
    """Raised when TARGET does not name an importable registry."""


def load_registry(target: str) -> Registry:
    """Import ``module`` or ``module:attribute`` and return its registry.

    A bare module is expected to declare entries in the module-level
    registry; ``module:attribute`` names a ``Registry`` instance. Errors
    raised while the module body runs propagate unchanged.
    """
    module_name, _, attribute = target.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        missing = e.name or ""
        if module_name != missing and not module_name.startswith(f"{missing}."):
            raise
        raise TargetError(f"no module named {e.name!r}") from e
    if not attribute:
        return get_registry()
    registry = getattr(module, attribute, None)
    if not isinstance(registry, Registry):
        raise TargetError(f"{target} is not a Registry")
    return registry


def _registry_for(target: str | Registry) -> Registry:
    return target if isinstance(target, Registry) else load_registry(target)


def show_command(target: str | Registry, overrides: dict[str, str] | None = None) -> str:
    """Return the ``show()`` report for *target*."""
    registry = _registry_for(target)
    if overrides:
        registry.reload(overrides)
    return show(registry)


def validate_command(
    target: str | Registry, overrides: dict[str, str] | None = None
) -> tuple[str, int]:
    """Return the validation report for *target* and the exit code."""
    registry = _registry_for(target)
    if overrides:
        registry.reload(overrides)
    found = errors(registry)
    if not found:
        return f"OK ({len(registry)} entries)", EXIT_OK
    lines = [f"{len(found)} configuration error(s):"]
    lines.extend(f"  {error}" for error in found)
    return "\n".join(lines), EXIT_INVALID


def _load_or_exit(target: str) -> Registry:
    try:
        return load_registry(target)
    except TargetError as e:
        click.secho(f"Error: cannot load {target}: {e}", fg="red", err=True)
        sys.exit(2)


_target_argument = click.argument("target")
_override_option = click.option(
    "--override",
    "-o",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a variable (repeatable).",
)
_verbose_option = click.option("--verbose", "-v", is_flag=True, help="Log resolution details.")


@click.group("declconf")
def cli():
    """Inspect declared configuration."""
    pass


@cli.command("show")
@_target_argument
@_override_option
@_verbose_option
def show_cli(target: str, overrides: tuple[str, ...], verbose: bool) -> None:
    """Print every entry of TARGET (module or module:registry) with its source.

    Examples:\n
        declconf show myapp.settings\n
        declconf show myapp.settings -o HTTP_PORT=9000\n
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    parsed = _parse_overrides(overrides)
    click.echo(show_command(_load_or_exit(target), parsed))


@cli.command("validate")
@_target_argument
@_override_option
@_verbose_option
def validate_cli(target: str, overrides: tuple[str, ...], verbose: bool) -> None:
    """Check every entry of TARGET and exit non-zero if any failed."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    parsed = _parse_overrides(overrides)
    text, code = validate_command(_load_or_exit(target), parsed)
    if code == EXIT_OK:
        click.secho(text, fg="green")
    else:
        click.secho(text, fg="red", err=True)
    sys.exit(code)


if __name__ == "__main__":  # pragma: no cover
    cli()
