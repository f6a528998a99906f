"""Process-wide catalogue of declared config entries.

``defconfig()`` is the primary public API::

    PORT = defconfig("port", cast=int, var_name="HTTP_PORT", info="Listen port")
    PORT.value        # 8080, or a falsy NotLoaded if HTTP_PORT is bad/missing

Each entry keeps one immutable ``Resolution``; re-resolution swaps it in a
single assignment, so readers never see a half-updated entry.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from ._resolver import Failed, Resolution, Resolved, resolve
from ._source import SourceSnapshot, read_environ, snapshot
from ._spec import ConfigSpec
from ._types import (
    UNDEFINED,
    ConfigError,
    DeclarationError,
    ErrorKind,
    InvalidValueError,
    NotLoaded,
    Secret,
    Source,
    UndefinedValueError,
    _Undefined,
)

logger = logging.getLogger(__name__)


def public_detail(spec: ConfigSpec, failed: Failed) -> str:
    """Failure detail that is safe to print for *spec*."""
    if not spec.secret or failed.kind is not ErrorKind.INVALID_VALUE:
        return failed.detail
    return f"{spec.var_name} has an invalid value ({failed.stage} error)"


# ---------------------------------------------------------------------------
# Entries and handles
# ---------------------------------------------------------------------------


class RegistryEntry:
    """Mutable cell owned by a ``Registry``."""

    __slots__ = ("spec", "state")

    def __init__(self, spec: ConfigSpec) -> None:
        self.spec = spec
        self.state: Resolution | None = None

    @property
    def outcome(self) -> Resolved | Failed | None:
        state = self.state
        return state.outcome if state is not None else None

    def __repr__(self) -> str:
        return f"RegistryEntry({self.spec.name!r}, {self.outcome!r})"


@dataclass(frozen=True)
class EntryMeta:
    """Read-only description of an entry for introspection tools."""

    name: str
    spec: ConfigSpec
    params: Mapping[str, Any]
    source: Source | None
    raw_value: Any
    error: Failed | None

    @property
    def loaded(self) -> bool:
        return self.source is not None


class ConfigHandle:
    """Accessor bound to a registry entry.

    ``value`` is always live: it reflects the latest resolution.
    """

    __slots__ = ("_entry",)

    def __init__(self, entry: RegistryEntry) -> None:
        self._entry = entry

    @property
    def name(self) -> str:
        return self._entry.spec.name

    @property
    def spec(self) -> ConfigSpec:
        return self._entry.spec

    @property
    def value(self) -> Any:
        """The resolved value, or a ``NotLoaded`` marker."""
        spec = self._entry.spec
        state = self._entry.state
        if state is None:
            return NotLoaded(ErrorKind.UNRESOLVED, f"{spec.name} has not been resolved yet")
        outcome = state.outcome
        if isinstance(outcome, Failed):
            return NotLoaded(outcome.kind, public_detail(spec, outcome))
        return outcome.value

    @property
    def is_loaded(self) -> bool:
        return isinstance(self._entry.outcome, Resolved)

    def get(self) -> Any:
        """Like ``value`` but raises the entry's error instead of ``NotLoaded``."""
        spec = self._entry.spec
        state = self._entry.state
        if state is None:
            raise ConfigError(f"'{spec.name}' has not been resolved yet")
        outcome = state.outcome
        if isinstance(outcome, Resolved):
            return outcome.value
        if outcome.kind is ErrorKind.REQUIRED_NOT_PRESENT:
            raise UndefinedValueError(spec.var_name)
        raw = Secret(state.raw_value) if spec.secret else state.raw_value
        raise InvalidValueError(raw, public_detail(spec, outcome), outcome.stage or "cast")

    @property
    def meta(self) -> EntryMeta:
        spec = self._entry.spec
        state = self._entry.state
        raw: Any = UNDEFINED
        source = None
        error = None
        if state is not None:
            raw = state.raw_value
            if spec.secret and not isinstance(raw, _Undefined):
                raw = Secret(raw)
            if isinstance(state.outcome, Resolved):
                source = state.outcome.source
            else:
                error = Failed(state.outcome.kind, public_detail(spec, state.outcome), state.outcome.stage)
        return EntryMeta(
            name=spec.name,
            spec=spec,
            params=spec.params(),
            source=source,
            raw_value=raw,
            error=error,
        )

    def __repr__(self) -> str:
        spec = self._entry.spec
        shown = "<SECRET>" if spec.secret and self.is_loaded else repr(self.value)
        return f"<ConfigHandle {spec.name}={shown}>"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class Registry:
    """Ordered, thread-safe collection of config entries.

    >>> reg = Registry(snapshot({"HTTP_PORT": "8080"}))
    >>> reg.declare(ConfigSpec.build("port", cast=int, var_name="HTTP_PORT")).value
    8080
    """

    def __init__(self, source: SourceSnapshot | None = None) -> None:
        self._lock = threading.RLock()
        self._source = source if source is not None else snapshot()
        self._entries: dict[str, RegistryEntry] = {}
        self._handles: dict[str, ConfigHandle] = {}

    @property
    def source(self) -> SourceSnapshot:
        return self._source

    # -- declaration --------------------------------------------------------

    def _check_var_name(self, spec: ConfigSpec) -> None:
        for entry in self._entries.values():
            if entry.spec.var_name != spec.var_name:
                continue
            if spec.var_name_derived:
                raise DeclarationError(
                    f"'{spec.name}': derived variable name {spec.var_name} is already used by "
                    f"'{entry.spec.name}'; pass var_name= explicitly"
                )
            logger.warning(
                "Config '%s' reads %s, which is also read by '%s'",
                spec.name,
                spec.var_name,
                entry.spec.name,
            )

    def declare(self, spec: ConfigSpec, *, resolve: bool = True) -> ConfigHandle:
        """Register *spec* and, unless ``resolve=False``, resolve it now."""
        with self._lock:
            if spec.name in self._entries:
                raise DeclarationError(f"config '{spec.name}' is already declared")
            self._check_var_name(spec)

            entry = RegistryEntry(spec)
            if resolve:
                entry.state = self._resolve_entry(entry, self._source)
            self._entries[spec.name] = entry
            handle = ConfigHandle(entry)
            self._handles[spec.name] = handle
        logger.debug("Declared config '%s' (var %s)", spec.name, spec.var_name)
        return handle

    # -- resolution ---------------------------------------------------------

    def _resolve_entry(self, entry: RegistryEntry, source: SourceSnapshot) -> Resolution:
        result = resolve(entry.spec, source)
        if isinstance(result.outcome, Failed):
            logger.debug("Config '%s' failed: %s", entry.spec.name, result.outcome.kind.value)
        else:
            logger.debug("Config '%s' resolved from %s", entry.spec.name, result.outcome.source.value)
        return result

    def _resolve_into(self, source: SourceSnapshot) -> int:
        # Every resolution is computed before any entry or the snapshot changes.
        entries = list(self._entries.values())
        results = [self._resolve_entry(entry, source) for entry in entries]
        self._source = source
        for entry, result in zip(entries, results):
            entry.state = result
        return sum(1 for result in results if isinstance(result.outcome, Failed))

    def resolve_all(self) -> None:
        """Resolve every entry against the current snapshot."""
        with self._lock:
            self._resolve_into(self._source)

    def reresolve_all(self, source: SourceSnapshot) -> None:
        """Replace the snapshot and re-resolve every entry in declaration order.

        If resolving any entry raises, neither the snapshot nor any entry is
        changed.
        """
        with self._lock:
            failed = self._resolve_into(source)
            total = len(self._entries)
        logger.info("Re-resolved %d config entries (%d failed)", total, failed)

    def reload(
        self,
        override: Mapping[str, Any] | None = None,
        *,
        refresh_environ: bool = False,
    ) -> None:
        """Re-resolve with a new override mapping (and optionally a fresh environ)."""
        with self._lock:
            source = self._source.with_override(override)
            if refresh_environ:
                source = source.with_base(read_environ())
            self.reresolve_all(source)

    # -- reading ------------------------------------------------------------

    def entries(self) -> tuple[RegistryEntry, ...]:
        with self._lock:
            return tuple(self._entries.values())

    def handles(self) -> tuple[ConfigHandle, ...]:
        with self._lock:
            return tuple(self._handles.values())

    def get(self, name: str) -> ConfigHandle:
        with self._lock:
            try:
                return self._handles[name]
            except KeyError:
                raise KeyError(f"no config named '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ConfigHandle]:
        return iter(self.handles())


# ---------------------------------------------------------------------------
# Module-level registry management
# ---------------------------------------------------------------------------

_active_registry: Registry | None = None
_active_lock = threading.Lock()


def set_registry(registry: Registry | None) -> None:
    """Set the module-level registry (``None`` resets it)."""
    global _active_registry
    with _active_lock:
        _active_registry = registry


def get_registry() -> Registry:
    """Return the module-level registry, creating it from ``os.environ`` if needed."""
    global _active_registry
    with _active_lock:
        if _active_registry is None:
            _active_registry = Registry()
        return _active_registry


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def defconfig(
    name: str,
    *,
    cast: Any = str,
    var_name: str | None = None,
    default: Any = UNDEFINED,
    required: bool | None = None,
    secret: bool = False,
    info: str | None = None,
    registry: Registry | None = None,
) -> ConfigHandle:
    """Declare a config entry and resolve it immediately.

    Parameters
    ----------
    name:
        Entry name, unique per registry.
    cast:
        ``str``, ``int``, ``float``, ``bool``, ``Keyword``, a ``Schema`` /
        ``Spec`` descriptor, a pydantic model, or any other callable such as
        ``Decimal``.
    var_name:
        Source variable to read. Defaults to ``name`` upper-cased with
        non-alphanumerics replaced by ``_``.
    default:
        Used when the variable is absent. Strings are coerced with *cast*,
        other values are returned as-is.
    required:
        Defaults to ``True`` unless *default* is given. ``required=True`` with
        a default raises ``DeclarationError``.
    secret:
        Redact the value in ``show()``, error details and metadata.
    info:
        Human-readable description shown in reports.
    registry:
        Registry to declare in. Falls back to the module-level registry.
    """
    spec = ConfigSpec.build(
        name,
        cast=cast,
        var_name=var_name,
        default=default,
        required=required,
        secret=secret,
        info=info,
    )
    active = registry if registry is not None else get_registry()
    return active.declare(spec)
