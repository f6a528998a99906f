"""Declarative, typed configuration read from environment variables.

Declare entries once at import time, get typed values with provenance, and
check everything in one pass at startup::

    PORT = defconfig("port", cast=int, var_name="HTTP_PORT", default=8080)
    DB_PASSWORD = defconfig("db_password", secret=True)

    validate()   # raises ConfigValidationError listing every problem
    print(show())
"""

from ._casters import Keyword
from ._descriptors import Caster, Primitive, Schema, Spec, TypeDescriptor, coerce
from ._registry import (
    ConfigHandle,
    EntryMeta,
    Registry,
    defconfig,
    get_registry,
    set_registry,
)
from ._report import EntryError, errors, show, validate
from ._resolver import Failed, Resolved, resolve
from ._source import SourceSnapshot, snapshot
from ._spec import ConfigSpec, derive_var_name
from ._testing import override_config
from ._types import (
    UNDEFINED,
    ConfigError,
    ConfigValidationError,
    DeclarationError,
    ErrorKind,
    InvalidValueError,
    NotLoaded,
    Secret,
    Source,
    UndefinedValueError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "defconfig",
    "validate",
    "errors",
    "show",
    "Registry",
    "get_registry",
    "set_registry",
    "ConfigHandle",
    "EntryMeta",
    "ConfigSpec",
    "derive_var_name",
    # Sources and resolution
    "SourceSnapshot",
    "snapshot",
    "resolve",
    "Resolved",
    "Failed",
    "Source",
    "ErrorKind",
    # Types
    "TypeDescriptor",
    "Primitive",
    "Caster",
    "Schema",
    "Spec",
    "Keyword",
    "coerce",
    "Secret",
    "NotLoaded",
    "UNDEFINED",
    # Errors
    "ConfigError",
    "DeclarationError",
    "InvalidValueError",
    "UndefinedValueError",
    "ConfigValidationError",
    "EntryError",
    # Testing
    "override_config",
]
