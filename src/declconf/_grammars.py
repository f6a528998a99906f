"""Deserializers for structured raw values.

``parse_literal`` reads Python literal syntax (``{"a": [1, 2]}``) and backs the
predicate-style ``Spec`` descriptors. ``parse_block`` reads YAML, which also
accepts flow-style input, and backs the pydantic ``Schema`` descriptors.
"""

from __future__ import annotations

import ast
from typing import Any

import yaml


class GrammarError(ValueError):
    """Raised when a raw string cannot be deserialized."""


def parse_literal(text: str) -> Any:
    try:
        return ast.literal_eval(text.strip())
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError) as e:
        raise GrammarError(f"not a valid literal: {e}") from e


def parse_block(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except (yaml.YAMLError, ValueError, TypeError, RecursionError) as e:
        raise GrammarError(f"not valid YAML: {type(e).__name__}: {e}") from e
