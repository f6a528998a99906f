"""Tests for _descriptors.py and _grammars.py: the coercion engine."""

from decimal import Decimal
from typing import Any, Optional

import pytest
from pydantic import BaseModel

from declconf._casters import Keyword
from declconf._descriptors import (
    Caster,
    Primitive,
    Schema,
    Spec,
    TypeDescriptor,
    as_descriptor,
    coerce,
)
from declconf._grammars import GrammarError, parse_block, parse_literal
from declconf._types import DeclarationError, InvalidValueError


class Pool(BaseModel):
    size: int
    timeout: float = 5.0


class TestGrammars:
    def test_literal(self):
        assert parse_literal("{'a': [1, 2], 'b': (3,)}") == {"a": [1, 2], "b": (3,)}

    def test_literal_rejects_expressions(self):
        with pytest.raises(GrammarError):
            parse_literal("__import__('os')")

    def test_block_mapping(self):
        assert parse_block("size: 3\ntimeout: 1.5\n") == {"size": 3, "timeout": 1.5}

    def test_block_flow_style(self):
        assert parse_block("{size: 3}") == {"size": 3}

    def test_block_rejects_broken_yaml(self):
        with pytest.raises(GrammarError):
            parse_block("a: [1, 2")

    def test_block_rejects_impossible_date(self):
        with pytest.raises(GrammarError, match="ValueError"):
            parse_block("start: 2021-13-45")

    def test_block_rejects_deep_nesting(self):
        with pytest.raises(GrammarError):
            parse_block("[" * 5000 + "]" * 5000)

    def test_literal_rejects_deep_nesting(self):
        with pytest.raises(GrammarError):
            parse_literal("[" * 5000 + "]" * 5000)


class TestAsDescriptor:
    @pytest.mark.parametrize("kind", [str, int, float, bool, Keyword])
    def test_primitives(self, kind):
        descriptor = as_descriptor(kind)
        assert isinstance(descriptor, Primitive)
        assert descriptor.kind is kind

    def test_model_becomes_schema(self):
        assert isinstance(as_descriptor(Pool), Schema)

    def test_generic_alias_becomes_schema(self):
        assert isinstance(as_descriptor(list[int]), Schema)

    def test_callable_becomes_caster(self):
        assert isinstance(as_descriptor(Decimal), Caster)

    def test_descriptor_passthrough(self):
        spec = Spec(dict)
        assert as_descriptor(spec) is spec

    def test_all_implement_protocol(self):
        for descriptor in (Primitive(int), Caster(Decimal), Schema(Pool), Spec(dict)):
            assert isinstance(descriptor, TypeDescriptor)

    def test_unsupported(self):
        with pytest.raises(DeclarationError):
            as_descriptor(42)


class TestPrimitiveCoercion:
    @pytest.mark.parametrize(
        "kind, value",
        [(str, "hello"), (int, 8080), (int, -1), (float, 0.25), (bool, True), (bool, False)],
    )
    def test_round_trip(self, kind, value):
        assert coerce(str(value), Primitive(kind)) == value

    def test_keyword_round_trip(self):
        assert coerce("info", Primitive(Keyword)) == "info"

    def test_invalid_int(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("abcd", Primitive(int))
        assert exc.value.stage == "cast"
        assert exc.value.raw_value == "abcd"
        assert "int" in exc.value.detail

    def test_invalid_bool(self):
        with pytest.raises(InvalidValueError):
            coerce("maybe", Primitive(bool))

    def test_typed_value_passes_through(self):
        assert coerce(9000, Primitive(int)) == 9000
        assert coerce(False, Primitive(bool)) is False


class TestCasterCoercion:
    def test_callable(self):
        assert coerce("1.50", Caster(Decimal)) == Decimal("1.50")

    def test_errors_become_invalid_value(self):
        with pytest.raises(InvalidValueError, match="rejected value") as exc:
            coerce("abc", Caster(Decimal))
        assert exc.value.stage == "cast"


class TestSchemaCoercion:
    def test_model_from_yaml(self):
        pool = coerce("size: 3\n", Schema(Pool))
        assert pool == Pool(size=3, timeout=5.0)

    def test_list_from_flow_yaml(self):
        assert coerce("[1, '2']", Schema(list[int])) == [1, 2]

    def test_optional(self):
        assert coerce("null", Schema(Optional[int])) is None

    def test_parse_stage(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("size: [", Schema(Pool))
        assert exc.value.stage == "parse"

    def test_shape_stage(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("size: many", Schema(Pool))
        assert exc.value.stage == "shape"
        assert "size" in exc.value.detail
        assert exc.value.raw_value == "size: many"

    def test_shape_detail_does_not_echo_input(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("size: topsecret", Schema(Pool))
        assert "topsecret" not in exc.value.detail

    def test_typed_value_skips_parsing(self):
        assert coerce({"size": "4"}, Schema(Pool)) == Pool(size=4)

    def test_typed_value_still_checked(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce({"timeout": 1}, Schema(Pool))
        assert exc.value.stage == "shape"

    def test_impossible_date_is_a_parse_error(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("start: 2021-13-45", Schema(dict))
        assert exc.value.stage == "parse"
        assert exc.value.raw_value == "start: 2021-13-45"

    def test_deep_nesting_is_a_parse_error(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("[" * 5000 + "]" * 5000, Schema(list))
        assert exc.value.stage == "parse"


class TestSpecCoercion:
    def test_type_predicate(self):
        assert coerce("{'a': 1}", Spec(dict)) == {"a": 1}

    def test_callable_predicate_and_conformer(self):
        descriptor = Spec(lambda v: isinstance(v, tuple) and len(v) == 2, conform=list, name="pair")
        assert coerce("(1, 2)", descriptor) == [1, 2]

    def test_parse_stage(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("{'a': ", Spec(dict))
        assert exc.value.stage == "parse"

    def test_predicate_rejection(self):
        with pytest.raises(InvalidValueError) as exc:
            coerce("[1, 2]", Spec(dict))
        assert exc.value.stage == "shape"
        assert "dict" in exc.value.detail

    def test_predicate_exception_is_reported(self):
        def explode(value):
            raise RuntimeError("boom")

        with pytest.raises(InvalidValueError, match="boom"):
            coerce("1", Spec(explode))

    def test_typed_value_skips_parsing(self):
        assert coerce({"a": 1}, Spec(dict)) == {"a": 1}

    def test_non_callable_predicate(self):
        with pytest.raises(DeclarationError):
            Spec("dict")


class _Flaky:
    """Descriptor whose hooks raise plain exceptions."""

    def __init__(self, structured, parse_error=None, conform_error=None):
        self.structured = structured
        self.parse_error = parse_error
        self.conform_error = conform_error

    def describe(self) -> str:
        return "flaky"

    def parse(self, text: str) -> Any:
        if self.parse_error is not None:
            raise self.parse_error
        return text

    def conform(self, value: Any) -> Any:
        if self.conform_error is not None:
            raise self.conform_error
        return value


class TestCustomDescriptorErrors:
    def test_implements_protocol(self):
        assert isinstance(_Flaky(True), TypeDescriptor)

    def test_parse_error_becomes_invalid_value(self):
        descriptor = _Flaky(True, parse_error=ValueError("bad date"))
        with pytest.raises(InvalidValueError, match="bad date") as exc:
            coerce("x: 1", descriptor)
        assert exc.value.stage == "parse"
        assert exc.value.raw_value == "x: 1"

    def test_structured_conform_error_is_shape_stage(self):
        descriptor = _Flaky(True, conform_error=KeyError("size"))
        with pytest.raises(InvalidValueError) as exc:
            coerce("x: 1", descriptor)
        assert exc.value.stage == "shape"

    def test_plain_conform_error_is_cast_stage(self):
        descriptor = _Flaky(False, conform_error=RuntimeError("boom"))
        with pytest.raises(InvalidValueError, match="RuntimeError: boom") as exc:
            coerce("x", descriptor)
        assert exc.value.stage == "cast"
