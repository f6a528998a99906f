"""Tests for _casters.py: primitive string casters and Keyword."""

import pytest

from declconf._casters import (
    Keyword,
    _cast_bool,
    _cast_float,
    _cast_int,
    _cast_keyword,
)


class TestCastBool:
    @pytest.mark.parametrize("value", ["1", "true", "True", "TRUE", "yes", "on", "t", "y", "Y"])
    def test_truthy_strings(self, value):
        assert _cast_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "False", "FALSE", "no", "off", "f", "n", ""])
    def test_falsy_strings(self, value):
        assert _cast_bool(value) is False

    @pytest.mark.parametrize("value", ["maybe", "2", "truthy"])
    def test_unknown_literal_raises(self, value):
        with pytest.raises(ValueError, match="not a boolean literal"):
            _cast_bool(value)

    def test_whitespace_stripped(self):
        assert _cast_bool("  true  ") is True


class TestCastNumbers:
    def test_int(self):
        assert _cast_int("8080") == 8080
        assert _cast_int(" -3 ") == -3

    @pytest.mark.parametrize("value", ["abcd", "1.5", "", "0x10"])
    def test_int_rejects(self, value):
        with pytest.raises(ValueError):
            _cast_int(value)

    def test_float(self):
        assert _cast_float("2.5") == 2.5
        assert _cast_float("1e3") == 1000.0

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", "abc"])
    def test_float_rejects(self, value):
        with pytest.raises(ValueError):
            _cast_float(value)


class TestKeyword:
    def test_plain_and_prefixed(self):
        assert _cast_keyword("info") == "info"
        assert _cast_keyword(":info") == "info"

    def test_interned(self):
        assert _cast_keyword("".join(["de", "bug"])) is _cast_keyword("debug")

    @pytest.mark.parametrize("value", ["", ":", "two words"])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            _cast_keyword(value)

    def test_marker_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            Keyword()
