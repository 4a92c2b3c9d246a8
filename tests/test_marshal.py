"""Tests for cell value conversion."""

import pytest

from virtual_tables.marshal import (
    CoercionWarning,
    Diagnostics,
    parse_double,
    parse_integer,
    to_sql_value,
)
from virtual_tables.types import Affinity


@pytest.fixture
def diagnostics():
    return Diagnostics(table="t")


def convert(value, affinity, diagnostics, **kwargs):
    return to_sql_value(value, affinity, column="c", diagnostics=diagnostics, **kwargs)


class TestToSqlValue:
    """Tests for to_sql_value."""

    def test_text_passthrough(self, diagnostics):
        """Test that TEXT values are unchanged."""
        assert convert("bad", Affinity.TEXT, diagnostics) == "bad"
        assert convert("", Affinity.TEXT, diagnostics) == ""
        assert len(diagnostics) == 0

    def test_integer(self, diagnostics):
        """Test 32-bit parsing."""
        assert convert("42", Affinity.INTEGER, diagnostics) == 42
        assert convert("-17", Affinity.INTEGER, diagnostics) == -17
        assert convert("+5", Affinity.INTEGER, diagnostics) == 5
        assert len(diagnostics) == 0

    def test_bigint(self, diagnostics):
        """Test 64-bit parsing."""
        assert convert("9223372036854775807", Affinity.BIGINT, diagnostics) == 2**63 - 1
        assert convert("100", Affinity.BIGINT, diagnostics) == 100

    def test_malformed_integer_gives_sentinel(self, diagnostics):
        """Test that `abc` yields -1 and a warning."""
        assert convert("abc", Affinity.INTEGER, diagnostics) == -1
        assert diagnostics.warnings == [CoercionWarning("c", "abc", Affinity.INTEGER)]

    def test_integer_overflow_gives_sentinel(self, diagnostics):
        """Test that values outside 32 bits do not parse as INTEGER."""
        assert convert("2147483648", Affinity.INTEGER, diagnostics) == -1
        assert convert("2147483648", Affinity.BIGINT, diagnostics) == 2147483648
        assert len(diagnostics) == 1

    def test_empty_and_whitespace(self, diagnostics):
        """Test that empty or padded text is malformed."""
        assert convert("", Affinity.BIGINT, diagnostics) == -1
        assert convert(" 1", Affinity.BIGINT, diagnostics) == -1
        assert convert("1.5", Affinity.BIGINT, diagnostics) == -1
        assert len(diagnostics) == 3

    def test_double(self, diagnostics):
        """Test floating point parsing."""
        assert convert("1.5", Affinity.DOUBLE, diagnostics) == 1.5
        assert convert("x", Affinity.DOUBLE, diagnostics) == -1.0
        assert len(diagnostics) == 1

    def test_strict_double(self, diagnostics):
        """Test that DOUBLE text follows the same strictness as integers."""
        for text in (" 1.5 ", "1_0", "nan", "inf", "-inf", "1e999", "", "."):
            assert convert(text, Affinity.DOUBLE, diagnostics) == -1.0
        assert len(diagnostics) == 8

    def test_overlong_digits_give_sentinel(self, diagnostics):
        """Test that digit strings too long to convert yield the sentinel."""
        assert convert("9" * 5000, Affinity.BIGINT, diagnostics) == -1
        assert len(diagnostics) == 1

    def test_custom_sentinel(self, diagnostics):
        """Test a configured sentinel."""
        assert convert("abc", Affinity.BIGINT, diagnostics, sentinel=0) == 0


class TestDiagnostics:
    """Tests for the diagnostics collector."""

    def test_record_and_clear(self):
        """Test collecting and clearing warnings."""
        diagnostics = Diagnostics(table="processes")
        warning = CoercionWarning("pid", "abc", Affinity.BIGINT)
        diagnostics.record(warning)
        assert diagnostics.warnings == [warning]
        diagnostics.clear()
        assert len(diagnostics) == 0

    def test_warning_message(self):
        """Test the warning text."""
        warning = CoercionWarning("pid", "abc", Affinity.BIGINT)
        assert str(warning) == "Error casting pid ('abc') to BIGINT"


class TestParseInteger:
    """Tests for parse_integer."""

    def test_bounds(self):
        """Test range edges."""
        assert parse_integer("-2147483648", Affinity.INTEGER) == -(2**31)
        assert parse_integer("-2147483649", Affinity.INTEGER) is None
        assert parse_integer("-9223372036854775809", Affinity.BIGINT) is None

    def test_overlong_digits(self):
        """Test that very long digit strings are rejected instead of raising."""
        assert parse_integer("9" * 5000, Affinity.BIGINT) is None
        assert parse_integer("-" + "1" * 4301, Affinity.INTEGER) is None


class TestParseDouble:
    """Tests for parse_double."""

    def test_literals(self):
        """Test accepted decimal and exponent forms."""
        assert parse_double("1.5") == 1.5
        assert parse_double("-.5") == -0.5
        assert parse_double("+3.") == 3.0
        assert parse_double("2e3") == 2000.0
        assert parse_double("1E-2") == 0.01

    def test_rejected(self):
        """Test forms float() accepts but cell text must not use."""
        assert parse_double(" 1.5") is None
        assert parse_double("1_000") is None
        assert parse_double("NaN") is None
        assert parse_double("Infinity") is None
        assert parse_double("1e400") is None
