"""Tests for amount and rate parsing."""

import pytest
from decimal import Decimal
from ifrs16.utils.amount_parser import parse_amount, parse_rate


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1000", Decimal("1000")),
        ("1,234.56", Decimal("1234.56")),
        ("$1,500.00", Decimal("1500.00")),
        ("€ 99.90", Decimal("99.90")),
        ("(250.00)", Decimal("-250.00")),
        ("-12.5", Decimal("-12.5")),
    ],
)
def test_parse_amount(text, expected):
    """Test parsing amounts in common formats."""
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4", "NaN"])
def test_parse_amount_invalid(text):
    """Test rejecting malformed amounts."""
    with pytest.raises(ValueError):
        parse_amount(text)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("6%", Decimal("0.06")),
        ("6 %", Decimal("0.06")),
        ("5.25%", Decimal("0.0525")),
        ("0.06", Decimal("0.06")),
        ("0", Decimal("0")),
    ],
)
def test_parse_rate(text, expected):
    """Test that percentages and fractions give the same rate."""
    assert parse_rate(text) == expected


@pytest.mark.parametrize("text", ["", "%", "six percent", "Infinity%"])
def test_parse_rate_invalid(text):
    """Test rejecting malformed rates."""
    with pytest.raises(ValueError):
        parse_rate(text)
