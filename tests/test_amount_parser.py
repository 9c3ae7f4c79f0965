"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from bizledger.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("12", Decimal("12.00")),
        ("1234.5", Decimal("1234.50")),
        ("$1,234.56", Decimal("1234.56")),
        ("1 234.50 USD", Decimal("1234.50")),
        ("€9.99", Decimal("9.99")),
        ("0.005", Decimal("0.01")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


def test_parse_negative_amounts():
    """Test accounting-style and signed negatives."""
    assert parse_amount("(12.00)", allow_negative=True) == Decimal("-12.00")
    assert parse_amount("-3.5", allow_negative=True) == Decimal("-3.50")

    with pytest.raises(ValueError, match="must not be negative"):
        parse_amount("-3.5")


@pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3", "NaN", "Infinity"])
def test_parse_invalid_amount(text):
    with pytest.raises(ValueError):
        parse_amount(text)
