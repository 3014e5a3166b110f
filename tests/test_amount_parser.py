"""Tests for Brazilian-convention amount parsing."""

import pytest
from decimal import Decimal

from rentledger.utils.amount_parser import parse_amount, to_decimal


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.250,00", Decimal("1250.00")),
        ("R$ 53.202,63", Decimal("53202.63")),
        ("1.234.567,89", Decimal("1234567.89")),
        ("250,5", Decimal("250.50")),
        ("350,00", Decimal("350.00")),
        ("-1.250,00", Decimal("-1250.00")),
        ("(10,00)", Decimal("-10.00")),
        ("1250.00", Decimal("1250.00")),
        ("1,234.56", Decimal("1234.56")),
        ("1.250", Decimal("1250.00")),
        ("R$1 250,00", Decimal("1250.00")),
        ("  42  ", Decimal("42.00")),
    ],
)
def test_parse_amount(text, expected):
    """Test parsing amounts in the formats sources actually use."""
    assert parse_amount(text) == expected


def test_thousands_separator_is_not_a_decimal_point():
    """Test that '1.250,00' is one thousand two hundred fifty, not 1.25."""
    assert parse_amount("1.250,00") != Decimal("1.25")
    assert parse_amount("1.250,00") == Decimal("1250")


def test_parse_amount_rounds_to_cents():
    """Test that amounts are quantized to two decimal places."""
    assert parse_amount("10,005").as_tuple().exponent == -2


@pytest.mark.parametrize("text", ["", "   ", "abc", "1,2,3", "12a", "--5"])
def test_parse_amount_invalid(text):
    """Test that unparseable amounts raise ValueError."""
    with pytest.raises(ValueError):
        parse_amount(text)


def test_to_decimal_from_cell_values():
    """Test converting spreadsheet cell values."""
    assert to_decimal(1500) == Decimal("1500.00")
    assert to_decimal(99.9) == Decimal("99.90")
    assert to_decimal(Decimal("12.5")) == Decimal("12.50")
    assert to_decimal("1.000,00") == Decimal("1000.00")


def test_to_decimal_rejects_booleans():
    """Test that boolean cells are not treated as 0/1 amounts."""
    with pytest.raises(ValueError):
        to_decimal(True)
