"""Tests for Brazilian display formats."""

from datetime import date
from decimal import Decimal

import pytest

from pension_ledger.formatting import (
    advice_box_html,
    format_amount,
    format_currency,
    format_date,
    format_signed,
)


@pytest.mark.parametrize("value, expected", [
    (Decimal("1234.5"), "1.234,50"),
    (Decimal("0"), "0,00"),
    (Decimal("1000000"), "1.000.000,00"),
    (Decimal("0.005"), "0,01"),
    (12.3, "12,30"),
])
def test_format_amount(value, expected):
    assert format_amount(value) == expected


def test_format_currency():
    assert format_currency(Decimal("1412")) == "R$ 1.412,00"
    assert format_currency(Decimal("-80.5")) == "R$ -80,50"


def test_format_signed():
    """Statement amounts carry the sign of their kind."""
    assert format_signed(Decimal("500"), income=True) == "+ R$ 500,00"
    assert format_signed(Decimal("200"), income=False) == "- R$ 200,00"


def test_format_date():
    assert format_date(date(2024, 1, 5)) == "05/01/2024"


@pytest.mark.parametrize("value, expected", [
    (Decimal("1e26"), "100.000.000.000.000.000.000.000.000,00"),
    (Decimal("123456789012345678901234567.895"), "123.456.789.012.345.678.901.234.567,90"),
    (Decimal("-1e30"), "-1.000.000.000.000.000.000.000.000.000.000,00"),
])
def test_format_amount_beyond_default_precision(value, expected):
    """Amounts wider than 28 digits still format instead of raising."""
    assert format_amount(value) == expected


def test_format_amount_long_fraction():
    assert format_amount(Decimal("0.004999999999999999999999999999")) == "0,00"


def test_advice_box_html_escapes_model_text():
    """Model output is shown as text, never as markup."""
    markup = advice_box_html('<img src=x onerror="alert(1)"> & mais')

    assert "<img" not in markup
    assert "&lt;img" in markup
    assert "&amp; mais" in markup
    assert markup.startswith('<div class="advice-box">')
