"""Display helpers: Brazilian currency and date formats."""

import html
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union


CENTS = Decimal("0.01")


def format_amount(value: Union[Decimal, float, int]) -> str:
    """1234.5 -> '1.234,50' (two decimals, dot thousands, comma decimals)."""
    amount = Decimal(str(value))
    with localcontext() as ctx:
        # Quantizing needs one digit per integer place plus the two cents.
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        quantized = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        text = f"{quantized:,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: Union[Decimal, float, int], symbol: str = "R$") -> str:
    """1234.5 -> 'R$ 1.234,50'; the sign sits after the symbol."""
    return f"{symbol} {format_amount(value)}"


def format_signed(value: Union[Decimal, float, int], income: bool, symbol: str = "R$") -> str:
    """Statement-style amount: '+ R$ 500,00' or '- R$ 200,00'."""
    return f"{'+' if income else '-'} {format_currency(value, symbol)}"


def format_date(value: date) -> str:
    """date(2024, 1, 5) -> '05/01/2024'."""
    return value.strftime("%d/%m/%Y")


def advice_box_html(text: str) -> str:
    """Advice card markup; the model's text is escaped, never trusted as HTML."""
    return f'<div class="advice-box">{html.escape(text)}</div>'
