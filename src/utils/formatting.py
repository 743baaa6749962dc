from __future__ import annotations

from decimal import Decimal

from domain.income_record import CURRENCY_LABEL


def format_currency(value: Decimal) -> str:
    cents = value.quantize(Decimal("0.01"))
    return f"{cents:,.2f}"


def format_money(value: Decimal) -> str:
    return f"{CURRENCY_LABEL} {format_currency(value)}"


def format_percentage(value: Decimal) -> str:
    return f"{value.quantize(Decimal('0.01')):.2f}%"
