from __future__ import annotations

from decimal import Decimal

from .income_record import round_cents

TAX_FREE_ALLOWANCE = Decimal("150000.00")
STANDARD_TAX_RATE = Decimal("0.12")
HIGH_INCOME_THRESHOLD = Decimal("5000000.00")
HIGH_INCOME_RATE = Decimal("0.18")

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def taxable_income_for(total_income: Decimal) -> Decimal:
    return max(ZERO, total_income - TAX_FREE_ALLOWANCE)


def progressive_portions(taxable_income: Decimal) -> tuple[Decimal, Decimal]:
    """Split tax into the standard-rate portion and the high-rate portion on the excess."""
    if taxable_income <= 0:
        return ZERO, ZERO
    if taxable_income <= HIGH_INCOME_THRESHOLD:
        return taxable_income * STANDARD_TAX_RATE, ZERO
    standard = HIGH_INCOME_THRESHOLD * STANDARD_TAX_RATE
    high = (taxable_income - HIGH_INCOME_THRESHOLD) * HIGH_INCOME_RATE
    return standard, high


def progressive_tax(taxable_income: Decimal) -> Decimal:
    standard, high = progressive_portions(taxable_income)
    return round_cents(standard + high)


def marginal_rate(total_income: Decimal) -> Decimal:
    """Marginal rate in percent for the last unit of ``total_income``."""
    taxable = taxable_income_for(total_income)
    if taxable <= 0:
        return ZERO
    if taxable <= HIGH_INCOME_THRESHOLD:
        return STANDARD_TAX_RATE * HUNDRED
    return HIGH_INCOME_RATE * HUNDRED


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


__all__ = [
    "HIGH_INCOME_RATE",
    "HIGH_INCOME_THRESHOLD",
    "STANDARD_TAX_RATE",
    "TAX_FREE_ALLOWANCE",
    "marginal_rate",
    "percentage",
    "progressive_portions",
    "progressive_tax",
    "taxable_income_for",
]
