from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .income_record import IncomeRecord

_DIGITS_AND_DOT = frozenset("0123456789.")


@dataclass(frozen=True)
class ChecksumBreakdown:
    uppercase_count: int
    digit_and_dot_count: int

    @property
    def total(self) -> int:
        return self.uppercase_count + self.digit_and_dot_count


def canonical_transaction_line(
    code: str,
    description: str,
    income_date: str,
    income_amount: Decimal | float,
    wht_amount: Decimal | float,
) -> str:
    """Render the checksum input; amounts are always re-formatted to 2dp."""
    return f"{code},{description},{income_date},{income_amount:.2f},{wht_amount:.2f}"


def transaction_line_for(record: IncomeRecord) -> str:
    return canonical_transaction_line(
        record.code,
        record.description,
        record.income_date,
        record.income_amount,
        record.wht_amount,
    )


def checksum_breakdown(line: str) -> ChecksumBreakdown:
    if line is None:
        msg = "Input string cannot be null"
        raise ValueError(msg)
    uppercase = sum(1 for char in line if "A" <= char <= "Z")
    digits_and_dots = sum(1 for char in line if char in _DIGITS_AND_DOT)
    return ChecksumBreakdown(uppercase_count=uppercase, digit_and_dot_count=digits_and_dots)


def calculate_checksum_from_string(line: str) -> int:
    """Count uppercase ASCII letters plus ASCII digits and decimal points."""
    return checksum_breakdown(line).total


def calculate_checksum(record: IncomeRecord) -> int:
    if record is None:
        msg = "Record cannot be null"
        raise ValueError(msg)
    return calculate_checksum_from_string(transaction_line_for(record))


__all__ = [
    "ChecksumBreakdown",
    "calculate_checksum",
    "calculate_checksum_from_string",
    "canonical_transaction_line",
    "checksum_breakdown",
    "transaction_line_for",
]
