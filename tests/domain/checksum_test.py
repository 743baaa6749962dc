from __future__ import annotations

from decimal import Decimal

import pytest

from domain.checksum import (
    calculate_checksum,
    calculate_checksum_from_string,
    canonical_transaction_line,
    checksum_breakdown,
    transaction_line_for,
)
from tests.constants import (
    CONSULTING_CHECKSUM,
    CONSULTING_LINE,
    REFERENCE_CHECKSUM,
    REFERENCE_LINE,
    RENTAL_CHECKSUM,
    RENTAL_LINE,
)
from tests.helpers.records import make_record


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        (REFERENCE_LINE, REFERENCE_CHECKSUM),
        (CONSULTING_LINE, CONSULTING_CHECKSUM),
        (RENTAL_LINE, RENTAL_CHECKSUM),
        ("", 0),
        ("lowercase only, no digits", 0),
        ("ABC", 3),
        ("1.2.3", 5),
    ],
)
def test_calculate_checksum_from_string(line: str, expected: int) -> None:
    assert calculate_checksum_from_string(line) == expected


def test_breakdown_separates_letters_from_digits() -> None:
    breakdown = checksum_breakdown(REFERENCE_LINE)

    assert breakdown.uppercase_count == 4
    assert breakdown.digit_and_dot_count == 26
    assert breakdown.total == REFERENCE_CHECKSUM


def test_only_ascii_characters_are_counted() -> None:
    # Accented capitals and non-latin digits are ignored.
    assert calculate_checksum_from_string("ÉÖ") == 0
    assert calculate_checksum_from_string("٣٤") == 0
    assert calculate_checksum_from_string("É1A") == 2


def test_none_line_is_rejected() -> None:
    with pytest.raises(ValueError):
        calculate_checksum_from_string(None)  # type: ignore[arg-type]


def test_none_record_is_rejected() -> None:
    with pytest.raises(ValueError):
        calculate_checksum(None)  # type: ignore[arg-type]


def test_canonical_line_formats_amounts_to_two_places() -> None:
    line = canonical_transaction_line("IN001", "Freelance Work", "25/07/2025", Decimal("10000"), Decimal("1000.5"))

    assert line == "IN001,Freelance Work,25/07/2025,10000.00,1000.50"


def test_record_checksum_matches_reference_line() -> None:
    record = make_record(code="IN001", income="10000", wht="1000")

    assert transaction_line_for(record) == REFERENCE_LINE
    assert calculate_checksum(record) == REFERENCE_CHECKSUM


def test_record_checksum_ignores_stored_checksums() -> None:
    record = make_record(code="SA002", description="Consulting", income_date="26/07/2025", income="15000", wht="1500")
    record.original_checksum = 999
    record.calculated_checksum = 1

    assert calculate_checksum(record) == CONSULTING_CHECKSUM
