from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from domain.income_record import (
    IncomeRecord,
    RecordParseError,
    by_date,
    is_valid_code,
    is_valid_date,
    is_valid_description,
    is_valid_income_amount,
    is_valid_wht_amount,
    round_cents,
)
from tests.helpers.records import make_record


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("IN001", True),
        ("in001", True),
        ("  sa123 ", True),
        ("IN01", False),
        ("INN001", False),
        ("1N001", False),
        ("IN00A", False),
        ("", False),
        ("   ", False),
        (None, False),
    ],
)
def test_is_valid_code(code: str | None, expected: bool) -> None:
    assert is_valid_code(code) is expected


@pytest.mark.parametrize(
    ("date_str", "expected"),
    [
        ("25/07/2025", True),
        ("29/02/2024", True),
        ("29/02/2023", False),
        ("31/04/2025", False),
        ("00/01/2025", False),
        ("1/1/2025", False),
        ("2025-07-25", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_date_requires_real_calendar_dates(date_str: str | None, expected: bool) -> None:
    assert is_valid_date(date_str) is expected


def test_is_valid_description_bounds() -> None:
    assert is_valid_description("A")
    assert is_valid_description("x" * 20)
    assert is_valid_description("  padded description  ")
    assert not is_valid_description("x" * 21)
    assert not is_valid_description("   ")
    assert not is_valid_description(None)


@pytest.mark.parametrize("amount", [None, "", "abc", "NaN", "Infinity", float("nan")])
def test_amount_predicates_reject_non_numbers_without_raising(amount: object) -> None:
    assert not is_valid_income_amount(amount)  # type: ignore[arg-type]
    assert not is_valid_wht_amount(amount)  # type: ignore[arg-type]


def test_amount_predicates_bounds() -> None:
    assert is_valid_income_amount(Decimal("0.01"))
    assert not is_valid_income_amount(Decimal("0"))
    assert not is_valid_income_amount(-5)
    assert is_valid_wht_amount(0)
    assert is_valid_wht_amount("12.5")
    assert not is_valid_wht_amount(Decimal("-0.01"))


def test_construction_normalizes_fields() -> None:
    record = IncomeRecord(
        code=" in001 ",
        description="  Freelance Work  ",
        income_date=" 25/07/2025 ",
        income_amount="10000.005",
        wht_amount=1000.004,
    )

    assert record.code == "IN001"
    assert record.description == "Freelance Work"
    assert record.income_date == "25/07/2025"
    assert record.income_amount == Decimal("10000.01")
    assert record.wht_amount == Decimal("1000.00")
    assert record.original_checksum == 0
    assert record.calculated_checksum == 0
    assert record.valid is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"code": "BAD"},
        {"description": ""},
        {"description": "x" * 21},
        {"income_date": "31/02/2024"},
        {"income_amount": "0"},
        {"wht_amount": "-1"},
    ],
)
def test_construction_rejects_invalid_fields(overrides: dict[str, str]) -> None:
    fields = {
        "code": "IN001",
        "description": "Freelance Work",
        "income_date": "25/07/2025",
        "income_amount": "10000.00",
        "wht_amount": "1000.00",
    }
    fields.update(overrides)

    with pytest.raises(ValidationError):
        IncomeRecord(**fields)


def test_business_fields_cannot_be_reassigned() -> None:
    record = make_record()

    with pytest.raises(ValidationError):
        record.description = "Changed"  # type: ignore[misc]
    with pytest.raises(ValidationError):
        record.income_amount = Decimal("5")  # type: ignore[misc]

    assert record.description == "Freelance Work"


def test_engine_fields_are_assignable_and_type_checked() -> None:
    record = make_record(original_checksum=12)

    record.calculated_checksum = 30
    record.valid = True

    assert record.calculated_checksum == 30
    assert record.valid is True
    with pytest.raises(ValidationError):
        record.original_checksum = "not a number"  # type: ignore[assignment]


def test_updated_returns_new_record_with_validity_reset() -> None:
    record = make_record(code="IN001", valid=True)
    record.calculated_checksum = 30

    changed = record.updated(
        description="Contract Work",
        income_date="01/08/2025",
        income_amount="2500.555",
        wht_amount="0",
    )

    assert changed is not record
    assert changed.code == "IN001"
    assert changed.description == "Contract Work"
    assert changed.income_amount == Decimal("2500.56")
    assert changed.valid is False
    assert changed.original_checksum == record.original_checksum
    assert changed.calculated_checksum == 30

    assert record.valid is True
    assert record.description == "Freelance Work"


def test_updated_rejects_invalid_values() -> None:
    record = make_record()

    with pytest.raises(ValidationError):
        record.updated(description="Fine", income_date="99/99/2025", income_amount="1", wht_amount="0")


def test_create_reports_errors_instead_of_raising() -> None:
    failed = IncomeRecord.create("X1", "", "25/07/2025", "100", "-1")

    assert not failed.ok
    assert failed.record is None
    assert len(failed.errors) == 3
    assert any(error.startswith("code:") for error in failed.errors)

    built = IncomeRecord.create("IN001", "Freelance Work", "25/07/2025", "100", "0", original_checksum=25)
    assert built.ok
    assert built.record is not None
    assert built.record.original_checksum == 25


def test_copy_record_is_independent() -> None:
    record = make_record(valid=True)
    record.calculated_checksum = 30

    duplicate = record.copy_record()
    duplicate.valid = False

    assert record.valid is True
    assert duplicate.calculated_checksum == 30
    assert duplicate.same_code_as(record)


def test_net_income_and_formatting() -> None:
    record = make_record(income="1500.5", wht="2000")

    assert record.net_income == Decimal("0")
    assert record.formatted_income == "Rs 1500.50"
    assert record.formatted_wht == "Rs 2000.00"
    assert record.formatted_net == "Rs 0.00"

    regular = make_record(income="1500.5", wht="500")
    assert regular.formatted_net == "Rs 1000.50"
    assert regular.has_valid_format()


def test_to_csv_format_uses_calculated_checksum() -> None:
    record = make_record(code="IN001", income="10000", wht="1000", original_checksum=7)
    record.calculated_checksum = 30

    assert record.to_csv_format() == "IN001,Freelance Work,25/07/2025,10000.00,1000.00,30"


def test_from_csv_format_reads_optional_checksum() -> None:
    with_checksum = IncomeRecord.from_csv_format("in001, Freelance Work ,25/07/2025,10000,1000, 30 ")
    without_checksum = IncomeRecord.from_csv_format("IN002,Consulting,26/07/2025,15000.00,1500.00")
    blank_checksum = IncomeRecord.from_csv_format("IN003,Consulting,26/07/2025,15000.00,1500.00,  ")

    assert with_checksum.code == "IN001"
    assert with_checksum.description == "Freelance Work"
    assert with_checksum.income_amount == Decimal("10000.00")
    assert with_checksum.original_checksum == 30
    assert with_checksum.calculated_checksum == 0
    assert without_checksum.original_checksum == 0
    assert blank_checksum.original_checksum == 0


@pytest.mark.parametrize(
    "line",
    [
        None,
        "",
        "   ",
        "IN001,Freelance Work,25/07/2025,10000.00",
        "IN001,Freelance Work,25/07/2025,ten,1000.00",
        "IN001,Freelance Work,25/07/2025,10000.00,NaN",
        "IN001,Freelance Work,25/07/2025,10000.00,1000.00,thirty",
    ],
)
def test_from_csv_format_parse_errors(line: str | None) -> None:
    with pytest.raises(RecordParseError):
        IncomeRecord.from_csv_format(line)


def test_from_csv_format_field_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        IncomeRecord.from_csv_format("I001,Freelance Work,25/07/2025,10000.00,1000.00,30")


def test_csv_round_trip_carries_calculated_checksum_as_original() -> None:
    record = make_record(code="RE003", description="Rental Income", income="250000", wht="20000", original_checksum=1)
    record.calculated_checksum = 32

    restored = IncomeRecord.from_csv_format(record.to_csv_format())

    assert restored.code == record.code
    assert restored.description == record.description
    assert restored.income_date == record.income_date
    assert restored.income_amount == record.income_amount
    assert restored.wht_amount == record.wht_amount
    assert restored.original_checksum == 32
    assert restored.valid is False


def test_data_format_has_no_checksum() -> None:
    record = make_record(code="SA002", description="Consulting", income="15000", wht="1500")

    line = record.to_data_format()
    restored = IncomeRecord.from_data_format(line)

    assert line == "SA002|Consulting|25/07/2025|15000.00|1500.00"
    assert restored.code == "SA002"
    assert restored.wht_amount == Decimal("1500.00")
    assert restored.original_checksum == 0


@pytest.mark.parametrize("line", [None, "", "SA002|Consulting|25/07/2025|15000.00", "A|B|C|D|E|F"])
def test_from_data_format_rejects_wrong_shape(line: str | None) -> None:
    with pytest.raises(RecordParseError):
        IncomeRecord.from_data_format(line)


def test_sort_by_date_uses_calendar_order() -> None:
    later = make_record(income_date="01/02/2025")
    earlier = make_record(income_date="15/01/2025")

    assert sorted([later, earlier], key=by_date) == [earlier, later]


def test_detailed_string_mentions_status() -> None:
    record = make_record(code="IN001", valid=True)

    details = record.to_detailed_string()

    assert details.startswith("Income Record Details:")
    assert "Code: IN001" in details
    assert "Income Amount: Rs 10000.00" in details
    assert "Status: Valid" in details


@pytest.mark.parametrize("amount", ["1e30", Decimal("1e30"), 1e30])
def test_amounts_too_large_for_cents_are_rejected(amount: object) -> None:
    assert not is_valid_income_amount(amount)  # type: ignore[arg-type]
    assert not is_valid_wht_amount(amount)  # type: ignore[arg-type]

    with pytest.raises(ValidationError):
        IncomeRecord(
            code="IN001",
            description="Freelance Work",
            income_date="25/07/2025",
            income_amount=amount,
            wht_amount="0",
        )


def test_create_reports_oversized_amount() -> None:
    result = IncomeRecord.create("IN001", "X", "25/07/2025", "1e30", "0")

    assert not result.ok
    assert result.errors == ["income_amount: Value error, Income amount must be a number that fits in cents"]


def test_from_csv_format_oversized_amount_is_value_error() -> None:
    with pytest.raises(ValueError):
        IncomeRecord.from_csv_format("IN001,Freelance Work,25/07/2025,1e30,0.00,30")


def test_round_cents_overflow_is_value_error() -> None:
    with pytest.raises(ValueError, match="too large"):
        round_cents(Decimal("1e30"))
    assert round_cents(Decimal("2.345")) == Decimal("2.35")
