from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Iterable

from domain.checksum import calculate_checksum, calculate_checksum_from_string, checksum_breakdown, transaction_line_for
from domain.income_record import (
    IncomeRecord,
    is_valid_code,
    is_valid_date,
    is_valid_description,
    is_valid_income_amount,
    is_valid_wht_amount,
)

logger = logging.getLogger(__name__)

VERY_HIGH_INCOME_THRESHOLD = Decimal("10000000")
MAX_RECORD_AGE_YEARS = 10


class BusinessRuleWarning(StrEnum):
    WHT_EXCEEDS_INCOME = "WHT amount exceeds income amount"
    VERY_HIGH_INCOME = "Extremely high income amount detected"
    OLD_INCOME_DATE = "Income date is more than 10 years old"


@dataclass(frozen=True)
class ValidationStatistics:
    total_validations: int
    successful_validations: int
    failed_validations: int

    @property
    def success_rate(self) -> float:
        if self.total_validations == 0:
            return 0.0
        return self.successful_validations / self.total_validations * 100.0

    def __str__(self) -> str:
        return (
            f"ValidationStats{{total={self.total_validations}, success={self.successful_validations}, "
            f"failed={self.failed_validations}, rate={self.success_rate:.1f}%}}"
        )


@dataclass(frozen=True)
class ValidationSummary:
    valid_records: tuple[IncomeRecord, ...] = ()
    invalid_records: tuple[IncomeRecord, ...] = ()

    @property
    def total_count(self) -> int:
        return len(self.valid_records) + len(self.invalid_records)

    @property
    def valid_count(self) -> int:
        return len(self.valid_records)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_records)

    @property
    def success_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.valid_count / self.total_count * 100.0


@dataclass(frozen=True)
class ValidationReport:
    record: IncomeRecord | None
    transaction_line: str | None = None
    original_checksum: int = 0
    calculated_checksum: int = 0
    uppercase_count: int = 0
    digit_and_dot_count: int = 0
    valid: bool = False
    errors: tuple[str, ...] = ()
    warnings: tuple[BusinessRuleWarning, ...] = ()


@dataclass(frozen=True)
class ChecksumTestCase:
    name: str
    line: str
    expected: int | None
    calculated: int

    @property
    def passed(self) -> bool:
        return self.expected is None or self.expected == self.calculated


@dataclass(frozen=True)
class ChecksumSelfTest:
    cases: tuple[ChecksumTestCase, ...] = field(default_factory=tuple)

    @property
    def all_passed(self) -> bool:
        return all(case.passed for case in self.cases)


_SELF_TEST_CASES: tuple[tuple[str, str, int | None], ...] = (
    ("Basic Test", "IN001,Freelance Work,25/07/2025,10000.00,1000.00", 30),
    ("Variation Test", "SA002,Consulting,26/07/2025,15000.00,1500.00", None),
    ("Edge Case", "AB123,Test,01/01/2024,1.00,0.00", None),
)


def format_errors(record: IncomeRecord) -> list[str]:
    """Re-check every field predicate against the stored values."""
    errors: list[str] = []
    if not is_valid_code(record.code):
        errors.append("Invalid income code format")
    if not is_valid_description(record.description):
        errors.append("Invalid description")
    if not is_valid_date(record.income_date):
        errors.append("Invalid date format")
    if not is_valid_income_amount(record.income_amount):
        errors.append("Invalid income amount")
    if not is_valid_wht_amount(record.wht_amount):
        errors.append("Invalid WHT amount")
    return errors


def check_business_rules(record: IncomeRecord, *, as_of: date | None = None) -> list[BusinessRuleWarning]:
    """Advisory checks; the result never affects record validity."""
    today = as_of or date.today()
    warnings: list[BusinessRuleWarning] = []

    if record.wht_amount > record.income_amount:
        warnings.append(BusinessRuleWarning.WHT_EXCEEDS_INCOME)

    if record.income_amount > VERY_HIGH_INCOME_THRESHOLD:
        warnings.append(BusinessRuleWarning.VERY_HIGH_INCOME)

    year_text = record.income_date[6:10]
    if year_text.isdigit() and int(year_text) < today.year - MAX_RECORD_AGE_YEARS:
        warnings.append(BusinessRuleWarning.OLD_INCOME_DATE)

    return warnings


class ValidationEngine:
    """Validate income records against format rules and their source checksum.

    The engine writes ``calculated_checksum`` and ``valid`` on the records it
    is given. Its lifetime counters are safe to update from several threads
    as long as each thread works on distinct records.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._validation_count = 0
        self._success_count = 0
        self._failure_count = 0

    def validate_record(self, record: IncomeRecord | None, *, as_of: date | None = None) -> bool:
        if record is None:
            logger.error("Cannot validate null record")
            return False

        self._count(validation=1)

        errors = format_errors(record)
        if errors:
            logger.warning("Format validation failed for %s: %s", record.code, ", ".join(errors))
            record.valid = False
            self._count(failure=1)
            return False

        warnings = check_business_rules(record, as_of=as_of)
        if warnings:
            logger.warning("Business rule warnings for %s: %s", record.code, ", ".join(warnings))

        checksum = calculate_checksum(record)
        record.calculated_checksum = checksum
        record.valid = checksum == record.original_checksum

        if record.valid:
            self._count(success=1)
        else:
            logger.info(
                "Checksum mismatch for %s: expected %d, calculated %d",
                record.code,
                record.original_checksum,
                checksum,
            )
            self._count(failure=1)
        return record.valid

    def validate_records(self, records: Iterable[IncomeRecord] | None) -> ValidationSummary:
        if records is None:
            return ValidationSummary()
        batch = list(records)
        if not batch:
            return ValidationSummary()

        logger.info("Starting batch validation of %d records", len(batch))
        valid: list[IncomeRecord] = []
        invalid: list[IncomeRecord] = []
        for record in batch:
            if self.validate_record(record):
                valid.append(record)
            else:
                invalid.append(record)

        summary = ValidationSummary(valid_records=tuple(valid), invalid_records=tuple(invalid))
        logger.info(
            "Batch validation completed: total=%d valid=%d invalid=%d success rate=%.1f%%",
            summary.total_count,
            summary.valid_count,
            summary.invalid_count,
            summary.success_rate,
        )
        return summary

    def recalculate_checksums(self, records: Iterable[IncomeRecord] | None) -> int:
        if records is None:
            return 0
        processed = 0
        for record in records:
            record.calculated_checksum = calculate_checksum(record)
            processed += 1
        logger.info("Recalculated checksums for %d records", processed)
        return processed

    def repair_invalid_records(self, records: Iterable[IncomeRecord] | None) -> int:
        """Trust the locally computed checksum for every record marked invalid.

        Both checksum fields are overwritten and the record is marked valid,
        so a repaired record no longer carries the source's integrity value.
        """
        if records is None:
            return 0
        repaired = 0
        for record in records:
            if record.valid:
                continue
            checksum = calculate_checksum(record)
            record.original_checksum = checksum
            record.calculated_checksum = checksum
            record.valid = True
            repaired += 1
        logger.info("Repaired %d invalid records", repaired)
        return repaired

    def generate_detailed_report(self, record: IncomeRecord | None, *, as_of: date | None = None) -> ValidationReport:
        if record is None:
            return ValidationReport(record=None, errors=("Record is null",))

        errors = format_errors(record)
        if errors:
            errors.insert(0, "Record format validation failed")

        warnings: list[BusinessRuleWarning] = []
        try:
            warnings = check_business_rules(record, as_of=as_of)
            line = transaction_line_for(record)
        except (TypeError, ValueError) as err:
            errors.append(f"Error during checksum analysis: {err}")
            return ValidationReport(
                record=record,
                original_checksum=record.original_checksum,
                errors=tuple(errors),
                warnings=tuple(warnings),
            )

        breakdown = checksum_breakdown(line)
        checksum_matches = breakdown.total == record.original_checksum
        if not checksum_matches:
            errors.append(f"Checksum mismatch: expected {record.original_checksum}, calculated {breakdown.total}")

        return ValidationReport(
            record=record,
            transaction_line=line,
            original_checksum=record.original_checksum,
            calculated_checksum=breakdown.total,
            uppercase_count=breakdown.uppercase_count,
            digit_and_dot_count=breakdown.digit_and_dot_count,
            valid=checksum_matches,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def run_checksum_self_test(self) -> ChecksumSelfTest:
        cases = tuple(
            ChecksumTestCase(
                name=name,
                line=line,
                expected=expected,
                calculated=calculate_checksum_from_string(line),
            )
            for name, line, expected in _SELF_TEST_CASES
        )
        return ChecksumSelfTest(cases=cases)

    def statistics(self) -> ValidationStatistics:
        with self._lock:
            return ValidationStatistics(
                total_validations=self._validation_count,
                successful_validations=self._success_count,
                failed_validations=self._failure_count,
            )

    def reset_statistics(self) -> None:
        with self._lock:
            self._validation_count = 0
            self._success_count = 0
            self._failure_count = 0

    def _count(self, *, validation: int = 0, success: int = 0, failure: int = 0) -> None:
        with self._lock:
            self._validation_count += validation
            self._success_count += success
            self._failure_count += failure


__all__ = [
    "BusinessRuleWarning",
    "ChecksumSelfTest",
    "ChecksumTestCase",
    "ValidationEngine",
    "ValidationReport",
    "ValidationStatistics",
    "ValidationSummary",
    "check_business_rules",
    "format_errors",
]
