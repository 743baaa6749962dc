from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

IncomeCode = NewType("IncomeCode", str)

CODE_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{3}$")
DATE_PATTERN = re.compile(r"^[0-9]{2}/[0-9]{2}/[0-9]{4}$")
DATE_FORMAT = "%d/%m/%Y"
MAX_DESCRIPTION_LENGTH = 20
CENT = Decimal("0.01")
CURRENCY_LABEL = "Rs"

CSV_SEPARATOR = ","
DATA_SEPARATOR = "|"


class RecordParseError(ValueError):
    """A serialized line could not be decoded into an IncomeRecord."""

    def __init__(self, message: str, *, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


def _to_decimal(value: object) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    elif isinstance(value, (int, float)):
        candidate = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not candidate.is_finite():
        return None
    # Amounts must survive rounding to cents in the default context.
    try:
        candidate.quantize(CENT)
    except InvalidOperation:
        return None
    return candidate


def round_cents(amount: Decimal) -> Decimal:
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        msg = f"Amount {amount} is too large to round to cents"
        raise ValueError(msg) from None


def is_valid_code(code: str | None) -> bool:
    if not isinstance(code, str) or not code.strip():
        return False
    return CODE_PATTERN.match(code.strip().upper()) is not None


def is_valid_description(description: str | None) -> bool:
    if not isinstance(description, str) or not description.strip():
        return False
    return len(description.strip()) <= MAX_DESCRIPTION_LENGTH


def is_valid_date(date_str: str | None) -> bool:
    if not isinstance(date_str, str) or not date_str.strip():
        return False
    text = date_str.strip()
    if DATE_PATTERN.match(text) is None:
        return False
    try:
        datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        return False
    return True


def is_valid_income_amount(amount: Decimal | float | str | None) -> bool:
    value = _to_decimal(amount)
    return value is not None and value > 0


def is_valid_wht_amount(amount: Decimal | float | str | None) -> bool:
    value = _to_decimal(amount)
    return value is not None and value >= 0


class IncomeRecord(BaseModel):
    """A single income transaction as supplied by a data source.

    The business fields (code, description, date and both amounts) are fixed
    once the record exists; use ``updated`` to derive a changed copy. The
    checksum and validity fields belong to the validation engine and are the
    only assignable fields.
    """

    model_config = ConfigDict(validate_assignment=True)

    code: IncomeCode = Field(frozen=True)
    description: str = Field(frozen=True)
    income_date: str = Field(frozen=True)
    income_amount: Decimal = Field(frozen=True)
    wht_amount: Decimal = Field(frozen=True)
    original_checksum: int = 0
    calculated_checksum: int = 0
    valid: bool = False

    @field_validator("code", mode="before")
    @classmethod
    def _normalize_code(cls, value: object) -> str:
        if not isinstance(value, str) or not is_valid_code(value):
            msg = "Invalid income code format. Must be 2 letters + 3 digits (e.g., IN001)"
            raise ValueError(msg)
        return value.strip().upper()

    @field_validator("description", mode="before")
    @classmethod
    def _normalize_description(cls, value: object) -> str:
        if not isinstance(value, str) or not is_valid_description(value):
            msg = f"Description must be 1-{MAX_DESCRIPTION_LENGTH} characters long"
            raise ValueError(msg)
        return value.strip()

    @field_validator("income_date", mode="before")
    @classmethod
    def _normalize_date(cls, value: object) -> str:
        if not isinstance(value, str) or not is_valid_date(value):
            msg = "Date must be in DD/MM/YYYY format and valid"
            raise ValueError(msg)
        return value.strip()

    @field_validator("income_amount", mode="before")
    @classmethod
    def _round_income(cls, value: object) -> Decimal:
        amount = _to_decimal(value)
        if amount is None:
            msg = "Income amount must be a number that fits in cents"
            raise ValueError(msg)
        if amount <= 0:
            msg = "Income amount must be positive"
            raise ValueError(msg)
        return round_cents(amount)

    @field_validator("wht_amount", mode="before")
    @classmethod
    def _round_wht(cls, value: object) -> Decimal:
        amount = _to_decimal(value)
        if amount is None:
            msg = "WHT amount must be a number that fits in cents"
            raise ValueError(msg)
        if amount < 0:
            msg = "WHT amount cannot be negative"
            raise ValueError(msg)
        return round_cents(amount)

    @classmethod
    def create(
        cls,
        code: str,
        description: str,
        income_date: str,
        income_amount: Decimal | float | str,
        wht_amount: Decimal | float | str,
        *,
        original_checksum: int = 0,
    ) -> RecordBuildResult:
        """Build a record without raising on field errors."""
        try:
            record = cls(
                code=code,
                description=description,
                income_date=income_date,
                income_amount=income_amount,
                wht_amount=wht_amount,
                original_checksum=original_checksum,
            )
        except ValidationError as err:
            messages = [f"{'.'.join(str(loc) for loc in item['loc'])}: {item['msg']}" for item in err.errors()]
            return RecordBuildResult(record=None, errors=messages)
        return RecordBuildResult(record=record)

    @property
    def net_income(self) -> Decimal:
        return max(Decimal("0"), self.income_amount - self.wht_amount)

    @property
    def formatted_income(self) -> str:
        return f"{CURRENCY_LABEL} {self.income_amount:.2f}"

    @property
    def formatted_wht(self) -> str:
        return f"{CURRENCY_LABEL} {self.wht_amount:.2f}"

    @property
    def formatted_net(self) -> str:
        return f"{CURRENCY_LABEL} {self.net_income:.2f}"

    def has_valid_format(self) -> bool:
        return (
            is_valid_code(self.code)
            and is_valid_description(self.description)
            and is_valid_date(self.income_date)
            and is_valid_income_amount(self.income_amount)
            and is_valid_wht_amount(self.wht_amount)
        )

    def updated(
        self,
        *,
        description: str,
        income_date: str,
        income_amount: Decimal | float | str,
        wht_amount: Decimal | float | str,
    ) -> IncomeRecord:
        """Return a copy carrying new business data; validity is reset."""
        return IncomeRecord(
            code=self.code,
            description=description,
            income_date=income_date,
            income_amount=income_amount,
            wht_amount=wht_amount,
            original_checksum=self.original_checksum,
            calculated_checksum=self.calculated_checksum,
            valid=False,
        )

    def copy_record(self) -> IncomeRecord:
        return self.model_copy(deep=True)

    def same_code_as(self, other: IncomeRecord) -> bool:
        return self.code == other.code

    def to_csv_format(self) -> str:
        return CSV_SEPARATOR.join(
            [
                self.code,
                self.description,
                self.income_date,
                f"{self.income_amount:.2f}",
                f"{self.wht_amount:.2f}",
                str(self.calculated_checksum),
            ]
        )

    def to_data_format(self) -> str:
        return DATA_SEPARATOR.join(
            [
                self.code,
                self.description,
                self.income_date,
                f"{self.income_amount:.2f}",
                f"{self.wht_amount:.2f}",
            ]
        )

    @classmethod
    def from_csv_format(cls, csv_line: str | None) -> IncomeRecord:
        if csv_line is None or not csv_line.strip():
            msg = "CSV line cannot be empty"
            raise RecordParseError(msg, line=csv_line)

        parts = csv_line.split(CSV_SEPARATOR)
        if len(parts) < 5:
            msg = "Insufficient CSV data fields"
            raise RecordParseError(msg, line=csv_line)

        income = _parse_amount(parts[3], line=csv_line)
        wht = _parse_amount(parts[4], line=csv_line)

        checksum = 0
        if len(parts) >= 6 and parts[5].strip():
            raw_checksum = parts[5].strip()
            try:
                checksum = int(raw_checksum)
            except ValueError:
                msg = f"Invalid numeric data in CSV: checksum {raw_checksum!r}"
                raise RecordParseError(msg, line=csv_line) from None

        return cls(
            code=parts[0].strip(),
            description=parts[1].strip(),
            income_date=parts[2].strip(),
            income_amount=income,
            wht_amount=wht,
            original_checksum=checksum,
        )

    @classmethod
    def from_data_format(cls, data_line: str | None) -> IncomeRecord:
        if data_line is None or not data_line.strip():
            msg = "Data line cannot be empty"
            raise RecordParseError(msg, line=data_line)

        parts = data_line.strip().split(DATA_SEPARATOR)
        if len(parts) != 5:
            msg = "Invalid data line format"
            raise RecordParseError(msg, line=data_line)

        return cls(
            code=parts[0].strip(),
            description=parts[1].strip(),
            income_date=parts[2].strip(),
            income_amount=_parse_amount(parts[3], line=data_line),
            wht_amount=_parse_amount(parts[4], line=data_line),
        )

    def to_detailed_string(self) -> str:
        lines = [
            "Income Record Details:",
            f"  Code: {self.code}",
            f"  Description: {self.description}",
            f"  Date: {self.income_date}",
            f"  Income Amount: {self.formatted_income}",
            f"  WHT Amount: {self.formatted_wht}",
            f"  Net Income: {self.formatted_net}",
            f"  Original Checksum: {self.original_checksum}",
            f"  Calculated Checksum: {self.calculated_checksum}",
            f"  Status: {'Valid' if self.valid else 'Invalid'}",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class RecordBuildResult:
    record: IncomeRecord | None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None


def _parse_amount(raw: str, *, line: str) -> Decimal:
    text = raw.strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        msg = f"Invalid numeric data in CSV: {text!r}"
        raise RecordParseError(msg, line=line) from None
    if not amount.is_finite():
        msg = f"Invalid numeric data in CSV: {text!r}"
        raise RecordParseError(msg, line=line)
    return amount


def by_code(record: IncomeRecord) -> str:
    return record.code


def by_date(record: IncomeRecord) -> datetime:
    return datetime.strptime(record.income_date, DATE_FORMAT)


def by_amount(record: IncomeRecord) -> Decimal:
    return record.income_amount


def by_description(record: IncomeRecord) -> str:
    return record.description


__all__ = [
    "IncomeCode",
    "IncomeRecord",
    "RecordBuildResult",
    "RecordParseError",
    "by_amount",
    "by_code",
    "by_date",
    "by_description",
    "is_valid_code",
    "is_valid_date",
    "is_valid_description",
    "is_valid_income_amount",
    "is_valid_wht_amount",
    "round_cents",
]
