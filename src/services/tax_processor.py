from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from domain.income_record import IncomeRecord, round_cents
from domain.tax_rules import (
    STANDARD_TAX_RATE,
    TAX_FREE_ALLOWANCE,
    ZERO,
    marginal_rate,
    percentage,
    progressive_tax,
    taxable_income_for,
)
from utils.formatting import format_money, format_percentage
from utils.tax_report import render_calculation_details, render_compliance_notice, render_compliance_report

logger = logging.getLogger(__name__)

RECOMMENDED_WHT_SHARE = Decimal("0.90")
MONTHS_PER_YEAR = 12


class TaxCalculationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_count: int
    total_income: Decimal
    total_wht: Decimal
    tax_free_allowance: Decimal
    taxable_income: Decimal
    gross_tax: Decimal
    final_tax_payable: Decimal
    effective_tax_rate: Decimal
    wht_coverage: Decimal
    average_income_per_record: Decimal
    tax_savings_from_allowance: Decimal


@dataclass(frozen=True)
class TaxCalculationRecord:
    timestamp: datetime
    record_count: int
    result: TaxCalculationResult


class WHTStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    projected_income: Decimal
    projected_tax_liability: Decimal
    recommended_wht_amount: Decimal
    recommended_wht_rate: Decimal
    monthly_wht: Decimal


class TaxScenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_income: Decimal
    taxable_income: Decimal
    gross_tax: Decimal
    net_tax_without_wht: Decimal
    effective_rate: Decimal
    marginal_rate: Decimal


def _as_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class TaxProcessor:
    """Compute progressive tax liability for validated income records.

    Every successful ``calculate_tax`` call is appended to an in-memory audit
    history owned by the processor; the history is never evicted
    automatically.
    """

    def __init__(self) -> None:
        self._history: list[TaxCalculationRecord] = []
        self._history_lock = threading.Lock()

    def calculate_tax(self, records: Sequence[IncomeRecord] | None) -> Decimal:
        if not records:
            msg = "No valid records provided for tax calculation"
            raise ValueError(msg)

        actually_valid = [record for record in records if record.valid]
        if not actually_valid:
            msg = "No valid records found in the provided list"
            raise ValueError(msg)

        result = self.calculate_details(actually_valid)
        entry = TaxCalculationRecord(
            timestamp=datetime.now(timezone.utc),
            record_count=len(actually_valid),
            result=result,
        )
        with self._history_lock:
            self._history.append(entry)

        logger.info(
            "Tax calculation: records=%d total income=%s tax payable=%s effective rate=%s",
            result.record_count,
            format_money(result.total_income),
            format_money(result.final_tax_payable),
            format_percentage(result.effective_tax_rate),
        )
        return result.final_tax_payable

    def calculate_details(self, records: Iterable[IncomeRecord]) -> TaxCalculationResult:
        """Full breakdown for the given records; nothing is recorded in history."""
        batch = list(records)
        if not batch:
            msg = "Cannot calculate tax for an empty record list"
            raise ValueError(msg)

        total_income = sum((record.income_amount for record in batch), start=ZERO)
        total_wht = sum((record.wht_amount for record in batch), start=ZERO)
        taxable = taxable_income_for(total_income)
        gross_tax = progressive_tax(taxable)
        net_tax = round_cents(max(ZERO, gross_tax - total_wht))

        return TaxCalculationResult(
            record_count=len(batch),
            total_income=total_income,
            total_wht=total_wht,
            tax_free_allowance=TAX_FREE_ALLOWANCE,
            taxable_income=taxable,
            gross_tax=gross_tax,
            final_tax_payable=net_tax,
            effective_tax_rate=percentage(net_tax, total_income),
            wht_coverage=percentage(total_wht, gross_tax),
            average_income_per_record=total_income / len(batch),
            tax_savings_from_allowance=TAX_FREE_ALLOWANCE * STANDARD_TAX_RATE,
        )

    def get_calculation_details(self, records: Sequence[IncomeRecord] | None) -> str:
        if not records:
            return "No valid records available for calculation."
        return render_calculation_details(self.calculate_details(records))

    def calculate_optimal_wht(self, projected_income: Decimal | int | float | str) -> WHTStrategy:
        income = _as_decimal(projected_income)
        projected_tax = progressive_tax(taxable_income_for(income))
        recommended = projected_tax * RECOMMENDED_WHT_SHARE
        return WHTStrategy(
            projected_income=income,
            projected_tax_liability=projected_tax,
            recommended_wht_amount=recommended,
            recommended_wht_rate=percentage(recommended, income),
            monthly_wht=recommended / MONTHS_PER_YEAR,
        )

    def analyze_tax_scenarios(
        self,
        base_income: Decimal | int | float | str,
        variations: Iterable[Decimal | int | float | str],
    ) -> list[TaxScenario]:
        base = _as_decimal(base_income)
        scenarios: list[TaxScenario] = []
        for variation in variations:
            total_income = base + _as_decimal(variation)
            taxable = taxable_income_for(total_income)
            gross_tax = progressive_tax(taxable)
            scenarios.append(
                TaxScenario(
                    total_income=total_income,
                    taxable_income=taxable,
                    gross_tax=gross_tax,
                    net_tax_without_wht=gross_tax,
                    effective_rate=percentage(gross_tax, total_income),
                    marginal_rate=marginal_rate(total_income),
                )
            )
        return scenarios

    def generate_compliance_report(
        self,
        records: Sequence[IncomeRecord] | None,
        *,
        generated_at: datetime | None = None,
    ) -> str:
        timestamp = generated_at or datetime.now()
        if not records:
            return render_compliance_notice("No records available for compliance analysis.", generated_at=timestamp)

        valid_records = [record for record in records if record.valid]
        if not valid_records:
            return render_compliance_notice("No valid records found for compliance analysis.", generated_at=timestamp)

        return render_compliance_report(self.calculate_details(valid_records), generated_at=timestamp)

    def calculation_history(self) -> list[TaxCalculationRecord]:
        with self._history_lock:
            return list(self._history)

    def clear_history(self) -> None:
        with self._history_lock:
            self._history.clear()


__all__ = [
    "TaxCalculationRecord",
    "TaxCalculationResult",
    "TaxProcessor",
    "TaxScenario",
    "WHTStrategy",
]
