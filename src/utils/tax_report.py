from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from domain.tax_rules import HIGH_INCOME_RATE, HIGH_INCOME_THRESHOLD, HUNDRED, STANDARD_TAX_RATE, progressive_portions

from .formatting import format_currency, format_money, format_percentage

if TYPE_CHECKING:
    from services.tax_processor import TaxCalculationResult, TaxScenario, WHTStrategy

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
GOOD_WHT_COVERAGE = Decimal("80")
POOR_WHT_COVERAGE = Decimal("50")
REASONABLE_EFFECTIVE_RATE = Decimal("15")


def _rate_label(rate: Decimal) -> str:
    return f"{(rate * HUNDRED).normalize():f}%"


def render_calculation_details(result: TaxCalculationResult) -> str:
    lines = [
        "TAX CALCULATION BREAKDOWN",
        "========================",
        "",
        "INPUT DATA:",
        f"  Number of Records: {result.record_count}",
        f"  Total Gross Income: {format_money(result.total_income)}",
        f"  Total WHT Paid: {format_money(result.total_wht)}",
        f"  Average Income per Record: {format_money(result.average_income_per_record)}",
        "",
        "TAX CALCULATION:",
        f"  Tax-Free Allowance: {format_money(result.tax_free_allowance)}",
        f"  Taxable Income: {format_money(result.taxable_income)}",
    ]

    if result.taxable_income > HIGH_INCOME_THRESHOLD:
        standard, high = progressive_portions(result.taxable_income)
        lines.append(f"  Standard Rate Tax ({_rate_label(STANDARD_TAX_RATE)}): {format_money(standard)}")
        lines.append(f"  High Earner Tax ({_rate_label(HIGH_INCOME_RATE)}): {format_money(high)}")
    else:
        lines.append(f"  Tax Rate Applied: {format_percentage(STANDARD_TAX_RATE * HUNDRED)}")

    lines.extend(
        [
            f"  Gross Tax Liability: {format_money(result.gross_tax)}",
            f"  Less: WHT Already Paid: {format_money(result.total_wht)}",
            f"  NET TAX PAYABLE: {format_money(result.final_tax_payable)}",
            "",
            "ANALYSIS:",
            f"  Effective Tax Rate: {format_percentage(result.effective_tax_rate)}",
            f"  WHT Coverage of Tax: {format_percentage(result.wht_coverage)}",
            f"  Tax Savings from Allowance: {format_money(result.tax_savings_from_allowance)}",
        ]
    )

    status = _coverage_status(result)
    if status is not None:
        lines.extend(["", f"  STATUS: {status}"])

    return "\n".join(lines) + "\n"


def _coverage_status(result: TaxCalculationResult) -> str | None:
    if result.final_tax_payable <= 0:
        return "No additional tax payable - WHT covers full liability"
    if result.wht_coverage > GOOD_WHT_COVERAGE:
        return "Low additional tax required - good WHT coverage"
    if result.wht_coverage < POOR_WHT_COVERAGE:
        return "Significant additional tax required - consider increasing WHT"
    return None


def _compliance_header(generated_at: datetime) -> list[str]:
    return [
        "TAX COMPLIANCE REPORT",
        "====================",
        f"Generated: {generated_at.strftime(TIMESTAMP_FORMAT)}",
        "",
    ]


def render_compliance_notice(message: str, *, generated_at: datetime) -> str:
    return "\n".join([*_compliance_header(generated_at), message]) + "\n"


def render_compliance_report(result: TaxCalculationResult, *, generated_at: datetime) -> str:
    lines = _compliance_header(generated_at)
    lines.extend(
        [
            "COMPLIANCE STATUS:",
            f"  Records Processed: {result.record_count}",
            f"  Total Declared Income: {format_money(result.total_income)}",
            f"  Tax Liability: {format_money(result.gross_tax)}",
            f"  WHT Payments: {format_money(result.total_wht)}",
            f"  Outstanding Tax: {format_money(result.final_tax_payable)}",
            "",
            "COMPLIANCE INDICATORS:",
        ]
    )

    if result.final_tax_payable <= 0:
        lines.append("  ✓ Tax liability fully covered by WHT payments")
    else:
        lines.append("  ⚠ Additional tax payment required")

    if result.wht_coverage >= GOOD_WHT_COVERAGE:
        lines.append("  ✓ Good WHT coverage (≥80%)")
    else:
        lines.append("  ⚠ Low WHT coverage (<80%) - consider increasing WHT rate")

    if result.effective_tax_rate <= REASONABLE_EFFECTIVE_RATE:
        lines.append("  ✓ Reasonable effective tax rate")
    else:
        lines.append("  ⚠ High effective tax rate - review tax planning strategies")

    return "\n".join(lines) + "\n"


def render_wht_strategy(strategy: WHTStrategy) -> str:
    lines = [
        "WHT STRATEGY:",
        f"  Projected Income: {format_money(strategy.projected_income)}",
        f"  Projected Tax Liability: {format_money(strategy.projected_tax_liability)}",
        f"  Recommended WHT: {format_money(strategy.recommended_wht_amount)}",
        f"  Recommended WHT Rate: {format_percentage(strategy.recommended_wht_rate)}",
        f"  Monthly WHT: {format_money(strategy.monthly_wht)}",
    ]
    return "\n".join(lines) + "\n"


def render_tax_scenarios(scenarios: Iterable[TaxScenario]) -> str:
    rows = [
        (
            format_currency(scenario.total_income),
            format_currency(scenario.taxable_income),
            format_currency(scenario.gross_tax),
            format_percentage(scenario.effective_rate),
            format_percentage(scenario.marginal_rate),
        )
        for scenario in scenarios
    ]
    if not rows:
        return "Tax scenarios:\n  (no scenarios)\n"

    labels = ("Total income", "Taxable", "Gross tax", "Effective", "Marginal")
    widths = [max(len(label), max(len(row[idx]) for row in rows)) for idx, label in enumerate(labels)]

    header = " ".join(f"{label:>{width}}" for label, width in zip(labels, widths))
    lines = ["Tax scenarios:", header, "-" * len(header)]
    for row in rows:
        lines.append(" ".join(f"{cell:>{width}}" for cell, width in zip(row, widths)))
    return "\n".join(lines) + "\n"


__all__ = [
    "render_calculation_details",
    "render_compliance_notice",
    "render_compliance_report",
    "render_tax_scenarios",
    "render_wht_strategy",
]
