from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from domain.income_record import IncomeRecord

from .formatting import format_currency

if TYPE_CHECKING:
    from importers.income_csv import CsvStructureCheck, FileInfo, ImportResult
    from services.validation_engine import ValidationReport, ValidationStatistics, ValidationSummary


def render_record_table(records: Iterable[IncomeRecord]) -> str:
    records_list = list(records)
    if not records_list:
        return "Income records:\n  (no records)\n"

    rows: list[tuple[str, str, str, str, str, str, str]] = [
        (
            record.code,
            record.description,
            record.income_date,
            format_currency(record.income_amount),
            format_currency(record.wht_amount),
            f"{record.original_checksum}/{record.calculated_checksum}",
            "valid" if record.valid else "invalid",
        )
        for record in records_list
    ]

    labels = ("Code", "Description", "Date", "Income", "WHT", "Checksum", "Status")
    right_aligned = {3, 4, 5}
    widths = [max(len(label), max(len(row[idx]) for row in rows)) for idx, label in enumerate(labels)]

    def _cell(value: str, idx: int) -> str:
        if idx in right_aligned:
            return f"{value:>{widths[idx]}}"
        return f"{value:<{widths[idx]}}"

    header = " ".join(_cell(label, idx) for idx, label in enumerate(labels))
    lines = ["Income records:", header, "-" * len(header)]
    for row in rows:
        lines.append(" ".join(_cell(value, idx) for idx, value in enumerate(row)))
    return "\n".join(lines) + "\n"


def render_validation_summary(summary: ValidationSummary) -> str:
    lines = [
        "Validation summary:",
        f"  Total:   {summary.total_count}",
        f"  Valid:   {summary.valid_count}",
        f"  Invalid: {summary.invalid_count}",
        f"  Success rate: {summary.success_rate:.1f}%",
    ]
    return "\n".join(lines) + "\n"


def render_validation_report(report: ValidationReport) -> str:
    code = report.record.code if report.record is not None else "(none)"
    lines = [
        f"Validation report for {code}:",
        f"  Transaction line: {report.transaction_line or '-'}",
        f"  Uppercase letters: {report.uppercase_count}",
        f"  Digits and decimal points: {report.digit_and_dot_count}",
        f"  Calculated checksum: {report.calculated_checksum}",
        f"  Original checksum: {report.original_checksum}",
        f"  Status: {'VALID' if report.valid else 'INVALID'}",
    ]
    for error in report.errors:
        lines.append(f"  error: {error}")
    for warning in report.warnings:
        lines.append(f"  warning: {warning}")
    return "\n".join(lines) + "\n"


def render_statistics(statistics: ValidationStatistics) -> str:
    return (
        "Validation statistics:\n"
        f"  Validations: {statistics.total_validations}\n"
        f"  Successful:  {statistics.successful_validations}\n"
        f"  Failed:      {statistics.failed_validations}\n"
        f"  Success rate: {statistics.success_rate:.1f}%\n"
    )


def render_import_errors(result: ImportResult) -> str:
    if not result.errors:
        return ""
    lines = [f"Import errors ({len(result.errors)}):"]
    for error in result.errors:
        lines.append(f"  Line {error.line_number}: {error.message} - {error.raw}")
    return "\n".join(lines) + "\n"


def render_file_check(info: FileInfo, structure: CsvStructureCheck) -> str:
    lines = [f"File check for {info.path}:"]
    if not info.exists:
        lines.append("  File does not exist")
    elif info.error:
        lines.append(f"  {info.error}")
    else:
        modified = info.modified.strftime("%Y-%m-%d %H:%M:%S") if info.modified else "-"
        lines.extend(
            [
                f"  Size: {info.size} bytes",
                f"  Modified: {modified}",
                f"  Readable: {'yes' if info.readable else 'no'}, writable: {'yes' if info.writable else 'no'}",
                f"  Lines: {info.line_count} (about {info.estimated_records} records)",
            ]
        )
    lines.append(f"  Structure: {'ok' if structure.valid else 'invalid'}")
    for message in structure.errors:
        lines.append(f"  error: {message}")
    for message in structure.warnings:
        lines.append(f"  warning: {message}")
    for message in structure.info:
        lines.append(f"  info: {message}")
    return "\n".join(lines) + "\n"


__all__ = [
    "render_file_check",
    "render_import_errors",
    "render_record_table",
    "render_statistics",
    "render_validation_report",
    "render_validation_summary",
]
