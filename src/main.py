from __future__ import annotations

import argparse
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Sequence

from config import config
from domain.income_record import IncomeRecord
from domain.tax_rules import ZERO
from importers.income_csv import (
    IncomeCsvImporter,
    IncomeFileError,
    check_csv_structure,
    cleanup_backups,
    describe_file,
    export_to_csv,
)
from importers.snapshot_store import PipeSnapshotStore
from services.tax_processor import TaxProcessor
from services.validation_engine import ValidationEngine
from utils.record_summary import (
    render_file_check,
    render_import_errors,
    render_record_table,
    render_statistics,
    render_validation_report,
    render_validation_summary,
)
from utils.tax_report import render_tax_scenarios, render_wht_strategy


def run(
    csv_path: Path,
    *,
    export_path: Path | None = None,
    snapshot_path: Path | None = None,
    repair: bool = False,
    inspect: bool = False,
    projected_income: Decimal | None = None,
    scenario_variations: Sequence[Decimal] = (),
    report_codes: Sequence[str] = (),
) -> int:
    # Setup components
    importer = IncomeCsvImporter(csv_path)
    engine = ValidationEngine()
    processor = TaxProcessor()

    if inspect:
        print(render_file_check(describe_file(csv_path), check_csv_structure(csv_path)))

    # Get data
    try:
        imported = importer.load_records()
    except IncomeFileError as err:
        print(f"Import failed: {err}")
        return 1
    records = imported.records
    print(f"Imported {len(records)} records from {csv_path}")
    errors_text = render_import_errors(imported)
    if errors_text:
        print(errors_text)

    # Validate
    summary = engine.validate_records(records)
    print(render_validation_summary(summary))
    if repair and summary.invalid_count:
        repaired = engine.repair_invalid_records(records)
        print(f"Repaired {repaired} invalid records\n")
    print(render_record_table(records))

    for code in report_codes:
        record = _find_record(records, code)
        if record is None:
            print(f"No record with code {code.upper()}\n")
            continue
        print(render_validation_report(engine.generate_detailed_report(record)))

    # Tax
    valid_records = [record for record in records if record.valid]
    if valid_records:
        processor.calculate_tax(valid_records)
        print(processor.get_calculation_details(valid_records))
        print(processor.generate_compliance_report(records))
    else:
        print("No valid records; tax calculation skipped.\n")

    if projected_income is not None:
        print(render_wht_strategy(processor.calculate_optimal_wht(projected_income)))

    if scenario_variations:
        base_income = projected_income
        if base_income is None:
            base_income = sum((record.income_amount for record in valid_records), start=ZERO)
        print(render_tax_scenarios(processor.analyze_tax_scenarios(base_income, scenario_variations)))

    # Persist
    if export_path is not None:
        if export_to_csv(records, export_path):
            print(f"Exported {len(records)} records to {export_path}")
    if snapshot_path is not None:
        if PipeSnapshotStore().save(records, snapshot_path):
            print(f"Saved snapshot to {snapshot_path}")

    print(render_statistics(engine.statistics()))
    return 0


def _find_record(records: Sequence[IncomeRecord], code: str) -> IncomeRecord | None:
    wanted = code.strip().upper()
    return next((record for record in records if record.code == wanted), None)


def _decimal_arg(raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        msg = f"not a number: {raw!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if not value.is_finite():
        msg = f"not a finite number: {raw!r}"
        raise argparse.ArgumentTypeError(msg)
    return value


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    parser = argparse.ArgumentParser(description="Validate income records and compute the net tax payable.")
    parser.add_argument("--csv", type=Path, default=settings.input_csv, help="Income records CSV to import.")
    parser.add_argument(
        "--export",
        type=Path,
        nargs="?",
        const=settings.export_csv,
        help="Write the validated records to a CSV file (default location when no path is given).",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        nargs="?",
        const=settings.snapshot_file,
        help="Write a pipe-delimited snapshot (default location when no path is given).",
    )
    parser.add_argument("--repair", action="store_true", help="Trust recomputed checksums for invalid records.")
    parser.add_argument("--inspect", action="store_true", help="Describe the input file before importing it.")
    parser.add_argument(
        "--cleanup-backups",
        type=int,
        nargs="?",
        const=settings.backup_retention_days,
        metavar="DAYS",
        help="Delete export backups older than DAYS next to the export file, then exit.",
    )
    parser.add_argument("--projected-income", type=_decimal_arg, help="Projected annual income for WHT planning.")
    parser.add_argument(
        "--scenario",
        type=_decimal_arg,
        action="append",
        default=[],
        help="Income variation to analyse; may be repeated.",
    )
    parser.add_argument(
        "--report",
        action="append",
        default=[],
        metavar="CODE",
        help="Print a detailed checksum report for the record with this code; may be repeated.",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if args.cleanup_backups is not None:
        backup_dir = (args.export or settings.export_csv).parent
        removed = cleanup_backups(backup_dir, args.cleanup_backups)
        print(f"Removed {removed} backup files from {backup_dir}")
        return 0

    return run(
        args.csv,
        export_path=args.export,
        snapshot_path=args.snapshot,
        repair=args.repair,
        inspect=args.inspect,
        projected_income=args.projected_income,
        scenario_variations=args.scenario,
        report_codes=args.report,
    )


if __name__ == "__main__":
    raise SystemExit(main())
