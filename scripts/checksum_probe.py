# flake8: noqa E402
# Print the checksum breakdown for a transaction line or a CSV record, e.g.:
# python scripts/checksum_probe.py "IN001,Freelance Work,25/07/2025,10000.00,1000.00"
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the src directory is importable when the script is invoked directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from domain.checksum import checksum_breakdown, transaction_line_for
from domain.income_record import IncomeRecord
from services.validation_engine import ValidationEngine


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute the integrity checksum of an income transaction.")
    parser.add_argument("line", nargs="?", help="Transaction line (CODE,DESCRIPTION,DATE,INCOME,WHT[,CHECKSUM]).")
    parser.add_argument(
        "--record",
        action="store_true",
        help="Parse the line as a CSV record first so amounts are normalised to 2dp.",
    )
    parser.add_argument("--self-test", action="store_true", help="Run the built-in reference cases.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if args.self_test:
        result = ValidationEngine().run_checksum_self_test()
        for case in result.cases:
            expected = "-" if case.expected is None else str(case.expected)
            status = "ok" if case.passed else "FAIL"
            print(f"{case.name:<15} expected={expected:>3} calculated={case.calculated:>3} {status}  {case.line}")
        return 0 if result.all_passed else 1

    if not args.line:
        print("A transaction line is required unless --self-test is given.")
        return 2

    line = args.line
    if args.record:
        line = transaction_line_for(IncomeRecord.from_csv_format(line))

    breakdown = checksum_breakdown(line)
    print(f"Line:              {line}")
    print(f"Uppercase letters: {breakdown.uppercase_count}")
    print(f"Digits and dots:   {breakdown.digit_and_dot_count}")
    print(f"Checksum:          {breakdown.total}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
