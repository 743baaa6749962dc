from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from domain.income_record import IncomeRecord

logger = logging.getLogger(__name__)

CSV_HEADER = "Income_Code,Description,Date,Income_Amount,WHT_Amount,Checksum"
CSV_EXTENSION = ".csv"
HEADER_MARKERS = ("income_code", "description", "checksum")
BACKUP_MARKER = "backup"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class IncomeFileError(OSError):
    def __init__(self, message: str, *, path: str | Path | None) -> None:
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class LineError:
    line_number: int
    message: str
    raw: str


@dataclass(frozen=True)
class ImportResult:
    records: list[IncomeRecord] = field(default_factory=list)
    errors: list[LineError] = field(default_factory=list)


@dataclass(frozen=True)
class FileInfo:
    path: Path
    exists: bool
    size: int = 0
    modified: datetime | None = None
    readable: bool = False
    writable: bool = False
    line_count: int = 0
    estimated_records: int = 0
    error: str | None = None


@dataclass(frozen=True)
class CsvStructureCheck:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    info: list[str] = field(default_factory=list)


def is_header_line(line: str | None) -> bool:
    if line is None:
        return False
    lowered = line.lower()
    return any(marker in lowered for marker in HEADER_MARKERS)


def _describe_error(err: ValueError) -> str:
    if isinstance(err, ValidationError):
        return "; ".join(str(item["msg"]).removeprefix("Value error, ") for item in err.errors())
    return str(err)


class IncomeCsvImporter:
    """Read income records from a comma-separated file.

    Lines that cannot be turned into a record are collected as ``LineError``
    entries; only problems with the file itself abort the import.
    """

    def __init__(self, source_path: str | Path | None) -> None:
        self._raw_path = "" if source_path is None else str(source_path)
        self._source_path = Path(self._raw_path)

    def load_records(self) -> ImportResult:
        self._validate_path()

        records: list[IncomeRecord] = []
        errors: list[LineError] = []
        header_checked = False

        try:
            with self._source_path.open(encoding="utf-8-sig") as handle:
                for line_number, raw_line in enumerate(handle, start=1):
                    line = raw_line.strip()
                    if not line:
                        continue

                    if not header_checked:
                        header_checked = True
                        if is_header_line(line):
                            continue

                    try:
                        records.append(IncomeRecord.from_csv_format(line))
                    except ValueError as err:
                        error = LineError(line_number=line_number, message=_describe_error(err), raw=line)
                        errors.append(error)
                        logger.warning(
                            "Parse error: line %d: %s - %s", error.line_number, error.message, error.raw
                        )
        except UnicodeDecodeError as err:
            msg = f"File is not valid UTF-8 text: {self._source_path}: {err}"
            raise IncomeFileError(msg, path=self._source_path) from err
        except OSError as err:
            msg = f"Error reading file: {self._source_path}: {err}"
            raise IncomeFileError(msg, path=self._source_path) from err

        logger.info(
            "Import from %s completed: %d records imported, %d errors",
            self._source_path,
            len(records),
            len(errors),
        )
        return ImportResult(records=records, errors=errors)

    def perform_import(self) -> list[IncomeRecord]:
        return self.load_records().records

    def _validate_path(self) -> None:
        if not self._raw_path.strip():
            msg = "File path cannot be empty"
            raise IncomeFileError(msg, path=self._raw_path)

        path = self._source_path
        if not path.is_file():
            msg = f"File does not exist: {path}"
            raise IncomeFileError(msg, path=path)

        if not os.access(path, os.R_OK):
            msg = f"File is not readable: {path}"
            raise IncomeFileError(msg, path=path)

        if path.suffix.lower() != CSV_EXTENSION:
            msg = f"File must be a CSV file: {path}"
            raise IncomeFileError(msg, path=path)


def export_to_csv(records: Sequence[IncomeRecord] | None, path: str | Path) -> bool:
    if not records:
        logger.error("No records to export")
        return False

    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            create_backup(target)

        with target.open("w", encoding="utf-8", newline="") as handle:
            handle.write(CSV_HEADER)
            handle.write("\n")
            for record in records:
                handle.write(record.to_csv_format())
                handle.write("\n")
    except OSError as err:
        logger.error("Export to %s failed: %s", target, err)
        return False

    logger.info("Exported %d records to %s", len(records), target)
    return True


def create_backup(path: str | Path, *, now: datetime | None = None) -> Path | None:
    original = Path(path)
    if not original.exists():
        return None

    timestamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    backup = original.with_name(f"{original.stem}_{BACKUP_MARKER}_{timestamp}{original.suffix}")
    try:
        shutil.copy2(original, backup)
    except OSError as err:
        logger.error("Backup of %s failed: %s", original, err)
        return None

    logger.info("Backup created: %s", backup)
    return backup


def describe_file(path: str | Path) -> FileInfo:
    target = Path(path)
    if not target.exists():
        return FileInfo(path=target, exists=False)

    try:
        stat = target.stat()
        with target.open(encoding="utf-8", errors="replace") as handle:
            line_count = sum(1 for _ in handle)
    except OSError as err:
        return FileInfo(path=target, exists=True, error=f"Error analyzing file: {err}")

    return FileInfo(
        path=target,
        exists=True,
        size=stat.st_size,
        modified=datetime.fromtimestamp(stat.st_mtime),
        readable=os.access(target, os.R_OK),
        writable=os.access(target, os.W_OK),
        line_count=line_count,
        estimated_records=max(0, line_count - 1),
    )


def check_csv_structure(path: str | Path) -> CsvStructureCheck:
    target = Path(path)
    if target.suffix.lower() != CSV_EXTENSION:
        return CsvStructureCheck(valid=False, errors=["File must have .csv extension"])
    if not target.exists():
        return CsvStructureCheck(valid=False, errors=["File does not exist"])

    try:
        if target.stat().st_size == 0:
            return CsvStructureCheck(valid=False, errors=["File is empty"])
        with target.open(encoding="utf-8-sig") as handle:
            first_line = handle.readline()
    except UnicodeDecodeError as err:
        return CsvStructureCheck(valid=False, errors=[f"File is not valid UTF-8 text: {err}"])
    except OSError as err:
        return CsvStructureCheck(valid=False, errors=[f"Error validating file: {err}"])

    if not first_line:
        return CsvStructureCheck(valid=False, errors=["File appears to be empty"])

    warnings: list[str] = []
    info: list[str] = []
    if "," not in first_line:
        warnings.append("File does not appear to be comma-separated")
    if is_header_line(first_line):
        info.append("Valid CSV header detected")
    else:
        warnings.append("No standard header found")

    return CsvStructureCheck(valid=True, warnings=warnings, info=info)


def cleanup_backups(directory: str | Path, older_than_days: int, *, now: datetime | None = None) -> int:
    """Delete backup files under ``directory`` last modified before the cutoff."""
    root = Path(directory)
    if not root.exists():
        return 0

    cutoff = (now or datetime.now()) - timedelta(days=older_than_days)
    removed = 0
    for candidate in sorted(root.rglob("*")):
        if not candidate.is_file() or BACKUP_MARKER not in candidate.name:
            continue
        try:
            if datetime.fromtimestamp(candidate.stat().st_mtime) >= cutoff:
                continue
            candidate.unlink()
        except OSError as err:
            logger.warning("Failed to clean %s: %s", candidate.name, err)
            continue
        removed += 1
        logger.info("Cleaned up %s", candidate.name)
    return removed


__all__ = [
    "CSV_HEADER",
    "CsvStructureCheck",
    "FileInfo",
    "ImportResult",
    "IncomeCsvImporter",
    "IncomeFileError",
    "LineError",
    "check_csv_structure",
    "cleanup_backups",
    "create_backup",
    "describe_file",
    "export_to_csv",
    "is_header_line",
]
