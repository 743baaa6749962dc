from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from domain.income_record import IncomeRecord

logger = logging.getLogger(__name__)


class PipeSnapshotStore:
    """Lightweight pipe-delimited snapshots: one record per line, no header, no checksum."""

    def save(self, records: Iterable[IncomeRecord], path: str | Path) -> bool:
        target = Path(path)
        count = 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding="utf-8", newline="") as handle:
                for record in records:
                    handle.write(record.to_data_format())
                    handle.write("\n")
                    count += 1
        except OSError as err:
            logger.error("Save to %s failed: %s", target, err)
            return False

        logger.info("Saved %d records to %s", count, target)
        return True

    def load(self, path: str | Path) -> list[IncomeRecord]:
        source = Path(path)
        if not source.exists():
            logger.info("Data file not found: %s", source)
            return []

        records: list[IncomeRecord] = []
        try:
            with source.open(encoding="utf-8") as handle:
                for line_number, raw_line in enumerate(handle, start=1):
                    line = raw_line.strip()
                    if not line:
                        continue
                    try:
                        records.append(IncomeRecord.from_data_format(line))
                    except ValueError as err:
                        logger.warning("Error loading line %d of %s: %s", line_number, source, err)
        except (OSError, UnicodeDecodeError) as err:
            logger.error("Load from %s stopped after %d records: %s", source, len(records), err)
            return records

        logger.info("Loaded %d records from %s", len(records), source)
        return records


__all__ = ["PipeSnapshotStore"]
