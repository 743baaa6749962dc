"""Domain models and types for the income tax ledger.

This package holds the in-memory (Pydantic) income record together with the
checksum algorithm that ties a record to the value supplied by its data
source. Nothing here performs file I/O or keeps state between calls.
"""

__all__ = [
    "checksum",
    "income_record",
    "tax_rules",
]
