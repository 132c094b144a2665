"""Ingestion of raw score rows into normalized score records."""

from neuroscore.ingestion.builder import RecordBuilder, build_records
from neuroscore.ingestion.rows import RawRow, RowValidationError, parse_row

__all__ = [
    "RawRow",
    "RecordBuilder",
    "RowValidationError",
    "build_records",
    "parse_row",
]
