"""Input/output utilities for reading score rows and writing JSONL files."""

import json
import math
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import pandas as pd

TABULAR_SUFFIXES = {".csv", ".parquet"}


def read_jsonl(path: Path | str) -> Iterator[dict[str, Any]]:
    """Read a JSONL file and yield each record.

    Args:
        path: Path to the JSONL file.

    Yields:
        Each parsed JSON record.
    """
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_num}: {e}") from e


def _clean(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def read_table(path: Path | str) -> list[dict[str, Any]]:
    """Read a CSV or Parquet file into row dicts, with empty cells as None.

    Parquet needs the optional pyarrow dependency.
    """
    path = Path(path)
    if path.suffix.lower() == ".parquet":
        df = pd.read_parquet(path)
    else:
        # Keep identifiers such as test codes as strings
        df = pd.read_csv(path, dtype={"patient_id": str, "test": str, "scale": str})
    return [{k: _clean(v) for k, v in row.items()} for row in df.to_dict(orient="records")]


def read_rows(path: Path | str) -> list[dict[str, Any]]:
    """Read score rows from JSONL, CSV or Parquet, chosen by file suffix."""
    path = Path(path)
    if path.suffix.lower() in TABULAR_SUFFIXES:
        return read_table(path)
    return list(read_jsonl(path))


def write_jsonl(path: Path | str, records: Iterable[dict[str, Any]]) -> int:
    """Write records to a JSONL file.

    Args:
        path: Path to write the JSONL file.
        records: Iterable of records to write.

    Returns:
        Number of records written.
    """
    count = 0
    with open(path, "w") as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
            count += 1
    return count
