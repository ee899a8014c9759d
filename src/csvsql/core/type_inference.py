"""
csvsql Core - Column type inference.

Guesses a storage type for a column of raw CSV cells. Only a bounded prefix
of non-empty values is inspected so large imports stay cheap.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable

import pandas as pd

DEFAULT_SAMPLE_SIZE = 100

_INTEGER_RE = re.compile(r"^\d+$")
_REAL_RE = re.compile(r"^\d*\.?\d+$")

# Relative keywords pandas resolves against the clock; not dates in a CSV cell.
_DATE_KEYWORDS = frozenset({"now", "today"})


class ColumnType(str, Enum):
    INTEGER = "INTEGER"
    REAL = "REAL"
    DATETIME = "DATETIME"
    BOOLEAN = "BOOLEAN"
    TEXT = "TEXT"


def _is_datetime(value: str) -> bool:
    if value.lower() in _DATE_KEYWORDS:
        return False
    try:
        parsed = pd.to_datetime(value)
    except (ValueError, TypeError, OverflowError):
        return False
    return not pd.isna(parsed)


def infer_column_type(values: Iterable[str], sample_size: int = DEFAULT_SAMPLE_SIZE) -> ColumnType:
    """
    Infer the type of a column from its cell values.

    Rules are checked in order and the first one satisfied by every sampled
    value wins: INTEGER, REAL, DATETIME, then TEXT. A column with no
    non-empty values is TEXT.
    """
    sample: list[str] = []
    for value in values:
        if value is None:
            continue
        stripped = str(value).strip()
        if not stripped:
            continue
        sample.append(stripped)
        if len(sample) >= sample_size:
            break

    if not sample:
        return ColumnType.TEXT

    if all(_INTEGER_RE.match(v) for v in sample):
        return ColumnType.INTEGER

    if all(_REAL_RE.match(v) for v in sample):
        return ColumnType.REAL

    if all(_is_datetime(v) for v in sample):
        return ColumnType.DATETIME

    return ColumnType.TEXT


_TYPE_ALIASES = {
    "INT": ColumnType.INTEGER,
    "BIGINT": ColumnType.INTEGER,
    "DECIMAL": ColumnType.REAL,
    "NUMERIC": ColumnType.REAL,
    "FLOAT": ColumnType.REAL,
    "DOUBLE": ColumnType.REAL,
    "TIMESTAMP": ColumnType.DATETIME,
    "DATE": ColumnType.DATETIME,
    "BOOL": ColumnType.BOOLEAN,
    "VARCHAR": ColumnType.TEXT,
    "STRING": ColumnType.TEXT,
}


def parse_column_type(value: ColumnType | str) -> ColumnType:
    """Map a caller-supplied type name onto a ColumnType. Unknown names are TEXT."""
    if isinstance(value, ColumnType):
        return value
    name = value.strip().upper().split("(", 1)[0].strip()
    if name in ColumnType.__members__:
        return ColumnType[name]
    return _TYPE_ALIASES.get(name, ColumnType.TEXT)
