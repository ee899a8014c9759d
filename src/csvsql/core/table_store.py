from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Iterable, Sequence

from csvsql.core.type_inference import DEFAULT_SAMPLE_SIZE, ColumnType, infer_column_type, parse_column_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    type: ColumnType
    primary_key: bool = False


@dataclass(frozen=True)
class Table:
    name: str
    columns: tuple[ColumnDescriptor, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_index(self, name: str) -> int:
        """Position of a column by exact name, or -1."""
        for index, col in enumerate(self.columns):
            if col.name == name:
                return index
        return -1


@dataclass(frozen=True)
class TableSchema:
    name: str
    columns: tuple[ColumnDescriptor, ...]


def _is_primary_key(index: int, name: str) -> bool:
    # Naming heuristic only; uniqueness is never checked.
    return index == 0 and "id" in name.lower()


def _cell(row: Sequence[str], index: int) -> str:
    if index < len(row):
        value = row[index]
        return "" if value is None else str(value)
    return ""


class TableStore:
    """
    Named in-memory tables.

    Every read and mutation holds the store lock, so a query always sees a
    quiescent table. Callers only ever receive frozen snapshots.
    """

    def __init__(self, type_sample_size: int = DEFAULT_SAMPLE_SIZE):
        self._lock = RLock()
        self._tables: dict[str, Table] = {}
        self._type_sample_size = type_sample_size

    def import_table(
        self,
        name: str,
        header_row: Sequence[str],
        data_rows: Iterable[Sequence[str]],
    ) -> Table | None:
        """
        Create a table from a CSV header and its data rows.

        Any table already registered under ``name`` is dropped first. An
        empty header is a no-op and returns None.
        """
        if not header_row:
            return None

        rows = [tuple("" if v is None else str(v) for v in row) for row in data_rows]
        headers = [str(h).strip() for h in header_row]

        columns = tuple(
            ColumnDescriptor(
                name=header,
                type=infer_column_type(
                    (_cell(row, index) for row in rows),
                    sample_size=self._type_sample_size,
                ),
                primary_key=_is_primary_key(index, header),
            )
            for index, header in enumerate(headers)
        )

        table = Table(name=name, columns=columns, rows=tuple(rows))
        with self._lock:
            self._tables.pop(name, None)
            self._tables[name] = table

        logger.info(f"[import] Table '{name}': {len(columns)} columns, {len(rows)} rows")
        return table

    def import_csv_rows(self, name: str, csv_rows: Sequence[Sequence[str]]) -> Table | None:
        """Import parsed CSV where the first row is the header."""
        if not csv_rows:
            return None
        return self.import_table(name, csv_rows[0], csv_rows[1:])

    def create_table(
        self,
        name: str,
        columns: Sequence[tuple[str, ColumnType | str]],
        rows: Iterable[Sequence[str]] = (),
    ) -> Table:
        """Register a table with caller-defined column types."""
        descriptors = tuple(
            ColumnDescriptor(
                name=col_name,
                type=parse_column_type(col_type),
                primary_key=_is_primary_key(index, col_name),
            )
            for index, (col_name, col_type) in enumerate(columns)
        )
        table = Table(
            name=name,
            columns=descriptors,
            rows=tuple(tuple("" if v is None else str(v) for v in row) for row in rows),
        )
        with self._lock:
            self._tables.pop(name, None)
            self._tables[name] = table
        return table

    def drop_table(self, name: str) -> bool:
        with self._lock:
            dropped = self._tables.pop(name, None) is not None
        if dropped:
            logger.info(f"[import] Dropped table '{name}'")
        return dropped

    def get_table(self, name: str) -> Table | None:
        with self._lock:
            return self._tables.get(name)

    def list_tables(self) -> list[str]:
        with self._lock:
            return list(self._tables.keys())

    def describe_table(self, name: str) -> list[ColumnDescriptor] | None:
        table = self.get_table(name)
        if table is None:
            return None
        return list(table.columns)

    def get_schema(self) -> list[TableSchema]:
        with self._lock:
            return [TableSchema(name=t.name, columns=t.columns) for t in self._tables.values()]

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()
