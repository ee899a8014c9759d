"""
csvsql Core - Query engine.

Executes parsed statements against a TableStore. Execution is a pure
function of the store contents and the statement text: read-only, no
partial results, no retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from csvsql.core.statements import (
    Condition,
    PragmaTableInfo,
    SelectStatement,
    ShowTables,
    Statement,
    parse_statement,
)
from csvsql.core.table_store import Table, TableStore
from csvsql.exceptions import ColumnNotFoundException, TableNotFoundException

logger = logging.getLogger(__name__)

PRAGMA_COLUMNS = ["cid", "name", "type", "notnull", "dflt_value", "pk"]


@dataclass(frozen=True)
class QueryResult:
    columns: list[str]
    rows: list[list[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def _to_float(value: str) -> float | None:
    try:
        return float(value.strip())
    except ValueError:
        return None


def _numeric(compare: Callable[[float, float], bool]) -> Callable[[str, str], bool]:
    # Non-numeric operands never match; they do not raise.
    def matches(cell: str, literal: str) -> bool:
        left = _to_float(cell)
        right = _to_float(literal)
        if left is None or right is None:
            return False
        return compare(left, right)

    return matches


_MATCHERS: dict[str, Callable[[str, str], bool]] = {
    "=": lambda cell, literal: cell.lower() == literal.lower(),
    "!=": lambda cell, literal: cell.lower() != literal.lower(),
    ">": _numeric(lambda a, b: a > b),
    "<": _numeric(lambda a, b: a < b),
    ">=": _numeric(lambda a, b: a >= b),
    "<=": _numeric(lambda a, b: a <= b),
}


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


class QueryEngine:
    """Interprets the supported SQL subset over a TableStore."""

    def __init__(self, store: TableStore):
        self.store = store

    def execute(self, sql: str) -> QueryResult:
        statement = parse_statement(sql)
        return self.execute_statement(statement)

    def execute_statement(self, statement: Statement) -> QueryResult:
        if isinstance(statement, SelectStatement):
            return self._execute_select(statement)
        if isinstance(statement, PragmaTableInfo):
            return self._execute_pragma(statement)
        if isinstance(statement, ShowTables):
            return QueryResult(columns=["name"], rows=[[name] for name in self.store.list_tables()])
        raise TypeError(f"Unknown statement type: {type(statement).__name__}")

    def _require_table(self, name: str) -> Table:
        table = self.store.get_table(name)
        if table is None:
            raise TableNotFoundException(name)
        return table

    def _execute_select(self, statement: SelectStatement) -> QueryResult:
        table = self._require_table(statement.table)

        requested = list(statement.columns) if statement.columns is not None else table.column_names
        indices = []
        for name in requested:
            index = table.column_index(name)
            if index == -1:
                raise ColumnNotFoundException(table.name, name)
            indices.append(index)

        rows: Sequence[Sequence[str]] = table.rows
        if statement.where is not None:
            rows = self._filter(table, rows, statement.where)

        if statement.limit is not None:
            rows = rows[: statement.limit]

        projected = [[_cell(row, index) for index in indices] for row in rows]
        logger.debug(f"[query] SELECT {table.name}: {len(projected)} rows")
        return QueryResult(columns=requested, rows=projected)

    def _filter(self, table: Table, rows: Sequence[Sequence[str]], condition: Condition) -> list[Sequence[str]]:
        index = table.column_index(condition.column)
        if index == -1:
            raise ColumnNotFoundException(table.name, condition.column)

        matches = _MATCHERS[condition.operator]
        return [row for row in rows if matches(_cell(row, index), condition.value)]

    def _execute_pragma(self, statement: PragmaTableInfo) -> QueryResult:
        table = self._require_table(statement.table)
        rows = [
            [
                str(position),
                col.name,
                col.type.value,
                "0",
                "",
                "1" if col.primary_key else "0",
            ]
            for position, col in enumerate(table.columns)
        ]
        return QueryResult(columns=list(PRAGMA_COLUMNS), rows=rows)
