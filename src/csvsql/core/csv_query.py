"""
csvsql Core - Stateless CSV query.

Runs one statement against tables supplied with the request instead of a
long-lived store. Table names are registered lower-cased and looked up
case-insensitively.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from csvsql.core.query_engine import QueryEngine, QueryResult
from csvsql.core.statements import SelectStatement, PragmaTableInfo, parse_statement
from csvsql.core.table_store import TableStore


@dataclass(frozen=True)
class InlineTable:
    name: str
    columns: Sequence[tuple[str, str]]
    data: Sequence[Sequence[str]]


def run_inline_query(query: str, tables: Sequence[InlineTable]) -> QueryResult:
    store = TableStore()
    for table in tables:
        store.create_table(table.name.lower(), table.columns, table.data)

    statement = parse_statement(query)
    if isinstance(statement, (SelectStatement, PragmaTableInfo)):
        statement = replace(statement, table=statement.table.lower())

    return QueryEngine(store).execute_statement(statement)
