"""
csvsql Core - Statement parser.

Turns one statement of the supported SQL subset into a typed statement
object. Matching is regex based and keyword-insensitive:

- SELECT <cols|*> FROM <table> [WHERE <col> <op> <literal>] [LIMIT <n>]
- PRAGMA table_info(<table>)
- anything mentioning SHOW TABLES or sqlite_master

Everything else raises UnsupportedStatementException.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from csvsql.exceptions import MalformedClauseException, UnsupportedStatementException

_QUOTE_CHARS = "`\"'"

_FROM_RE = re.compile(r"\bfrom\s+([`\"']?)(\w+)\1", re.IGNORECASE)
_SELECT_RE = re.compile(r"^\s*select\s+(.*?)\s+from\b", re.IGNORECASE | re.DOTALL)
_WHERE_RE = re.compile(
    r"\bwhere\s+(.+?)(?=\s+order\s+by\b|\s+limit\b|\s*;?\s*$)",
    re.IGNORECASE | re.DOTALL,
)
_CONDITION_RE = re.compile(
    r"""^(?P<column>`[^`]+`|"[^"]+"|\w+)\s*
        (?P<op>!=|>=|<=|=|>|<)\s*
        (?:'(?P<single>[^']*)'|"(?P<double>[^"]*)"|(?P<bare>[^\s'"]+))\s*$""",
    re.VERBOSE | re.DOTALL,
)
_LIMIT_RE = re.compile(r"\blimit\s+(\S+?)\s*;?\s*$", re.IGNORECASE)
_UNSUPPORTED_CLAUSE_RE = re.compile(r"\b(join|group\s+by|order\s+by|having|union)\b", re.IGNORECASE)
_PRAGMA_RE = re.compile(
    r"^\s*pragma\s+table_info\s*\(\s*([`\"']?)(\w+)\1\s*\)\s*;?\s*$",
    re.IGNORECASE,
)
_SHOW_TABLES_RE = re.compile(r"show\s+tables|sqlite_master", re.IGNORECASE)
_LITERAL_RE = re.compile(r"'[^']*'|\"[^\"]*\"")


@dataclass(frozen=True)
class Condition:
    column: str
    operator: str
    value: str


@dataclass(frozen=True)
class SelectStatement:
    table: str
    # None means "*"
    columns: tuple[str, ...] | None
    where: Condition | None = None
    limit: int | None = None


@dataclass(frozen=True)
class PragmaTableInfo:
    table: str


@dataclass(frozen=True)
class ShowTables:
    pass


Statement = Union[SelectStatement, PragmaTableInfo, ShowTables]


def statement_kind(statement: Statement) -> str:
    """Short label used for logs and metrics."""
    if isinstance(statement, SelectStatement):
        return "select"
    if isinstance(statement, PragmaTableInfo):
        return "pragma"
    return "show_tables"


def _strip_quotes(name: str) -> str:
    return name.strip().strip(_QUOTE_CHARS)


def _parse_columns(clause: str) -> tuple[str, ...] | None:
    clause = clause.strip()
    if clause == "*":
        return None
    columns = tuple(_strip_quotes(col) for col in clause.split(","))
    if not all(columns):
        raise MalformedClauseException("SELECT", f"Empty column name in SELECT clause: '{clause}'")
    return columns


def _mask_literals(sql: str) -> str:
    """Blank out quoted literal contents, keeping every offset unchanged."""
    return _LITERAL_RE.sub(lambda m: m.group(0)[0] + "_" * (len(m.group(0)) - 2) + m.group(0)[-1], sql)


def _parse_where(sql: str, masked: str) -> Condition | None:
    match = _WHERE_RE.search(masked)
    if not match:
        return None

    start, end = match.span(1)
    text = sql[start:end].strip()
    condition = _CONDITION_RE.match(text)
    if not condition:
        raise MalformedClauseException("WHERE", f"Could not parse WHERE clause: '{text}'")

    value = condition.group("single")
    if value is None:
        value = condition.group("double")
    if value is None:
        value = condition.group("bare")

    return Condition(
        column=_strip_quotes(condition.group("column")),
        operator=condition.group("op"),
        value=value,
    )


def _parse_limit(sql: str, masked: str) -> int | None:
    match = _LIMIT_RE.search(masked)
    if not match:
        return None
    start, end = match.span(1)
    count = sql[start:end]
    if not count.isdigit():
        raise MalformedClauseException("LIMIT", f"LIMIT expects a row count, got '{count}'")
    return int(count)


def parse_select(sql: str) -> SelectStatement:
    # Clause boundaries are located on the masked text so keywords inside
    # quoted literals never end a clause early.
    masked = _mask_literals(sql)

    unsupported = _UNSUPPORTED_CLAUSE_RE.search(masked)
    if unsupported:
        clause = " ".join(unsupported.group(1).upper().split())
        raise MalformedClauseException(clause, f"{clause} is not supported")

    from_match = _FROM_RE.search(sql)
    if not from_match:
        raise MalformedClauseException("FROM", "Could not parse table name from query")

    select_match = _SELECT_RE.match(sql)
    if not select_match:
        raise MalformedClauseException("SELECT", "Could not parse SELECT clause")

    return SelectStatement(
        table=from_match.group(2),
        columns=_parse_columns(select_match.group(1)),
        where=_parse_where(sql, masked),
        limit=_parse_limit(sql, masked),
    )


def parse_pragma(sql: str) -> PragmaTableInfo:
    match = _PRAGMA_RE.match(sql)
    if not match:
        raise MalformedClauseException("PRAGMA", "Could not parse PRAGMA statement")
    return PragmaTableInfo(table=match.group(2))


def parse_statement(sql: str) -> Statement:
    """Parse a single statement of the supported subset."""
    trimmed = sql.strip()
    lowered = trimmed.lower()

    if lowered.startswith("select") and not _SHOW_TABLES_RE.search(trimmed):
        return parse_select(trimmed)

    if lowered.startswith("pragma"):
        return parse_pragma(trimmed)

    if _SHOW_TABLES_RE.search(trimmed):
        return ShowTables()

    raise UnsupportedStatementException(trimmed)
