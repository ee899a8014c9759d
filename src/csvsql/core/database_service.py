"""
csvsql Core - Database service.

Front door used by the API layer: keeps a registry of connections, imports
CSV data into the in-memory engine, and runs queries against whichever
connection is active. Only "csv" connections are served here; other
connection types can be registered but not queried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Literal, Sequence
from uuid import uuid4

from csvsql.core.csv_reader import DEFAULT_ENCODINGS, read_csv_rows
from csvsql.core.query_engine import QueryEngine
from csvsql.core.statements import parse_statement, statement_kind
from csvsql.core.table_store import ColumnDescriptor, Table, TableSchema, TableStore
from csvsql.core.type_inference import DEFAULT_SAMPLE_SIZE
from csvsql.exceptions import (
    BackendNotImplementedException,
    CsvsqlException,
    NoActiveConnectionException,
    NotFoundException,
)
from csvsql.observability import MetricsStore

logger = logging.getLogger(__name__)

DatabaseType = Literal["csv", "postgresql", "mysql", "sqlite"]

CSV_CONNECTION_NAME = "CSV Data"


@dataclass
class DatabaseConnection:
    id: str
    name: str
    type: DatabaseType
    connected: bool = False
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryResponse:
    columns: list[str]
    rows: list[list[str]]
    row_count: int
    execution_time_ms: float


class DatabaseService:
    """
    Connection registry plus the in-memory CSV engine.

    One instance per process or session; the owner passes it to whatever
    needs it. Nothing here is global.
    """

    def __init__(
        self,
        store: TableStore | None = None,
        metrics: MetricsStore | None = None,
        type_sample_size: int = DEFAULT_SAMPLE_SIZE,
        csv_encodings: Sequence[str] = DEFAULT_ENCODINGS,
    ):
        self.store = store or TableStore(type_sample_size=type_sample_size)
        self.engine = QueryEngine(self.store)
        self.metrics = metrics
        self.csv_encodings = tuple(csv_encodings)
        self._lock = RLock()
        self._connections: dict[str, DatabaseConnection] = {}
        self._active_connection: str | None = None

    # -------------------------------------------------------------------------
    # Connection management
    # -------------------------------------------------------------------------

    def add_connection(self, name: str, type: DatabaseType, config: dict[str, Any] | None = None) -> str:
        connection = DatabaseConnection(id=str(uuid4()), name=name, type=type, config=config or {})
        with self._lock:
            self._connections[connection.id] = connection
        logger.info(f"[connections] Added {type} connection '{name}' ({connection.id})")
        return connection.id

    def set_active_connection(self, connection_id: str) -> DatabaseConnection:
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                raise NotFoundException("connection", connection_id)
            self._active_connection = connection_id
            connection.connected = True
            return connection

    def get_active_connection(self) -> DatabaseConnection | None:
        with self._lock:
            if self._active_connection is None:
                return None
            return self._connections.get(self._active_connection)

    def get_all_connections(self) -> list[DatabaseConnection]:
        with self._lock:
            return list(self._connections.values())

    def _ensure_csv_connection(self) -> DatabaseConnection:
        with self._lock:
            csv_connection = next((c for c in self._connections.values() if c.type == "csv"), None)
            if csv_connection is None:
                connection_id = self.add_connection(CSV_CONNECTION_NAME, "csv")
                csv_connection = self._connections[connection_id]
            return self.set_active_connection(csv_connection.id)

    # -------------------------------------------------------------------------
    # CSV import
    # -------------------------------------------------------------------------

    def import_csv_data(self, file_name: str, table_name: str, csv_rows: Sequence[Sequence[str]]) -> Table | None:
        """Import parsed CSV rows (header first) and activate the CSV connection."""
        table = self.store.import_csv_rows(table_name, csv_rows)
        if table is None:
            logger.info(f"[import] {file_name}: no rows, nothing imported")
            return None
        if self.metrics is not None:
            self.metrics.record_import(table.row_count)
        self._ensure_csv_connection()
        return table

    def import_csv_bytes(self, file_name: str, table_name: str, content: bytes) -> Table | None:
        rows = read_csv_rows(content, encodings=self.csv_encodings)
        return self.import_csv_data(file_name, table_name, rows)

    def drop_table(self, table_name: str) -> bool:
        return self.store.drop_table(table_name)

    def list_tables(self) -> list[str]:
        return self.store.list_tables()

    def describe_table(self, table_name: str) -> list[ColumnDescriptor] | None:
        return self.store.describe_table(table_name)

    # -------------------------------------------------------------------------
    # Schema / query
    # -------------------------------------------------------------------------

    def _require_csv_connection(self) -> DatabaseConnection:
        connection = self.get_active_connection()
        if connection is None:
            raise NoActiveConnectionException()
        if connection.type != "csv":
            raise BackendNotImplementedException(connection.type)
        return connection

    def get_schema(self) -> list[TableSchema]:
        connection = self.get_active_connection()
        if connection is None:
            return []
        self._require_csv_connection()
        return self.store.get_schema()

    def execute_query(self, sql: str) -> QueryResponse:
        self._require_csv_connection()

        start = time.perf_counter()
        kind = "unparsed"
        try:
            statement = parse_statement(sql)
            kind = statement_kind(statement)
            result = self.engine.execute_statement(statement)
        except CsvsqlException as e:
            logger.warning(f"[query] {e.code}: {e.message}")
            if self.metrics is not None:
                self.metrics.record_query_error(kind, e.code)
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        if self.metrics is not None:
            self.metrics.record_query_latency(kind, elapsed_ms)
        logger.info(f"[query] {kind}: {result.row_count} rows in {elapsed_ms:.1f}ms")

        return QueryResponse(
            columns=result.columns,
            rows=result.rows,
            row_count=result.row_count,
            execution_time_ms=round(elapsed_ms, 3),
        )
