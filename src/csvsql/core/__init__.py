"""
csvsql Core - in-memory CSV tables and the SQL-subset interpreter.

Components:
- type_inference: column type guessing from sampled cells
- table_store: named tables, replaced on re-import
- statements: regex parser producing typed statements
- query_engine: SELECT / PRAGMA table_info / SHOW TABLES execution
- database_service: connection registry and query entry point
- csv_query: one-shot queries over caller-supplied tables
"""

from csvsql.core.database_service import DatabaseConnection, DatabaseService, QueryResponse
from csvsql.core.query_engine import QueryEngine, QueryResult
from csvsql.core.table_store import ColumnDescriptor, Table, TableSchema, TableStore
from csvsql.core.type_inference import ColumnType, infer_column_type

__all__ = [
    "ColumnDescriptor",
    "ColumnType",
    "DatabaseConnection",
    "DatabaseService",
    "QueryEngine",
    "QueryResponse",
    "QueryResult",
    "Table",
    "TableSchema",
    "TableStore",
    "infer_column_type",
]
