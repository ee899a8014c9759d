"""
csvsql - API Schemas.

Pydantic models shared by the HTTP routes.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from csvsql.core.table_store import ColumnDescriptor, Table, TableSchema


# =============================================================================
# Error Responses
# =============================================================================


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional context")
    request_id: str | None = Field(default=None, description="Request ID for tracing")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: ErrorDetail


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    features: dict[str, bool]
    app_env: str
    table_count: int = Field(ge=0)


# =============================================================================
# Tables
# =============================================================================


class ColumnInfo(BaseModel):
    name: str
    type: str
    primary_key: bool = False

    @classmethod
    def from_descriptor(cls, column: ColumnDescriptor) -> "ColumnInfo":
        return cls(name=column.name, type=column.type.value, primary_key=column.primary_key)


class TableInfo(BaseModel):
    """Table summary returned after import and by the table endpoints."""

    name: str
    columns: list[ColumnInfo]
    row_count: int = Field(ge=0)

    @classmethod
    def from_table(cls, table: Table) -> "TableInfo":
        return cls(
            name=table.name,
            columns=[ColumnInfo.from_descriptor(c) for c in table.columns],
            row_count=table.row_count,
        )


class ImportResponse(BaseModel):
    """Response from the CSV import endpoint."""

    imported: bool
    filename: str
    size_bytes: int = Field(ge=0)
    table: TableInfo | None = None


class TableListResponse(BaseModel):
    tables: list[str]


class SchemaTable(BaseModel):
    name: str
    columns: list[ColumnInfo]

    @classmethod
    def from_schema(cls, schema: TableSchema) -> "SchemaTable":
        return cls(name=schema.name, columns=[ColumnInfo.from_descriptor(c) for c in schema.columns])


class SchemaResponse(BaseModel):
    tables: list[SchemaTable]


# =============================================================================
# Query
# =============================================================================


class QueryRequest(BaseModel):
    """A single statement; batches are not accepted."""

    query: str = Field(..., min_length=1)


class QueryResultResponse(BaseModel):
    columns: list[str]
    rows: list[list[str]]
    row_count: int = Field(ge=0)
    execution_time_ms: float = Field(ge=0)


class InlineColumn(BaseModel):
    name: str
    type: str = "TEXT"


class InlineTableIn(BaseModel):
    name: str = Field(..., min_length=1)
    columns: list[InlineColumn]
    data: list[list[str]] = Field(default_factory=list)


class InlineQueryRequest(BaseModel):
    """Query over tables sent with the request."""

    query: str = Field(..., min_length=1)
    tables: list[InlineTableIn] = Field(default_factory=list)


# =============================================================================
# Connections
# =============================================================================


class ConnectionCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: Literal["csv", "postgresql", "mysql", "sqlite"]
    config: dict[str, Any] = Field(default_factory=dict)


class ConnectionOut(BaseModel):
    id: str
    name: str
    type: str
    connected: bool
    active: bool = False
