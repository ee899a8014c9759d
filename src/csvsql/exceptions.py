"""
csvsql - Custom Exceptions.

Centralized exception handling with standardized error responses.
"""

from typing import Any
from uuid import UUID


class CsvsqlException(Exception):
    """Base exception for csvsql."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        request_id: UUID | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.request_id = request_id
        super().__init__(message)


class NotFoundException(CsvsqlException):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str | UUID):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type} not found: {resource_id}",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ValidationException(CsvsqlException):
    """Raised for validation errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None, status_code: int = 400):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status_code,
            details={"errors": errors} if errors else None,
        )


class FeatureDisabledException(CsvsqlException):
    """Raised when a feature flag is disabled."""

    def __init__(self, feature_name: str):
        super().__init__(
            code="FEATURE_DISABLED",
            message=f"Feature '{feature_name}' is currently disabled",
            status_code=503,
            details={"feature": feature_name},
        )


# =============================================================================
# Query errors
# =============================================================================


class QueryError(CsvsqlException):
    """Raised when a statement cannot be executed. Never retried."""

    def __init__(self, code: str, message: str, status_code: int = 400, details: dict[str, Any] | None = None):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details,
        )


class UnsupportedStatementException(QueryError):
    """Raised when a statement matches none of the recognized shapes."""

    def __init__(self, statement: str):
        super().__init__(
            code="UNSUPPORTED_STATEMENT",
            message="Query type not supported",
            details={"statement": statement},
        )


class TableNotFoundException(QueryError):
    """Raised when a statement references a table that is not in the store."""

    def __init__(self, table: str):
        super().__init__(
            code="TABLE_NOT_FOUND",
            message=f"Table '{table}' does not exist",
            status_code=404,
            details={"table": table},
        )


class ColumnNotFoundException(QueryError):
    """Raised when a referenced column does not exist in the table."""

    def __init__(self, table: str, column: str):
        super().__init__(
            code="COLUMN_NOT_FOUND",
            message=f"Column '{column}' does not exist in table '{table}'",
            details={"table": table, "column": column},
        )


class MalformedClauseException(QueryError):
    """Raised when a clause of an otherwise recognized statement cannot be parsed."""

    def __init__(self, clause: str, message: str | None = None):
        super().__init__(
            code="MALFORMED_CLAUSE",
            message=message or f"Could not parse {clause} clause",
            details={"clause": clause},
        )


# =============================================================================
# Connection errors
# =============================================================================


class NoActiveConnectionException(CsvsqlException):
    """Raised when a query is issued before any connection is active."""

    def __init__(self):
        super().__init__(
            code="NO_ACTIVE_CONNECTION",
            message="No active connection",
            status_code=409,
        )


class BackendNotImplementedException(CsvsqlException):
    """Raised when the active connection is not backed by the in-memory engine."""

    def __init__(self, connection_type: str):
        super().__init__(
            code="BACKEND_NOT_IMPLEMENTED",
            message=f"{connection_type} connections require backend implementation",
            status_code=501,
            details={"connection_type": connection_type},
        )
