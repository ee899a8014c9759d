"""
csvsql Query - Router.

Runs one statement of the supported SQL subset per request.
"""

import logging
import time

from fastapi import APIRouter

from csvsql.core.csv_query import InlineTable, run_inline_query
from csvsql.deps import DatabaseServiceDep, require_query, require_stateless_query
from csvsql.exceptions import QueryError
from csvsql.observability import get_metrics_store
from csvsql.schemas import InlineQueryRequest, QueryRequest, QueryResultResponse

router = APIRouter(prefix="/api/v1", tags=["query"])

logger = logging.getLogger(__name__)


@router.post("/query", response_model=QueryResultResponse, dependencies=[require_query])
async def execute_query(body: QueryRequest, service: DatabaseServiceDep):
    """
    Execute a statement against the active connection.

    Supported:
    - `SELECT <cols|*> FROM <table> [WHERE <col> <op> <value>] [LIMIT <n>]`
    - `PRAGMA table_info(<table>)`
    - `SHOW TABLES` / anything referencing `sqlite_master`
    """
    result = service.execute_query(body.query)
    return QueryResultResponse(
        columns=result.columns,
        rows=result.rows,
        row_count=result.row_count,
        execution_time_ms=result.execution_time_ms,
    )


@router.post("/csv-query", response_model=QueryResultResponse, dependencies=[require_stateless_query])
async def execute_inline_query(body: InlineQueryRequest):
    """Execute a statement against tables supplied in the request body."""
    start = time.perf_counter()
    tables = [
        InlineTable(
            name=t.name,
            columns=[(c.name, c.type) for c in t.columns],
            data=t.data,
        )
        for t in body.tables
    ]
    try:
        result = run_inline_query(body.query, tables)
    except QueryError as e:
        get_metrics_store().record_query_error("inline", e.code)
        raise

    elapsed_ms = (time.perf_counter() - start) * 1000
    get_metrics_store().record_query_latency("inline", elapsed_ms)
    logger.info(f"[query] inline over {len(tables)} tables: {result.row_count} rows")

    return QueryResultResponse(
        columns=result.columns,
        rows=result.rows,
        row_count=result.row_count,
        execution_time_ms=round(elapsed_ms, 3),
    )
