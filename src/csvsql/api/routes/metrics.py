"""
csvsql Metrics Endpoint.

Exposes observability metrics for monitoring and debugging.
"""

from fastapi import APIRouter

from csvsql.deps import require_metrics
from csvsql.observability import get_metrics_store

router = APIRouter(prefix="/api/v1", tags=["metrics"])


@router.get("/metrics", dependencies=[require_metrics])
def get_metrics() -> dict:
    """
    Get current metrics summary.

    Example response:
    ```json
    {
      "uptime_seconds": 3600.5,
      "collected_at": "2026-10-19T19:00:00Z",
      "queries": {
        "select": {"call_count": 150, "p50_ms": 0.4, "errors": {"COLUMN_NOT_FOUND": 3}}
      },
      "global_errors": {"TABLE_NOT_FOUND": 5},
      "imports": {"count": 4, "rows": 1200}
    }
    ```
    """
    return get_metrics_store().get_summary()
