"""
csvsql Metrics Store.

In-process metrics collection for observability without external dependencies.
Tracks:
- Query latencies per statement kind (select, pragma, show_tables)
- Error counts by code (CsvsqlException.code), per kind and globally
- Table imports (count and rows imported)

Thread-safe via locks. Singleton accessor for the API layer.
"""

from __future__ import annotations

import statistics
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any


@dataclass
class QueryMetrics:
    """Metrics for one statement kind."""

    latencies_ms: list[float] = field(default_factory=list)
    error_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    call_count: int = 0
    last_called: datetime | None = None

    # Keep last N latencies to avoid unbounded memory
    MAX_LATENCIES = 1000

    def record_latency(self, ms: float) -> None:
        self.latencies_ms.append(ms)
        if len(self.latencies_ms) > self.MAX_LATENCIES:
            self.latencies_ms = self.latencies_ms[-self.MAX_LATENCIES :]
        self.call_count += 1
        self.last_called = datetime.now(timezone.utc)

    def record_error(self, code: str) -> None:
        self.error_counts[code] += 1
        self.last_called = datetime.now(timezone.utc)

    def get_percentiles(self) -> dict[str, float]:
        if not self.latencies_ms:
            return {}
        sorted_latencies = sorted(self.latencies_ms)
        n = len(sorted_latencies)
        return {
            "p50_ms": sorted_latencies[int(n * 0.5)],
            "p90_ms": sorted_latencies[int(n * 0.9)],
            "p99_ms": sorted_latencies[int(n * 0.99)] if n > 1 else sorted_latencies[-1],
            "mean_ms": statistics.mean(sorted_latencies),
            "max_ms": sorted_latencies[-1],
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_count": self.call_count,
            "last_called": self.last_called.isoformat() if self.last_called else None,
            **self.get_percentiles(),
            "errors": dict(self.error_counts),
        }


class MetricsStore:
    """
    Central metrics store.

    Thread-safe; one instance is shared by the API process.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._queries: dict[str, QueryMetrics] = defaultdict(QueryMetrics)
        self._global_errors: dict[str, int] = defaultdict(int)
        self._imports = 0
        self._rows_imported = 0
        self._started_at = datetime.now(timezone.utc)

    # -------------------------------------------------------------------------
    # Query Metrics
    # -------------------------------------------------------------------------

    def record_query_latency(self, kind: str, ms: float) -> None:
        """Record a successful statement execution."""
        with self._lock:
            self._queries[kind].record_latency(ms)

    def record_query_error(self, kind: str, code: str) -> None:
        """Record a failed statement for a kind."""
        with self._lock:
            self._queries[kind].record_error(code)
            self._global_errors[code] += 1

    # -------------------------------------------------------------------------
    # Global Errors / Imports
    # -------------------------------------------------------------------------

    def record_error(self, code: str) -> None:
        """Record an error not tied to a statement."""
        with self._lock:
            self._global_errors[code] += 1

    def record_import(self, row_count: int) -> None:
        with self._lock:
            self._imports += 1
            self._rows_imported += row_count

    # -------------------------------------------------------------------------
    # Summary / Export
    # -------------------------------------------------------------------------

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of all metrics.

        Returns a dict suitable for JSON serialization and the /metrics endpoint.
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            uptime_seconds = (now - self._started_at).total_seconds()
            return {
                "uptime_seconds": round(uptime_seconds, 1),
                "collected_at": now.isoformat(),
                "queries": {kind: metrics.to_dict() for kind, metrics in self._queries.items()},
                "global_errors": dict(self._global_errors),
                "imports": {
                    "count": self._imports,
                    "rows": self._rows_imported,
                },
            }

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        with self._lock:
            self._queries.clear()
            self._global_errors.clear()
            self._imports = 0
            self._rows_imported = 0
            self._started_at = datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Singleton accessor
# -----------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_metrics_store() -> MetricsStore:
    """Get the process-wide MetricsStore."""
    return MetricsStore()
