"""
csvsql Observability Module.

Provides in-process metrics collection for queries and errors.
"""

from csvsql.observability.metrics import MetricsStore, get_metrics_store

__all__ = ["MetricsStore", "get_metrics_store"]
