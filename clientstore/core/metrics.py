"""Prometheus metrics for the client store.

Every metric the store records is defined here; the store modules import
them and increment/observe at the point of action. Exposing them (an
HTTP /metrics endpoint, a push gateway) is left to the embedding
process, which owns the registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

STORE_OPERATIONS = Counter(
    "client_store_operations_total",
    "Client store operations by outcome",
    # operation: create|get
    # outcome: ok|not_found|duplicate|serialization_error|storage_error|timeout|cancelled|error
    ["operation", "outcome"],
)

STORE_OPERATION_DURATION = Histogram(
    "client_store_operation_duration_seconds",
    "Client store operation duration in seconds",
    ["operation"],
    # Point lookups on an indexed column: most land under 10ms
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

TABLES_CREATED = Counter(
    "client_store_tables_created_total",
    "Client tables created by store provisioning",
)
