"""Prometheus metrics for the OCM Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "ocm_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "trigger", "result"],
)

reconcile_duration_seconds = Histogram(
    "ocm_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind", "trigger"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

phase_duration_seconds = Histogram(
    "ocm_operator_phase_duration_seconds",
    "Duration of individual reconcile phases in seconds",
    ["kind", "phase"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

error_total = Counter(
    "ocm_operator_error_total",
    "Total number of reconcile errors by type",
    ["kind", "error_type"],
)

# Identity provider operation metrics
identity_provider_operations_total = Counter(
    "ocm_operator_identity_provider_operations_total",
    "Total number of identity provider operations against OCM",
    ["operation", "result"],
)

# API call metrics
api_call_total = Counter(
    "ocm_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "ocm_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "ocm_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
