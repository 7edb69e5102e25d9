"""Utility functions for the OCM Operator."""

from .conditions import get_condition, is_condition_true, set_ready_condition, update_condition
from .context import (
    ReconcileScope,
    current_scope,
    get_context_dict,
    get_correlation_id,
    new_correlation_id,
    reconcile_scope,
    set_trigger,
)
from .events import emit_event
from .rate_limit import rate_limit_k8s, rate_limit_ocm
from .secrets import ResolvedData, resolve_config_map, resolve_secret

__all__ = [
    "update_condition",
    "get_condition",
    "is_condition_true",
    "set_ready_condition",
    "emit_event",
    "ResolvedData",
    "resolve_secret",
    "resolve_config_map",
    "rate_limit_k8s",
    "rate_limit_ocm",
    "ReconcileScope",
    "current_scope",
    "get_correlation_id",
    "new_correlation_id",
    "reconcile_scope",
    "set_trigger",
    "get_context_dict",
]
