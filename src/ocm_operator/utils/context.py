"""Per-reconcile context carried into log lines and trace spans."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator

from opentelemetry import trace


@dataclass(frozen=True)
class ReconcileScope:
    """Identity of the reconcile running in the current context."""

    correlation_id: str
    resource_key: str = ""
    trigger: str = ""

    def as_dict(self) -> dict[str, str]:
        fields = {
            "correlation_id": self.correlation_id,
            "resource_key": self.resource_key,
            "trigger": self.trigger,
        }
        return {k: v for k, v in fields.items() if v}


_scope: contextvars.ContextVar[ReconcileScope | None] = contextvars.ContextVar(
    "reconcile_scope", default=None
)


def new_correlation_id() -> str:
    """Generate a short correlation ID for one reconcile."""
    return uuid.uuid4().hex[:12]


def current_scope() -> ReconcileScope | None:
    return _scope.get()


def get_correlation_id() -> str | None:
    scope = _scope.get()
    return scope.correlation_id if scope else None


@contextmanager
def reconcile_scope(resource_key: str, correlation_id: str | None = None) -> Iterator[ReconcileScope]:
    """Bind a reconcile to the current context for the duration of a block.

    Args:
        resource_key: ``namespace/name`` of the reconciled resource
        correlation_id: ID to use; a new one is generated when omitted

    Yields:
        The active scope
    """
    scope = ReconcileScope(correlation_id=correlation_id or new_correlation_id(), resource_key=resource_key)
    token = _scope.set(scope)
    try:
        yield scope
    finally:
        _scope.reset(token)


def set_trigger(trigger: str) -> None:
    """Record the classified trigger on the active scope, if there is one."""
    scope = _scope.get()
    if scope is not None:
        _scope.set(replace(scope, trigger=trigger))


def current_trace_ids() -> dict[str, str]:
    """Trace and span IDs of the recording span, or an empty dict."""
    span = trace.get_current_span()
    if not span.is_recording():
        return {}
    span_context = span.get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Context fields for a log line, followed by ``additional``."""
    ctx: dict[str, Any] = {}
    scope = _scope.get()
    if scope is not None:
        ctx.update(scope.as_dict())
    ctx.update(current_trace_ids())
    if additional:
        ctx.update(additional)
    return ctx
