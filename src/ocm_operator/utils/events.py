"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_IDP_CREATED,
    EVENT_REASON_IDP_DELETED,
    EVENT_REASON_IDP_UPDATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (apiVersion, kind and metadata are required)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any], trigger: str) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, f"Reconciliation started ({trigger})")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_identity_provider_created(body: dict[str, Any], name: str, cluster_id: str) -> None:
    """Emit identity provider created event."""
    emit_event(body, EVENT_REASON_IDP_CREATED, f"Identity provider {name} created on cluster {cluster_id}")


def emit_identity_provider_updated(body: dict[str, Any], name: str, cluster_id: str) -> None:
    """Emit identity provider updated event."""
    emit_event(body, EVENT_REASON_IDP_UPDATED, f"Identity provider {name} updated on cluster {cluster_id}")


def emit_identity_provider_deleted(body: dict[str, Any], name: str, cluster_id: str) -> None:
    """Emit identity provider deleted event."""
    emit_event(body, EVENT_REASON_IDP_DELETED, f"Identity provider {name} deleted from cluster {cluster_id}")
