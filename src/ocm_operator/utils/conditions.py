"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_READY, REASON_RECONCILED


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Conditions are keyed by type. An existing condition is only replaced when
    its status, reason or message differ, and its lastTransitionTime only
    moves when the status itself changes.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": _now(),
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is None:
        conditions.append(new_condition)
        return conditions

    existing = conditions[existing_idx]
    if (
        existing.get("status") == status
        and existing.get("reason") == reason
        and existing.get("message") == message
    ):
        return conditions

    if existing.get("status") == status and existing.get("lastTransitionTime"):
        new_condition["lastTransitionTime"] = existing["lastTransitionTime"]
    conditions[existing_idx] = new_condition

    return conditions


def get_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if present."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_condition_true(conditions: list[dict[str, Any]], condition_type: str) -> bool:
    """Check whether the condition of the given type has status True."""
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == "True"


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    reason: str | None = None,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    if reason is None:
        reason = REASON_RECONCILED if status else "NotReady"
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        reason,
        message,
        observed_generation,
    )
