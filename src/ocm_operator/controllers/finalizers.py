"""Finalizer management for reconciled resources."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kubernetes import client

from ..constants import FINALIZER
from ..utils.errors import FinalizerError, StoreConflictError

if TYPE_CHECKING:
    from .request import Request


def _persist(request: Request, finalizers: list[str], action: str) -> None:
    resource = request.resource
    store = request.controller.store
    try:
        updated = store.patch_metadata(
            resource.kind,
            resource.metadata.namespace,
            resource.metadata.name,
            finalizers=finalizers,
            resource_version=resource.metadata.resource_version,
        )
    except (StoreConflictError, client.exceptions.ApiException) as e:
        raise FinalizerError(f"unable to {action} finalizer on {request.key}: {e}") from e

    meta = (updated or {}).get("metadata") or {}
    resource.metadata.finalizers = list(meta.get("finalizers") or finalizers)
    resource.metadata.resource_version = meta.get("resourceVersion", resource.metadata.resource_version)


def add_finalizer(request: Request) -> bool:
    """Ensure the finalizer is present before any external side effect.

    Persists only when the token is missing.

    Returns:
        True if the finalizer was added

    Raises:
        FinalizerError: The patch failed (for example on a stale resourceVersion)
    """
    finalizers = request.resource.metadata.finalizers
    if FINALIZER in finalizers:
        return False

    _persist(request, [*finalizers, FINALIZER], "add")
    return True


def remove_finalizer(request: Request) -> bool:
    """Remove the finalizer once external teardown has completed.

    Returns:
        True if the finalizer was removed

    Raises:
        FinalizerError: The patch failed
    """
    finalizers = request.resource.metadata.finalizers
    if FINALIZER not in finalizers:
        return False

    _persist(request, [f for f in finalizers if f != FINALIZER], "remove")
    return True
