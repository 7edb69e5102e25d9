"""Shared utilities for handlers."""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Any

import kopf
from kubernetes import client, config

from ..config import OperatorConfig
from ..controllers.base import Controller
from ..controllers.request import ReconcileContext
from ..registry import Registry
from ..services.kubernetes.store import ResourceStore
from ..services.ocm.client import OCMClient
from ..utils.context import reconcile_scope
from ..utils.errors import sanitize_exception

logger = logging.getLogger(__name__)

# kopf runs the resync timer alongside the change handlers of the same object;
# one lock per resource key keeps reconciles of a key from overlapping
_key_locks: weakref.WeakValueDictionary[tuple[str, str], threading.Lock] = weakref.WeakValueDictionary()
_key_locks_guard = threading.Lock()


def key_lock(namespace: str, name: str) -> threading.Lock:
    """Return the lock serializing reconciles of one resource key."""
    with _key_locks_guard:
        lock = _key_locks.get((namespace, name))
        if lock is None:
            lock = threading.Lock()
            _key_locks[(namespace, name)] = lock
        return lock


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client."""
    load_kube_config()
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client for secret and config map lookups."""
    load_kube_config()
    return client.CoreV1Api()


def get_ocm_client(settings: OperatorConfig) -> OCMClient:
    """Build the OCM client from operator configuration."""
    if not settings.ocm_token:
        raise kopf.PermanentError("OCM_TOKEN is not set; the operator cannot authenticate to OCM")
    return OCMClient(
        base_url=settings.ocm_api_url,
        token_url=settings.ocm_token_url,
        offline_token=settings.ocm_token,
        client_id=settings.ocm_client_id,
        timeout=settings.ocm_request_timeout_seconds,
    )


def build_controller(
    controller_type: type[Controller],
    settings: OperatorConfig,
    registry: Registry,
) -> Controller:
    """Wire a controller to live Kubernetes and OCM clients."""
    return controller_type(
        store=ResourceStore(get_k8s_client(), registry),
        ocm=get_ocm_client(settings),
        core_api=get_core_client(),
        config=settings,
        registry=registry,
    )


def run_reconcile(
    controller: Controller,
    namespace: str,
    name: str,
    retry: int = 0,
) -> None:
    """Reconcile one resource and translate the result for kopf.

    Raises:
        kopf.TemporaryError: The resource must be reconciled again after a delay
        kopf.PermanentError: The failure cannot be fixed by retrying
    """
    with key_lock(namespace, name), reconcile_scope(f"{namespace}/{name}") as scope:
        context = ReconcileContext(
            timeout=controller.config.reconcile_timeout_seconds,
            retry=retry,
            correlation_id=scope.correlation_id,
        )
        result = controller.reconcile(namespace, name, context)

    if result.fatal:
        raise kopf.PermanentError(sanitize_exception(result.error))
    if result.requeue:
        message = sanitize_exception(result.error) if result.error else "requeue requested"
        raise kopf.TemporaryError(message, delay=result.requeue_after)


def resource_key(meta: dict[str, Any]) -> tuple[str, str]:
    return meta.get("namespace", "default"), meta.get("name", "")
