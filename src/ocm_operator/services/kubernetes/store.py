"""Read-modify-write access to the reconciled custom resources."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client

from ... import metrics
from ...registry import Registry
from ...utils.errors import StoreConflictError
from ...utils.rate_limit import is_rate_limit_status, rate_limit_k8s, record_rate_limit_hit


class ResourceStore:
    """Persisted source of truth for the watched resources.

    Every read goes to the API server; nothing is cached between reconciles.
    Writes carry the resourceVersion they were computed from so a concurrent
    change surfaces as StoreConflictError instead of being overwritten.
    """

    def __init__(self, api: client.CustomObjectsApi, registry: Registry) -> None:
        self.api = api
        self.registry = registry

    def _call(self, operation: str, fn: Any, **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = rate_limit_k8s(fn)(**kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except client.exceptions.ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            if is_rate_limit_status(e.status, str(e.body or "")):
                record_rate_limit_hit("k8s")
            if e.status == 409:
                raise StoreConflictError(f"{operation} conflict: {e.reason}") from e
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Fetch a resource, returning None when it no longer exists."""
        rk = self.registry.get(kind)
        try:
            return self._call(
                "get",
                self.api.get_namespaced_custom_object,
                group=rk.group,
                version=rk.version,
                namespace=namespace,
                plural=rk.plural,
                name=name,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise

    def patch_metadata(
        self,
        kind: str,
        namespace: str,
        name: str,
        finalizers: list[str],
        resource_version: str,
    ) -> dict[str, Any]:
        """Replace the finalizer list, failing on a stale resourceVersion."""
        rk = self.registry.get(kind)
        body = {"metadata": {"finalizers": finalizers, "resourceVersion": resource_version}}
        return self._call(
            "patch_metadata",
            self.api.patch_namespaced_custom_object,
            group=rk.group,
            version=rk.version,
            namespace=namespace,
            plural=rk.plural,
            name=name,
            body=body,
        )

    def patch_status(
        self,
        kind: str,
        namespace: str,
        name: str,
        status: dict[str, Any],
        resource_version: str,
    ) -> dict[str, Any]:
        """Write the status subresource, failing on a stale resourceVersion."""
        rk = self.registry.get(kind)
        body = {"metadata": {"resourceVersion": resource_version}, "status": status}
        return self._call(
            "patch_status",
            self.api.patch_namespaced_custom_object_status,
            group=rk.group,
            version=rk.version,
            namespace=namespace,
            plural=rk.plural,
            name=name,
            body=body,
        )
