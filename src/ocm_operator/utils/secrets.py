"""Utilities for reading referenced Kubernetes secrets and config maps."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field

from kubernetes import client

from .rate_limit import rate_limit_k8s


@dataclass(frozen=True)
class ResolvedData:
    """Data resolved from a secret or config map reference."""

    found: bool
    data: dict[str, bytes] = field(default_factory=dict)

    def get(self, key: str) -> bytes | None:
        """Return the value stored under ``key`` or None."""
        return self.data.get(key)


def _decode_secret_value(value: str | bytes) -> bytes:
    # Secret data is base64 encoded on the wire; older clients hand back bytes
    if isinstance(value, bytes):
        return value
    return base64.b64decode(value)


def resolve_secret(
    api: client.CoreV1Api,
    name: str,
    namespace: str,
) -> ResolvedData:
    """Read a secret and decode its data.

    Args:
        api: Kubernetes API client
        name: Name of the secret
        namespace: Namespace of the secret

    Returns:
        ResolvedData with found=False when the secret does not exist

    Raises:
        client.exceptions.ApiException: For any API error other than 404
    """
    try:
        secret = rate_limit_k8s(api.read_namespaced_secret)(name=name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            return ResolvedData(found=False)
        raise

    data = {key: _decode_secret_value(value) for key, value in (secret.data or {}).items()}
    return ResolvedData(found=True, data=data)


def resolve_config_map(
    api: client.CoreV1Api,
    name: str,
    namespace: str,
) -> ResolvedData:
    """Read a config map and return its data as bytes.

    Args:
        api: Kubernetes API client
        name: Name of the config map
        namespace: Namespace of the config map

    Returns:
        ResolvedData with found=False when the config map does not exist

    Raises:
        client.exceptions.ApiException: For any API error other than 404
    """
    try:
        config_map = rate_limit_k8s(api.read_namespaced_config_map)(name=name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            return ResolvedData(found=False)
        raise

    data = {key: value.encode("utf-8") for key, value in (config_map.data or {}).items()}
    for key, value in (config_map.binary_data or {}).items():
        data.setdefault(key, base64.b64decode(value))
    return ResolvedData(found=True, data=data)
