"""Typed views over the custom resources reconciled by the operator."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .constants import (
    API_GROUP_VERSION,
    DEFAULT_MAPPING_METHOD,
    KIND_GITLAB_IDENTITY_PROVIDER,
)
from .utils.errors import ImmutableFieldError


@runtime_checkable
class Workload(Protocol):
    """Capabilities the generic reconcile machinery relies on.

    Requests, the kind registry and the base controller are written against
    this protocol; only kind-specific controllers see the concrete model.
    """

    kind: str
    metadata: ObjectMeta
    status: Any

    @property
    def cluster_name(self) -> str: ...

    @property
    def cluster_id(self) -> str: ...

    @property
    def conditions(self) -> list[dict[str, Any]]: ...

    def set_conditions(self, conditions: list[dict[str, Any]]) -> None: ...

    def reference(self) -> dict[str, Any]: ...


def set_status_identifier(status: Any, field_name: str, value: str) -> bool:
    """Record a remote-assigned identifier on a status object.

    The first non-empty value wins. Writing the same value again is a no-op;
    writing a different non-empty value raises ImmutableFieldError and leaves
    the recorded value in place.

    Returns:
        True if the field was newly set
    """
    current = getattr(status, field_name)
    if not value or current == value:
        return False
    if current:
        raise ImmutableFieldError(
            f"status.{field_name} is immutable: recorded {current!r}, observed {value!r}"
        )
    setattr(status, field_name, value)
    return True


@dataclass
class ObjectMeta:
    """The subset of Kubernetes object metadata the controllers use."""

    name: str
    namespace: str = "default"
    uid: str = ""
    generation: int = 0
    resource_version: str = ""
    deletion_timestamp: str | None = None
    finalizers: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, meta: dict[str, Any]) -> ObjectMeta:
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", ""),
            generation=meta.get("generation", 0) or 0,
            resource_version=meta.get("resourceVersion", ""),
            deletion_timestamp=meta.get("deletionTimestamp"),
            finalizers=list(meta.get("finalizers") or []),
        )


@dataclass
class SecretReference:
    name: str = ""


@dataclass
class GitLabIdentityProviderSpec:
    """Desired state of a GitLab identity provider on an OCM cluster."""

    client_id: str = ""
    client_secret: SecretReference = field(default_factory=SecretReference)
    url: str = ""
    ca: SecretReference | None = None
    mapping_method: str = DEFAULT_MAPPING_METHOD
    cluster_name: str = ""
    display_name: str = ""

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> GitLabIdentityProviderSpec:
        ca = spec.get("ca") or {}
        return cls(
            client_id=spec.get("clientID", ""),
            client_secret=SecretReference((spec.get("clientSecret") or {}).get("name", "")),
            url=spec.get("url", ""),
            ca=SecretReference(ca["name"]) if ca.get("name") else None,
            mapping_method=spec.get("mappingMethod") or DEFAULT_MAPPING_METHOD,
            cluster_name=spec.get("clusterName", ""),
            display_name=spec.get("displayName", ""),
        )


@dataclass
class GitLabIdentityProviderStatus:
    """Observed state written by the controller."""

    cluster_id: str = ""
    provider_id: str = ""
    callback_url: str = ""
    conditions: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, status: dict[str, Any]) -> GitLabIdentityProviderStatus:
        return cls(
            cluster_id=status.get("clusterID", ""),
            provider_id=status.get("providerID", ""),
            callback_url=status.get("callbackURL", ""),
            conditions=copy.deepcopy(status.get("conditions") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        status: dict[str, Any] = {"conditions": copy.deepcopy(self.conditions)}
        if self.cluster_id:
            status["clusterID"] = self.cluster_id
        if self.provider_id:
            status["providerID"] = self.provider_id
        if self.callback_url:
            status["callbackURL"] = self.callback_url
        return status


@dataclass
class GitLabIdentityProvider:
    """A GitLabIdentityProvider custom resource."""

    metadata: ObjectMeta
    spec: GitLabIdentityProviderSpec
    status: GitLabIdentityProviderStatus = field(default_factory=GitLabIdentityProviderStatus)
    kind: str = KIND_GITLAB_IDENTITY_PROVIDER
    api_version: str = API_GROUP_VERSION

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> GitLabIdentityProvider:
        return cls(
            metadata=ObjectMeta.from_dict(obj.get("metadata") or {}),
            spec=GitLabIdentityProviderSpec.from_dict(obj.get("spec") or {}),
            status=GitLabIdentityProviderStatus.from_dict(obj.get("status") or {}),
            kind=obj.get("kind", KIND_GITLAB_IDENTITY_PROVIDER),
            api_version=obj.get("apiVersion", API_GROUP_VERSION),
        )

    @property
    def cluster_name(self) -> str:
        return self.spec.cluster_name

    @property
    def cluster_id(self) -> str:
        return self.status.cluster_id

    @property
    def conditions(self) -> list[dict[str, Any]]:
        return self.status.conditions

    def set_conditions(self, conditions: list[dict[str, Any]]) -> None:
        self.status.conditions = conditions

    @property
    def display_name(self) -> str:
        """Name shown in OCM; falls back to metadata.name."""
        return self.spec.display_name or self.metadata.name

    def reference(self) -> dict[str, Any]:
        """Minimal object body used to attach Kubernetes events."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {
                "name": self.metadata.name,
                "namespace": self.metadata.namespace,
                "uid": self.metadata.uid,
            },
        }
