"""Base OCM API interface."""

from __future__ import annotations

from typing import Any, Protocol

from .models import Cluster, IdentityProvider


class ClusterAPI(Protocol):
    """Protocol defining the OCM operations the controllers consume."""

    def get_cluster(self, key: str) -> Cluster | None:
        """Look up a cluster by external ID or name."""
        ...

    def get_identity_provider(self, cluster_id: str, provider_id: str) -> IdentityProvider | None:
        """Fetch an identity provider by ID."""
        ...

    def find_identity_provider(self, cluster_id: str, name: str) -> IdentityProvider | None:
        """Find an identity provider on a cluster by name."""
        ...

    def create_identity_provider(self, cluster_id: str, payload: dict[str, Any]) -> IdentityProvider:
        """Create an identity provider on a cluster."""
        ...

    def update_identity_provider(
        self, cluster_id: str, provider_id: str, payload: dict[str, Any]
    ) -> IdentityProvider:
        """Update an existing identity provider."""
        ...

    def delete_identity_provider(self, cluster_id: str, provider_id: str) -> None:
        """Delete an identity provider; deleting a missing one is not an error."""
        ...
