"""Builder for OCM identity provider payloads."""

from __future__ import annotations

from typing import Any

from ..constants import OCM_IDP_TYPE_GITLAB
from ..models import GitLabIdentityProvider
from ..services.ocm.models import IdentityProvider

PEM_CERTIFICATE_HEADER = "-----BEGIN CERTIFICATE-----"
PEM_CERTIFICATE_FOOTER = "-----END CERTIFICATE-----"


def is_pem_bundle(data: str) -> bool:
    """Check that CA data holds at least one complete PEM certificate block."""
    start = data.find(PEM_CERTIFICATE_HEADER)
    return start != -1 and data.find(PEM_CERTIFICATE_FOOTER, start) != -1


def build_identity_provider(
    resource: GitLabIdentityProvider,
    client_secret: str,
    ca: str = "",
) -> dict[str, Any]:
    """Create the OCM identity provider payload from a resource spec.

    Args:
        resource: The GitLabIdentityProvider being reconciled
        client_secret: Plaintext OAuth client secret
        ca: Optional PEM encoded CA bundle

    Returns:
        Payload dict for the identity_providers endpoint
    """
    gitlab: dict[str, Any] = {
        "url": resource.spec.url,
        "client_id": resource.spec.client_id,
        "client_secret": client_secret,
    }
    if ca:
        gitlab["ca"] = ca

    return {
        "type": OCM_IDP_TYPE_GITLAB,
        "name": resource.display_name,
        "mapping_method": resource.spec.mapping_method,
        "gitlab": gitlab,
    }


def copy_from(identity_provider: IdentityProvider) -> dict[str, Any]:
    """Return the comparable view of a remote identity provider.

    OCM never returns the client secret, so it is not part of the view.
    """
    return {
        "name": identity_provider.name,
        "mapping_method": identity_provider.mapping_method,
        "url": identity_provider.gitlab.get("url", ""),
        "client_id": identity_provider.gitlab.get("client_id", ""),
        "ca": identity_provider.gitlab.get("ca", ""),
    }


def desired_view(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the comparable view of a payload built by build_identity_provider."""
    gitlab = payload.get("gitlab", {})
    return {
        "name": payload.get("name", ""),
        "mapping_method": payload.get("mapping_method", ""),
        "url": gitlab.get("url", ""),
        "client_id": gitlab.get("client_id", ""),
        "ca": gitlab.get("ca", ""),
    }


def needs_update(current: IdentityProvider, payload: dict[str, Any]) -> bool:
    """Check whether the remote object drifted from the desired payload."""
    return copy_from(current) != desired_view(payload)
