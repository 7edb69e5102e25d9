"""Data models returned by the OCM clusters_mgmt API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

CONSOLE_HOST_PREFIX = "console-openshift-console."
OAUTH_HOST_PREFIX = "oauth-openshift."


@dataclass
class Cluster:
    """An OCM cluster as seen by this operator."""

    id: str
    name: str
    external_id: str = ""
    state: str = ""
    console_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Cluster:
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            external_id=data.get("external_id", ""),
            state=data.get("state", ""),
            console_url=(data.get("console") or {}).get("url", ""),
        )

    def oauth_callback_url(self, provider_name: str) -> str:
        """Derive the OAuth callback URL for an identity provider.

        The OAuth server shares the apps domain of the web console, so
        ``https://console-openshift-console.apps.example.com`` yields
        ``https://oauth-openshift.apps.example.com/oauth2callback/<name>``.
        Returns an empty string until the console URL is known.
        """
        if not self.console_url:
            return ""
        host = urlparse(self.console_url).hostname or ""
        if not host.startswith(CONSOLE_HOST_PREFIX):
            return ""
        apps_domain = host[len(CONSOLE_HOST_PREFIX):]
        return f"https://{OAUTH_HOST_PREFIX}{apps_domain}/oauth2callback/{provider_name}"


@dataclass
class IdentityProvider:
    """An identity provider configured on an OCM cluster."""

    id: str
    name: str
    type: str = ""
    mapping_method: str = ""
    gitlab: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> IdentityProvider:
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", ""),
            mapping_method=data.get("mapping_method", ""),
            gitlab=dict(data.get("gitlab") or {}),
        )
