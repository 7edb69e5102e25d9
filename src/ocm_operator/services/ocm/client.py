"""OCM clusters_mgmt API client."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, NoReturn

import httpx

from ... import metrics
from ...logging import log_ocm_call
from ...tracing import ocm_request_span, set_span_attributes
from ...utils.errors import RemotePermanentError, RemoteTransientError, sanitize_error_message
from ...utils.rate_limit import is_rate_limit_status, rate_limit_ocm, record_rate_limit_hit
from .models import Cluster, IdentityProvider

logger = logging.getLogger(__name__)

CLUSTERS_PATH = "/api/clusters_mgmt/v1/clusters"

# Refresh the access token this many seconds before it expires
TOKEN_EXPIRY_LEEWAY_SECONDS = 30.0
PAGE_SIZE = 100


class OCMClient:
    """OCM provider implementation over the REST API."""

    def __init__(
        self,
        base_url: str,
        token_url: str,
        offline_token: str,
        client_id: str = "cloud-services",
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the OCM client.

        Args:
            base_url: OCM API base URL
            token_url: SSO token endpoint used to exchange the offline token
            offline_token: OCM offline (refresh) token
            client_id: OAuth client ID used for the token exchange
            timeout: Per-request timeout in seconds
            http_client: Optional preconfigured httpx client (used in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token_url = token_url
        self.client_id = client_id
        self._offline_token = offline_token
        self._access_token: str | None = None
        self._access_token_expiry = 0.0
        self._token_lock = threading.Lock()
        self.http = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self.http.close()

    def _token(self) -> str:
        with self._token_lock:
            if self._access_token and time.monotonic() < self._access_token_expiry:
                return self._access_token

            try:
                response = self.http.post(
                    self.token_url,
                    data={
                        "grant_type": "refresh_token",
                        "client_id": self.client_id,
                        "refresh_token": self._offline_token,
                    },
                )
            except httpx.TransportError as e:
                raise RemoteTransientError(f"token exchange failed: {e}") from e

            if response.status_code != 200:
                raise RemoteTransientError(
                    f"token exchange failed with HTTP {response.status_code}"
                )

            payload = response.json()
            self._access_token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 300))
            self._access_token_expiry = time.monotonic() + max(expires_in - TOKEN_EXPIRY_LEEWAY_SECONDS, 0.0)
            return self._access_token

    def _invalidate_token(self) -> None:
        with self._token_lock:
            self._access_token = None
            self._access_token_expiry = 0.0

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> httpx.Response | None:
        """Send one request and classify failures.

        Returns None for a 404 when ``allow_not_found`` is set.

        Raises:
            RemoteTransientError: transport errors, throttling, 401 and 5xx
            RemotePermanentError: any other 4xx
        """
        start_time = time.time()
        result = "error"
        status: int | None = None
        with ocm_request_span(operation, method, path):
            try:
                headers = {"Authorization": f"Bearer {self._token()}"}
                try:
                    response = rate_limit_ocm(self.http.request)(method, path, headers=headers, **kwargs)
                except httpx.TransportError as e:
                    raise RemoteTransientError(f"{operation}: {e}") from e

                status = response.status_code
                set_span_attributes({"http.status_code": status})
                if status == 404 and allow_not_found:
                    result = "not_found"
                    return None
                if status < 400:
                    result = "success"
                    return response

                self._raise_for_status(operation, response)
            finally:
                duration = time.time() - start_time
                metrics.api_call_total.labels(api_type="ocm", operation=operation, result=result).inc()
                metrics.api_call_duration_seconds.labels(api_type="ocm", operation=operation).observe(duration)
                log_ocm_call(logger, operation, method, path, result, duration, status_code=status)

    def _raise_for_status(self, operation: str, response: httpx.Response) -> NoReturn:
        """Translate a failed response into the remote error taxonomy."""
        status = response.status_code
        detail = self._error_detail(response)
        if is_rate_limit_status(status, response.text):
            record_rate_limit_hit("ocm")
            raise RemoteTransientError(f"{operation}: rate limited by OCM")
        if status == 401:
            self._invalidate_token()
            raise RemoteTransientError(f"{operation}: unauthorized, access token will be refreshed")
        if status >= 500:
            raise RemoteTransientError(f"{operation}: OCM returned HTTP {status}: {detail}")
        raise RemotePermanentError(f"{operation}: OCM rejected request with HTTP {status}: {detail}")

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return sanitize_error_message(response.text[:200])
        return sanitize_error_message(str(body.get("reason") or body.get("code") or body))

    def get_cluster(self, key: str) -> Cluster | None:
        """Look up a cluster by external ID or name."""
        response = self._request(
            "get_cluster",
            "GET",
            CLUSTERS_PATH,
            params={"search": f"external_id = '{key}' or name = '{key}'", "size": 1},
        )
        items = response.json().get("items") or []
        if not items:
            return None
        return Cluster.from_api(items[0])

    def get_identity_provider(self, cluster_id: str, provider_id: str) -> IdentityProvider | None:
        """Fetch an identity provider by ID, or None if it does not exist."""
        response = self._request(
            "get_identity_provider",
            "GET",
            f"{CLUSTERS_PATH}/{cluster_id}/identity_providers/{provider_id}",
            allow_not_found=True,
        )
        if response is None:
            return None
        return IdentityProvider.from_api(response.json())

    def find_identity_provider(self, cluster_id: str, name: str) -> IdentityProvider | None:
        """Find an identity provider on a cluster by name.

        Returns None when the cluster has no identity provider with that name
        or the cluster itself no longer exists.
        """
        page = 1
        while True:
            response = self._request(
                "list_identity_providers",
                "GET",
                f"{CLUSTERS_PATH}/{cluster_id}/identity_providers",
                allow_not_found=True,
                params={"page": page, "size": PAGE_SIZE},
            )
            if response is None:
                return None

            body = response.json()
            items = body.get("items") or []
            for item in items:
                if item.get("name") == name:
                    return IdentityProvider.from_api(item)

            if len(items) < PAGE_SIZE or page * PAGE_SIZE >= body.get("total", 0):
                return None
            page += 1

    def create_identity_provider(self, cluster_id: str, payload: dict[str, Any]) -> IdentityProvider:
        """Create an identity provider on a cluster."""
        response = self._request(
            "create_identity_provider",
            "POST",
            f"{CLUSTERS_PATH}/{cluster_id}/identity_providers",
            json=payload,
        )
        metrics.identity_provider_operations_total.labels(operation="create", result="success").inc()
        return IdentityProvider.from_api(response.json())

    def update_identity_provider(
        self, cluster_id: str, provider_id: str, payload: dict[str, Any]
    ) -> IdentityProvider:
        """Update an existing identity provider."""
        response = self._request(
            "update_identity_provider",
            "PATCH",
            f"{CLUSTERS_PATH}/{cluster_id}/identity_providers/{provider_id}",
            json=payload,
        )
        metrics.identity_provider_operations_total.labels(operation="update", result="success").inc()
        return IdentityProvider.from_api(response.json())

    def delete_identity_provider(self, cluster_id: str, provider_id: str) -> None:
        """Delete an identity provider; a missing one is already converged."""
        response = self._request(
            "delete_identity_provider",
            "DELETE",
            f"{CLUSTERS_PATH}/{cluster_id}/identity_providers/{provider_id}",
            allow_not_found=True,
        )
        if response is None:
            logger.info(f"Identity provider {provider_id} already absent from cluster {cluster_id}")
            return
        metrics.identity_provider_operations_total.labels(operation="delete", result="success").inc()
