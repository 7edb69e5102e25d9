"""Tests for the OCM REST client."""

from __future__ import annotations

import json
import logging

import httpx
import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from ocm_operator import tracing
from ocm_operator.services.ocm.client import OCMClient
from ocm_operator.utils.errors import RemotePermanentError, RemoteTransientError

TOKEN_URL = "https://sso.example.com/token"
IDP_PATH = "/api/clusters_mgmt/v1/clusters/cluster-1/identity_providers"


class FakeOCMServer:
    """Routes httpx requests to canned OCM responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.token_requests = 0
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}

    def add(self, method: str, path: str, *responses: httpx.Response) -> None:
        self.routes[(method, path)] = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            self.token_requests += 1
            return httpx.Response(200, json={"access_token": f"access-{self.token_requests}", "expires_in": 300})

        self.requests.append(request)
        responses = self.routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404, json={"reason": "not found"})
        return responses.pop(0) if len(responses) > 1 else responses[0]


@pytest.fixture
def server():
    return FakeOCMServer()


@pytest.fixture
def ocm_client(server):
    http = httpx.Client(base_url="https://api.example.com", transport=httpx.MockTransport(server))
    client = OCMClient(
        base_url="https://api.example.com",
        token_url=TOKEN_URL,
        offline_token="offline",
        http_client=http,
    )
    yield client
    client.close()


def _idp(idp_id="idp-1", name="gitlab"):
    return {
        "id": idp_id,
        "name": name,
        "type": "GitlabIdentityProvider",
        "mapping_method": "claim",
        "gitlab": {"url": "https://gitlab.example.com", "client_id": "client-id"},
    }


class TestAuthentication:
    """Test cases for the token exchange."""

    def test_bearer_token_sent_and_cached(self, ocm_client, server):
        server.add("GET", f"{IDP_PATH}/idp-1", httpx.Response(200, json=_idp()))

        ocm_client.get_identity_provider("cluster-1", "idp-1")
        ocm_client.get_identity_provider("cluster-1", "idp-1")

        assert server.token_requests == 1
        assert server.requests[0].headers["Authorization"] == "Bearer access-1"

    def test_unauthorized_refreshes_token(self, ocm_client, server):
        """Test that a 401 drops the cached token and is retried later."""
        server.add(
            "GET",
            f"{IDP_PATH}/idp-1",
            httpx.Response(401, json={"reason": "expired"}),
            httpx.Response(200, json=_idp()),
        )

        with pytest.raises(RemoteTransientError, match="unauthorized"):
            ocm_client.get_identity_provider("cluster-1", "idp-1")
        ocm_client.get_identity_provider("cluster-1", "idp-1")

        assert server.token_requests == 2
        assert server.requests[-1].headers["Authorization"] == "Bearer access-2"

    def test_token_exchange_failure(self):
        def handler(request):
            return httpx.Response(400, json={"error": "invalid_grant"})

        http = httpx.Client(base_url="https://api.example.com", transport=httpx.MockTransport(handler))
        client = OCMClient("https://api.example.com", TOKEN_URL, "offline", http_client=http)

        with pytest.raises(RemoteTransientError, match="token exchange failed"):
            client.get_cluster("demo")


class TestClusters:
    """Test cases for cluster lookup."""

    def test_get_cluster(self, ocm_client, server):
        """Test searching a cluster by external ID or name."""
        server.add(
            "GET",
            "/api/clusters_mgmt/v1/clusters",
            httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "id": "cluster-1",
                            "name": "demo",
                            "external_id": "ext-1",
                            "state": "ready",
                            "console": {"url": "https://console-openshift-console.apps.demo.example.com"},
                        }
                    ]
                },
            ),
        )

        cluster = ocm_client.get_cluster("demo")

        assert cluster.id == "cluster-1"
        assert cluster.state == "ready"
        assert cluster.console_url.startswith("https://console-openshift-console.")
        params = server.requests[0].url.params
        assert params["search"] == "external_id = 'demo' or name = 'demo'"

    def test_get_cluster_not_found(self, ocm_client, server):
        server.add("GET", "/api/clusters_mgmt/v1/clusters", httpx.Response(200, json={"items": []}))

        assert ocm_client.get_cluster("demo") is None


class TestIdentityProviders:
    """Test cases for identity provider operations."""

    def test_get_missing_returns_none(self, ocm_client):
        assert ocm_client.get_identity_provider("cluster-1", "idp-404") is None

    def test_find_by_name(self, ocm_client, server):
        server.add(
            "GET",
            IDP_PATH,
            httpx.Response(200, json={"items": [_idp("idp-1", "other"), _idp("idp-2", "gitlab")], "total": 2}),
        )

        idp = ocm_client.find_identity_provider("cluster-1", "gitlab")

        assert idp.id == "idp-2"

    def test_find_absent(self, ocm_client, server):
        server.add("GET", IDP_PATH, httpx.Response(200, json={"items": [], "total": 0}))

        assert ocm_client.find_identity_provider("cluster-1", "gitlab") is None

    def test_create(self, ocm_client, server):
        """Test that create posts the payload."""
        server.add("POST", IDP_PATH, httpx.Response(201, json=_idp()))
        payload = {"type": "GitlabIdentityProvider", "name": "gitlab", "mapping_method": "claim", "gitlab": {}}

        idp = ocm_client.create_identity_provider("cluster-1", payload)

        assert idp.id == "idp-1"
        assert json.loads(server.requests[0].content) == payload

    def test_update_uses_patch(self, ocm_client, server):
        server.add("PATCH", f"{IDP_PATH}/idp-1", httpx.Response(200, json=_idp()))

        ocm_client.update_identity_provider("cluster-1", "idp-1", {"name": "gitlab"})

        assert server.requests[0].method == "PATCH"

    def test_delete_missing_tolerated(self, ocm_client, server):
        """Test that deleting an absent provider succeeds."""
        ocm_client.delete_identity_provider("cluster-1", "idp-404")

        assert server.requests[0].method == "DELETE"

    def test_delete(self, ocm_client, server):
        server.add("DELETE", f"{IDP_PATH}/idp-1", httpx.Response(204))

        ocm_client.delete_identity_provider("cluster-1", "idp-1")


class TestErrorClassification:
    """Test cases for mapping HTTP failures to error classes."""

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_transient(self, ocm_client, server, status):
        server.add("POST", IDP_PATH, httpx.Response(status, json={"reason": "busy"}))

        with pytest.raises(RemoteTransientError):
            ocm_client.create_identity_provider("cluster-1", {"name": "gitlab"})

    @pytest.mark.parametrize("status", [400, 403, 409, 422])
    def test_permanent(self, ocm_client, server, status):
        """Test that semantic rejections are not treated as transient."""
        server.add("POST", IDP_PATH, httpx.Response(status, json={"reason": "Identity provider name is invalid"}))

        with pytest.raises(RemotePermanentError, match="Identity provider name is invalid"):
            ocm_client.create_identity_provider("cluster-1", {"name": "gitlab"})

    def test_transport_error(self):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "a", "expires_in": 300})
            raise httpx.ConnectError("connection refused")

        http = httpx.Client(base_url="https://api.example.com", transport=httpx.MockTransport(handler))
        client = OCMClient("https://api.example.com", TOKEN_URL, "offline", http_client=http)

        with pytest.raises(RemoteTransientError, match="connection refused"):
            client.get_cluster("demo")


class TestObservability:
    """Test cases for request logging and tracing."""

    def test_request_logged_without_token(self, ocm_client, server, caplog):
        caplog.set_level(logging.DEBUG, logger="ocm_operator.services.ocm.client")
        server.add("GET", f"{IDP_PATH}/idp-1", httpx.Response(200, json=_idp()))

        ocm_client.get_identity_provider("cluster-1", "idp-1")

        (record,) = [r for r in caplog.records if r.name == "ocm_operator.services.ocm.client"]
        data = json.loads(record.getMessage())
        assert data["operation"] == "get_identity_provider"
        assert data["status_code"] == 200
        assert data["result"] == "success"
        assert "access-1" not in caplog.text

    def test_request_span(self, ocm_client, server):
        """Test that each request gets a span carrying the HTTP status."""
        server.add("POST", IDP_PATH, httpx.Response(422, json={"reason": "invalid mapping method"}))
        span_exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(span_exporter))
        tracing.set_tracer(provider.get_tracer("test"))
        try:
            with pytest.raises(RemotePermanentError):
                ocm_client.create_identity_provider("cluster-1", {"name": "gitlab"})
        finally:
            tracing.set_tracer(None)

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "ocm.create_identity_provider"
        assert span.attributes["http.method"] == "POST"
        assert span.attributes["http.status_code"] == 422
        assert span.status.status_code is trace.StatusCode.ERROR
