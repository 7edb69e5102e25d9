"""Tests for the identity provider payload builder."""

from __future__ import annotations

from ocm_operator.builders.identity_provider import (
    build_identity_provider,
    copy_from,
    desired_view,
    is_pem_bundle,
    needs_update,
)
from ocm_operator.models import GitLabIdentityProvider
from ocm_operator.services.ocm.models import IdentityProvider

from fakes import PEM_CA, make_resource


def _resource(**spec):
    return GitLabIdentityProvider.from_dict(make_resource(spec=spec))


class TestBuildIdentityProvider:
    """Test cases for build_identity_provider function."""

    def test_payload(self):
        """Test building the OCM payload from a resource."""
        payload = build_identity_provider(_resource(displayName="gitlab-sso"), "s3cr3t", PEM_CA)

        assert payload == {
            "type": "GitlabIdentityProvider",
            "name": "gitlab-sso",
            "mapping_method": "claim",
            "gitlab": {
                "url": "https://gitlab.example.com",
                "client_id": "client-id",
                "client_secret": "s3cr3t",
                "ca": PEM_CA,
            },
        }

    def test_without_ca(self):
        payload = build_identity_provider(_resource(ca=None), "s3cr3t")

        assert "ca" not in payload["gitlab"]
        assert payload["name"] == "gitlab"


class TestNeedsUpdate:
    """Test cases for drift detection."""

    def _current(self, **gitlab):
        values = {"url": "https://gitlab.example.com", "client_id": "client-id", "ca": PEM_CA}
        values.update(gitlab)
        return IdentityProvider(
            id="idp-1",
            name="gitlab",
            type="GitlabIdentityProvider",
            mapping_method="claim",
            gitlab=values,
        )

    def test_in_sync(self):
        """Test that the client secret is ignored because OCM never returns it."""
        payload = build_identity_provider(_resource(), "new-secret", PEM_CA)

        assert needs_update(self._current(), payload) is False

    def test_url_drift(self):
        payload = build_identity_provider(_resource(url="https://gitlab.internal"), "s3cr3t", PEM_CA)

        assert needs_update(self._current(), payload) is True

    def test_mapping_method_drift(self):
        payload = build_identity_provider(_resource(mappingMethod="lookup"), "s3cr3t", PEM_CA)

        assert needs_update(self._current(), payload) is True

    def test_views_match_shape(self):
        payload = build_identity_provider(_resource(), "s3cr3t", PEM_CA)

        assert set(copy_from(self._current())) == set(desired_view(payload))


class TestIsPemBundle:
    """Test cases for is_pem_bundle function."""

    def test_valid(self):
        assert is_pem_bundle(PEM_CA) is True

    def test_header_only(self):
        assert is_pem_bundle("-----BEGIN CERTIFICATE-----\nabc") is False

    def test_garbage(self):
        assert is_pem_bundle("not a certificate") is False
