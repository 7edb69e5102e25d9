"""Shared fixtures for unit tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from ocm_operator.config import OperatorConfig
from ocm_operator.controllers.gitlab_identity_provider import GitLabIdentityProviderController
from ocm_operator.registry import default_registry
from ocm_operator.utils import rate_limit

from fakes import PEM_CA, FakeCoreApi, FakeOCM, FakeStore


@pytest.fixture(autouse=True)
def no_rate_limits(monkeypatch):
    """Disable call spacing so tests do not sleep."""
    monkeypatch.setattr(rate_limit, "_RATE_LIMITS_PER_SECOND", {})


@pytest.fixture(autouse=True)
def kopf_event():
    """Capture Kubernetes events; kopf.event needs a running operator otherwise."""
    with patch("ocm_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def config():
    return OperatorConfig(ocm_token="offline-token")


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def ocm():
    return FakeOCM()


@pytest.fixture
def core_api():
    api = FakeCoreApi()
    api.add_secret("gitlab-secret", {"clientSecret": "s3cr3t"})
    api.add_config_map("gitlab-ca", {"ca.crt": PEM_CA})
    return api


@pytest.fixture
def controller(store, ocm, core_api, config, registry):
    return GitLabIdentityProviderController(
        store=store, ocm=ocm, core_api=core_api, config=config, registry=registry
    )
