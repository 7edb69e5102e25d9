"""Tests for trigger classification."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from ocm_operator.controllers.triggers import Trigger, classify
from ocm_operator.models import GitLabIdentityProvider

from fakes import make_resource


def _request(**kwargs):
    return SimpleNamespace(resource=GitLabIdentityProvider.from_dict(make_resource(**kwargs)))


class TestClassify:
    """Test cases for classify function."""

    def test_new_resource_is_create(self):
        assert classify(_request()) is Trigger.CREATE

    def test_recorded_cluster_id_is_update(self):
        """Test that a resource with a cluster ID is an update."""
        request = _request(status={"clusterID": "cluster-1"})

        assert classify(request) is Trigger.UPDATE

    @pytest.mark.parametrize("status", [{}, {"clusterID": "cluster-1", "providerID": "idp-1"}])
    def test_deletion_timestamp_wins(self, status):
        """Test that deletion is chosen regardless of status."""
        request = _request(status=status, deletion_timestamp="2024-01-01T00:00:00Z")

        assert classify(request) is Trigger.DELETE

    def test_deterministic(self):
        request = _request(status={"clusterID": "cluster-1"})

        assert {classify(request) for _ in range(5)} == {Trigger.UPDATE}
