"""Tests for shared handler utilities."""

from __future__ import annotations

import threading
from unittest.mock import Mock, patch

import kopf
import pytest

from ocm_operator.config import OperatorConfig
from ocm_operator.controllers.requeue import Result
from ocm_operator.handlers.shared import get_ocm_client, key_lock, resource_key, run_reconcile
from ocm_operator.services.ocm.client import OCMClient
from ocm_operator.utils.errors import RemoteTransientError, TypeMismatchError


def _controller(result: Result) -> Mock:
    controller = Mock()
    controller.config = OperatorConfig()
    controller.reconcile.return_value = result
    return controller


class TestRunReconcile:
    """Test cases for run_reconcile function."""

    def test_converged_returns(self):
        """Test that a converged resource does not raise."""
        controller = _controller(Result(requeue=False, requeue_after=30.0))

        run_reconcile(controller, "default", "gitlab")

        namespace, name, context = controller.reconcile.call_args[0]
        assert (namespace, name) == ("default", "gitlab")
        assert context.correlation_id
        assert context.timeout == 120.0

    def test_retry_passed_to_context(self):
        controller = _controller(Result())

        run_reconcile(controller, "default", "gitlab", retry=3)

        assert controller.reconcile.call_args[0][2].retry == 3

    def test_requeue_raises_temporary_error(self):
        """Test that a requeue becomes a kopf.TemporaryError with the delay."""
        controller = _controller(Result(requeue=True, requeue_after=30.0))

        with pytest.raises(kopf.TemporaryError) as exc_info:
            run_reconcile(controller, "default", "gitlab")

        assert exc_info.value.delay == 30.0

    def test_transient_error_message_sanitized(self):
        error = RemoteTransientError("token exchange failed: refresh_token=abc123")
        controller = _controller(Result(requeue=True, requeue_after=4.0, error=error))

        with pytest.raises(kopf.TemporaryError) as exc_info:
            run_reconcile(controller, "default", "gitlab")

        assert "abc123" not in str(exc_info.value)
        assert exc_info.value.delay == 4.0

    def test_fatal_raises_permanent_error(self):
        """Test that a fatal error is not retried."""
        controller = _controller(Result(requeue=False, error=TypeMismatchError("wrong kind")))

        with pytest.raises(kopf.PermanentError, match="wrong kind"):
            run_reconcile(controller, "default", "gitlab")


class TestKeyLock:
    """Test cases for per-key reconcile serialization."""

    def test_same_key_shares_lock(self):
        lock = key_lock("default", "gitlab")

        assert key_lock("default", "gitlab") is lock
        assert key_lock("default", "other") is not lock
        assert key_lock("team-a", "gitlab") is not lock

    def test_reconcile_holds_key_lock(self):
        """Test that the key lock is held while the controller runs."""
        held = []

        def reconcile(namespace, name, context):
            held.append(key_lock(namespace, name).locked())
            return Result()

        controller = _controller(Result())
        controller.reconcile.side_effect = reconcile

        run_reconcile(controller, "default", "gitlab")

        assert held == [True]
        assert key_lock("default", "gitlab").locked() is False

    def test_reconciles_of_one_key_do_not_overlap(self):
        """Test that a timer resync waits for an in-flight change handler."""
        entered = threading.Event()
        release = threading.Event()
        active = []
        overlaps = []

        def reconcile(namespace, name, context):
            if active:
                overlaps.append(name)
            active.append(name)
            entered.set()
            release.wait(5)
            active.pop()
            return Result()

        controller = _controller(Result())
        controller.reconcile.side_effect = reconcile

        first = threading.Thread(target=run_reconcile, args=(controller, "default", "gitlab"))
        first.start()
        assert entered.wait(5)
        second = threading.Thread(target=run_reconcile, args=(controller, "default", "gitlab"))
        second.start()
        second.join(0.2)

        assert controller.reconcile.call_count == 1

        release.set()
        first.join(5)
        second.join(5)

        assert controller.reconcile.call_count == 2
        assert overlaps == []


class TestGetOCMClient:
    """Test cases for get_ocm_client function."""

    def test_missing_token(self):
        with pytest.raises(kopf.PermanentError, match="OCM_TOKEN"):
            get_ocm_client(OperatorConfig())

    @patch("ocm_operator.handlers.shared.OCMClient")
    def test_client_built_from_config(self, mock_client):
        """Test the client receives the configured endpoints."""
        settings = OperatorConfig(ocm_token="offline", ocm_api_url="https://api.stage.openshift.com")

        get_ocm_client(settings)

        kwargs = mock_client.call_args.kwargs
        assert kwargs["base_url"] == "https://api.stage.openshift.com"
        assert kwargs["offline_token"] == "offline"
        assert kwargs["client_id"] == "cloud-services"

    def test_real_client_type(self):
        client = get_ocm_client(OperatorConfig(ocm_token="offline"))
        try:
            assert isinstance(client, OCMClient)
        finally:
            client.close()


def test_resource_key():
    assert resource_key({"name": "gitlab", "namespace": "team-a"}) == ("team-a", "gitlab")
    assert resource_key({"name": "gitlab"}) == ("default", "gitlab")
