"""Tests for the kopf handlers of GitLabIdentityProvider."""

from __future__ import annotations

from unittest.mock import Mock, patch

from ocm_operator.handlers import gitlab_identity_provider as handler


class TestHandlers:
    """Test cases for handler wiring."""

    @patch("ocm_operator.handlers.gitlab_identity_provider.run_reconcile")
    @patch("ocm_operator.handlers.gitlab_identity_provider.get_controller")
    def test_reconcile_handler(self, mock_get_controller, mock_run):
        """Test that create, update, resume and timer events reconcile by key."""
        controller = Mock()
        mock_get_controller.return_value = controller

        handler.handle_gitlab_identity_provider(meta={"name": "gitlab", "namespace": "team-a"}, retry=2)

        mock_run.assert_called_once_with(controller, "team-a", "gitlab", 2)

    @patch("ocm_operator.handlers.gitlab_identity_provider.run_reconcile")
    @patch("ocm_operator.handlers.gitlab_identity_provider.get_controller")
    def test_delete_handler(self, mock_get_controller, mock_run):
        handler.handle_gitlab_identity_provider_delete(meta={"name": "gitlab", "namespace": "team-a"})

        mock_run.assert_called_once_with(mock_get_controller.return_value, "team-a", "gitlab", 0)

    @patch("ocm_operator.handlers.gitlab_identity_provider.build_controller")
    def test_configure_and_shutdown(self, mock_build, config, registry):
        """Test that configure wires the controller and shutdown closes OCM."""
        try:
            handler.configure(config, registry)

            assert handler.get_controller() is mock_build.return_value
            handler.shutdown()
            mock_build.return_value.ocm.close.assert_called_once()
        finally:
            handler._controller = None
