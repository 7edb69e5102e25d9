"""Handler for GitLabIdentityProvider CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf

from ..config import OperatorConfig
from ..constants import API_GROUP_VERSION, KIND_GITLAB_IDENTITY_PROVIDER
from ..controllers.gitlab_identity_provider import GitLabIdentityProviderController
from ..registry import Registry, default_registry
from .shared import build_controller, resource_key, run_reconcile

# Global controller instance, wired on operator startup
_controller: GitLabIdentityProviderController | None = None


def configure(settings: OperatorConfig, registry: Registry) -> None:
    """Wire the controller to live clients."""
    global _controller
    _controller = build_controller(GitLabIdentityProviderController, settings, registry)


def get_controller() -> GitLabIdentityProviderController:
    if _controller is None:
        configure(OperatorConfig.from_env(), default_registry())
    return _controller


def shutdown() -> None:
    """Close the remote client held by the controller."""
    if _controller is not None:
        _controller.ocm.close()


@kopf.on.create(API_GROUP_VERSION, KIND_GITLAB_IDENTITY_PROVIDER)
@kopf.on.update(API_GROUP_VERSION, KIND_GITLAB_IDENTITY_PROVIDER)
@kopf.on.resume(API_GROUP_VERSION, KIND_GITLAB_IDENTITY_PROVIDER)
@kopf.timer(
    API_GROUP_VERSION,
    KIND_GITLAB_IDENTITY_PROVIDER,
    interval=float(os.getenv("REQUEUE_INTERVAL_SECONDS", "30")),
    idle=float(os.getenv("REQUEUE_INTERVAL_SECONDS", "30")),
)
def handle_gitlab_identity_provider(
    meta: dict[str, Any],
    retry: int = 0,
    **kwargs: Any,
) -> None:
    """Handle GitLabIdentityProvider reconciliation and periodic resync."""
    namespace, name = resource_key(meta)
    run_reconcile(get_controller(), namespace, name, retry)


@kopf.on.delete(API_GROUP_VERSION, KIND_GITLAB_IDENTITY_PROVIDER, optional=True)
def handle_gitlab_identity_provider_delete(
    meta: dict[str, Any],
    retry: int = 0,
    **kwargs: Any,
) -> None:
    """Handle GitLabIdentityProvider deletion."""
    namespace, name = resource_key(meta)
    run_reconcile(get_controller(), namespace, name, retry)
