"""Reconcile engine and per-kind controllers."""

from .base import Controller
from .gitlab_identity_provider import GitLabIdentityProviderController, GitLabIdentityProviderRequest
from .phases import Phase, PhaseResult, Pipeline, PipelineResult, PipelineState
from .request import ReconcileContext, Request
from .requeue import Result
from .triggers import Trigger, classify

__all__ = [
    "Controller",
    "GitLabIdentityProviderController",
    "GitLabIdentityProviderRequest",
    "Phase",
    "PhaseResult",
    "Pipeline",
    "PipelineResult",
    "PipelineState",
    "ReconcileContext",
    "Request",
    "Result",
    "Trigger",
    "classify",
]
