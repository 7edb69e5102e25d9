"""Controller for GitLabIdentityProvider resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..builders.identity_provider import build_identity_provider, is_pem_bundle, needs_update
from ..constants import (
    GITLAB_CA_KEY,
    GITLAB_CLIENT_SECRET_KEY,
    KIND_GITLAB_IDENTITY_PROVIDER,
    REASON_INVALID_CA,
    REASON_INVALID_SECRET,
    REASON_MISSING_CA,
    REASON_MISSING_SECRET,
)
from ..models import GitLabIdentityProvider, set_status_identifier
from ..services.ocm.models import IdentityProvider
from ..utils.errors import ConfigurationError, ImmutableFieldError
from ..utils.events import (
    emit_identity_provider_created,
    emit_identity_provider_deleted,
    emit_identity_provider_updated,
)
from ..utils.secrets import resolve_config_map, resolve_secret
from .base import Controller
from .cluster import handle_cluster_phase, is_valid_cluster_key
from .phases import Phase, PhaseResult, Pipeline, PipelineResult
from .request import Request
from .triggers import Trigger


@dataclass
class GitLabIdentityProviderRequest(Request):
    """Request carrying the remote state observed during one reconcile."""

    current: IdentityProvider | None = None


class GitLabIdentityProviderController(Controller):
    """Reconciles GitLabIdentityProvider resources against OCM."""

    kind = KIND_GITLAB_IDENTITY_PROVIDER
    resource_type = GitLabIdentityProvider
    request_type = GitLabIdentityProviderRequest

    def reconcile_create(self, request: Request) -> PipelineResult:
        return self._apply_pipeline(request, Trigger.CREATE)

    def reconcile_update(self, request: Request) -> PipelineResult:
        # create and update share the same convergence steps
        return self._apply_pipeline(request, Trigger.UPDATE)

    def reconcile_delete(self, request: Request) -> PipelineResult:
        return Pipeline(
            request,
            Phase("Destroy", lambda: self.destroy(request)),
            Phase("CompleteDestroy", lambda: self.complete_destroy(request)),
        ).execute()

    def _apply_pipeline(self, request: Request, trigger: Trigger) -> PipelineResult:
        return Pipeline(
            request,
            Phase("AddFinalizer", lambda: self.add_finalizer_phase(request)),
            Phase("HandleUpstreamCluster", lambda: handle_cluster_phase(request, self.ocm, trigger)),
            Phase("GetCurrentState", lambda: self.get_current_state(request)),
            Phase("ApplyIdentityProvider", lambda: self.apply_identity_provider(request)),
            Phase("Complete", lambda: self.complete(request, trigger)),
        ).execute()

    def get_current_state(self, request: GitLabIdentityProviderRequest) -> PhaseResult:
        """Fetch the identity provider as it currently exists in OCM."""
        resource: GitLabIdentityProvider = request.resource
        cluster_id = resource.status.cluster_id
        provider_id = resource.status.provider_id

        if provider_id:
            request.current = self.ocm.get_identity_provider(cluster_id, provider_id)
            if request.current is None:
                raise ImmutableFieldError(
                    f"identity provider {provider_id} recorded in status.providerID no longer exists "
                    f"on cluster {cluster_id}"
                )
        else:
            request.current = self.ocm.find_identity_provider(cluster_id, resource.display_name)

        return PhaseResult.proceed()

    def _client_secret(self, resource: GitLabIdentityProvider) -> str:
        ref = resource.spec.client_secret.name
        if not ref:
            raise ConfigurationError("spec.clientSecret.name is required", reason=REASON_MISSING_SECRET)

        secret = resolve_secret(self.core_api, ref, resource.metadata.namespace)
        if not secret.found:
            raise ConfigurationError(
                f"secret {ref} not found in namespace {resource.metadata.namespace}",
                reason=REASON_MISSING_SECRET,
            )
        value = secret.get(GITLAB_CLIENT_SECRET_KEY)
        if not value:
            raise ConfigurationError(
                f"secret {ref} is missing key {GITLAB_CLIENT_SECRET_KEY}",
                reason=REASON_MISSING_SECRET,
            )
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConfigurationError(
                f"secret {ref} key {GITLAB_CLIENT_SECRET_KEY} is not valid UTF-8 text",
                reason=REASON_INVALID_SECRET,
            ) from e

    def _ca(self, resource: GitLabIdentityProvider) -> str:
        if resource.spec.ca is None:
            return ""

        ref = resource.spec.ca.name
        config_map = resolve_config_map(self.core_api, ref, resource.metadata.namespace)
        if not config_map.found:
            raise ConfigurationError(
                f"config map {ref} not found in namespace {resource.metadata.namespace}",
                reason=REASON_MISSING_CA,
            )
        value = config_map.get(GITLAB_CA_KEY)
        if not value:
            raise ConfigurationError(f"config map {ref} is missing key {GITLAB_CA_KEY}", reason=REASON_MISSING_CA)

        ca = value.decode("utf-8", errors="replace")
        if not is_pem_bundle(ca):
            raise ConfigurationError(
                f"config map {ref} key {GITLAB_CA_KEY} does not contain a PEM certificate",
                reason=REASON_INVALID_CA,
            )
        return ca

    def apply_identity_provider(self, request: GitLabIdentityProviderRequest) -> PhaseResult:
        """Create or update the identity provider in OCM and record its identifiers."""
        resource: GitLabIdentityProvider = request.resource
        meta = request.meta()
        cluster_id = resource.status.cluster_id

        # Referenced data is resolved here, and only here, so a missing secret
        # stops the reconcile before anything is written to OCM.
        client_secret = self._client_secret(resource)
        ca = self._ca(resource)
        payload = build_identity_provider(resource, client_secret, ca)

        current = request.current
        if current is None:
            provider = self.ocm.create_identity_provider(cluster_id, payload)
            self.log_info(
                meta,
                f"Created identity provider {resource.display_name}",
                reason="IdentityProviderCreated",
                provider_id=provider.id,
                cluster_id=cluster_id,
            )
            emit_identity_provider_created(resource.reference(), resource.display_name, cluster_id)
        elif needs_update(current, payload):
            provider = self.ocm.update_identity_provider(cluster_id, current.id, payload)
            self.log_info(
                meta,
                f"Updated identity provider {resource.display_name}",
                reason="IdentityProviderUpdated",
                provider_id=provider.id or current.id,
                cluster_id=cluster_id,
            )
            emit_identity_provider_updated(resource.reference(), resource.display_name, cluster_id)
            provider.id = provider.id or current.id
        else:
            provider = current
            self.log_debug(meta, "Identity provider is up to date", provider_id=current.id)

        set_status_identifier(resource.status, "provider_id", provider.id)
        if request.cluster is not None:
            callback_url = request.cluster.oauth_callback_url(resource.display_name)
            set_status_identifier(resource.status, "callback_url", callback_url)

        return PhaseResult.proceed()

    def destroy(self, request: GitLabIdentityProviderRequest) -> PhaseResult:
        """Delete the identity provider from OCM if it exists.

        A resource deleted before its first create finished may have no
        recorded identifiers; in that case the cluster is looked up by key and
        the provider by name, and anything missing counts as already gone.
        """
        resource: GitLabIdentityProvider = request.resource
        meta = request.meta()
        cluster_id = resource.status.cluster_id

        if not cluster_id:
            if not is_valid_cluster_key(resource.cluster_name):
                self.log_info(meta, "No valid cluster reference, nothing to delete", reason="NothingToDelete")
                return PhaseResult.proceed()
            cluster = self.ocm.get_cluster(resource.cluster_name)
            if cluster is None:
                self.log_info(meta, "Cluster not found, nothing to delete", reason="NothingToDelete")
                return PhaseResult.proceed()
            cluster_id = cluster.id

        current: Any
        if resource.status.provider_id:
            current = self.ocm.get_identity_provider(cluster_id, resource.status.provider_id)
        else:
            current = self.ocm.find_identity_provider(cluster_id, resource.display_name)

        if current is None:
            self.log_info(meta, "Identity provider already absent", reason="NothingToDelete", cluster_id=cluster_id)
            return PhaseResult.proceed()

        self.ocm.delete_identity_provider(cluster_id, current.id)
        self.log_info(
            meta,
            f"Deleted identity provider {current.name}",
            reason="IdentityProviderDeleted",
            provider_id=current.id,
            cluster_id=cluster_id,
        )
        emit_identity_provider_deleted(resource.reference(), current.name, cluster_id)
        return PhaseResult.proceed()
