"""Phases that bind a workload to its upstream OCM cluster."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..constants import (
    CLUSTER_STATE_READY,
    REASON_CLUSTER_NOT_FOUND,
    REASON_CLUSTER_NOT_READY,
    REASON_INVALID_CLUSTER_NAME,
)
from ..models import set_status_identifier
from ..services.ocm.base import ClusterAPI
from ..services.ocm.models import Cluster
from ..utils.errors import InvalidSpecError
from .phases import PhaseResult
from .triggers import Trigger

if TYPE_CHECKING:
    from .request import Request

# OCM accepts either the external ID (a UUID) or the cluster name, which is a
# DNS label.
CLUSTER_KEY_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$", re.IGNORECASE)
CLUSTER_KEY_MAX_LENGTH = 63


def is_valid_cluster_key(key: str) -> bool:
    return bool(key) and len(key) <= CLUSTER_KEY_MAX_LENGTH and CLUSTER_KEY_PATTERN.match(key) is not None


def resolve_cluster(ocm: ClusterAPI, key: str) -> Cluster | None:
    """Look up a cluster, rejecting malformed association keys."""
    if not is_valid_cluster_key(key):
        raise InvalidSpecError(
            f"clusterName {key!r} is not a valid cluster name or external ID",
            reason=REASON_INVALID_CLUSTER_NAME,
        )
    return ocm.get_cluster(key)


def handle_cluster_phase(request: Request, ocm: ClusterAPI, trigger: Trigger) -> PhaseResult:
    """Resolve the upstream cluster and record its ID.

    A cluster that cannot be found yet, or on create is not ready to accept
    identity providers, requeues after the standard interval. The resolved
    cluster is kept on the request for later phases.
    """
    resource = request.resource
    interval = request.controller.config.requeue_interval_seconds

    cluster = resolve_cluster(ocm, resource.cluster_name)
    if cluster is None:
        return PhaseResult.requeue(
            interval,
            reason=REASON_CLUSTER_NOT_FOUND,
            message=f"cluster {resource.cluster_name} not found in OpenShift Cluster Manager",
        )

    if trigger is Trigger.CREATE and cluster.state != CLUSTER_STATE_READY:
        return PhaseResult.requeue(
            interval,
            reason=REASON_CLUSTER_NOT_READY,
            message=f"cluster {resource.cluster_name} is in state {cluster.state!r}, waiting for {CLUSTER_STATE_READY!r}",
        )

    set_status_identifier(resource.status, "cluster_id", cluster.id)
    request.cluster = cluster
    return PhaseResult.proceed()
