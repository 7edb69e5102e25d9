"""Base controller with the generic reconcile loop shared by all kinds."""

from __future__ import annotations

import logging
import time
from typing import Any

from kubernetes import client

from .. import metrics
from ..config import OperatorConfig
from ..constants import CONTROLLER_NAME
from ..logging import log_resource_event
from ..models import Workload
from ..registry import Registry
from ..services.kubernetes.store import ResourceStore
from ..services.ocm.base import ClusterAPI
from ..tracing import set_span_attributes, set_span_status, trace_span
from ..utils.context import set_trigger
from ..utils.conditions import set_ready_condition
from ..utils.errors import (
    ReconcileError,
    StoreConflictError,
    TypeMismatchError,
    root_cause,
    sanitize_exception,
)
from ..utils.events import emit_reconcile_failed, emit_reconcile_started
from . import requeue
from .finalizers import add_finalizer, remove_finalizer
from .phases import PhaseResult, PipelineResult, PipelineState
from .request import ReconcileContext, Request
from .triggers import Trigger, classify


class Controller:
    """Base class for all resource controllers.

    Subclasses set ``kind`` and ``resource_type`` and implement
    ``reconcile_create``, ``reconcile_update`` and ``reconcile_delete``, each
    returning the result of a phase pipeline.
    """

    kind: str = ""
    resource_type: type = object
    request_type: type[Request] = Request

    def __init__(
        self,
        store: ResourceStore,
        ocm: ClusterAPI,
        core_api: client.CoreV1Api,
        config: OperatorConfig,
        registry: Registry,
    ) -> None:
        """Initialize the controller.

        Args:
            store: Access to the persisted custom resources
            ocm: OCM API client
            core_api: Kubernetes core API used for secret and config map lookups
            config: Operator configuration
            registry: Registry of known resource kinds
        """
        self.store = store
        self.ocm = ocm
        self.core_api = core_api
        self.config = config
        self.registry = registry
        self.logger = logging.getLogger(__name__)

    def _log(self, level: int, meta: dict[str, Any], message: str, event: str, reason: str, **kwargs: Any) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=meta.get("name", "unknown"),
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", "unknown"),
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_debug(self, meta: dict[str, Any], message: str, reason: str = "Debug", **kwargs: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self._log(logging.DEBUG, meta, message, "debug", reason, **kwargs)

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message."""
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: BaseException | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            meta: Resource metadata
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(root_cause(error)).__name__
        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    # Phase helpers shared by every kind

    def add_finalizer_phase(self, request: Request) -> PhaseResult:
        if add_finalizer(request):
            self.log_info(request.meta(), "Added finalizer", reason="FinalizerAdded")
        return PhaseResult.proceed()

    def complete(self, request: Request, trigger: Trigger) -> PhaseResult:
        resource: Workload = request.resource
        resource.set_conditions(
            set_ready_condition(
                resource.conditions,
                True,
                f"{self.kind} {request.name} is reconciled",
                observed_generation=resource.metadata.generation,
            )
        )
        self.log_info(request.meta(), f"Completed {trigger.value} reconciliation", reason="Reconciled")
        return PhaseResult.proceed()

    def complete_destroy(self, request: Request) -> PhaseResult:
        if remove_finalizer(request):
            self.log_info(request.meta(), "Removed finalizer", reason="FinalizerRemoved")
        return PhaseResult.proceed()

    # Generic reconcile loop

    def reconcile_create(self, request: Request) -> PipelineResult:
        raise NotImplementedError

    def reconcile_update(self, request: Request) -> PipelineResult:
        raise NotImplementedError

    def reconcile_delete(self, request: Request) -> PipelineResult:
        raise NotImplementedError

    def load(self, namespace: str, name: str, context: ReconcileContext) -> Request | None:
        """Load a fresh copy of the resource and wrap it in a request."""
        obj = self.store.get(self.kind, namespace, name)
        if obj is None:
            return None
        kind = obj.get("kind") or self.kind
        resource = self.registry.get(kind).parse(obj)
        return self.request_type(context=context, resource=resource, controller=self)

    def reconcile(self, namespace: str, name: str, context: ReconcileContext | None = None) -> requeue.Result:
        """Run one reconcile of the resource identified by namespace and name."""
        context = context or ReconcileContext(timeout=self.config.reconcile_timeout_seconds)
        meta = {"name": name, "namespace": namespace}

        try:
            request = self.load(namespace, name, context)
        except Exception as e:
            self.log_error(meta, "Unable to load resource", error=e, reason="LoadFailed")
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            return requeue.on_error(self.config, e, context.retry)

        if request is None:
            self.log_info(meta, "Resource no longer exists", reason="NotFound")
            return requeue.Result()

        trigger = classify(request)
        set_trigger(trigger.value)
        meta = request.meta()
        if trigger is not Trigger.UPDATE:
            emit_reconcile_started(request.resource.reference(), trigger.value)
        metrics.reconcile_total.labels(kind=self.kind, trigger=trigger.value, result="started").inc()

        start_time = time.time()
        with trace_span(
            "reconcile",
            kind=self.kind,
            attributes={"resource.name": request.name, "resource.namespace": request.namespace, "trigger": trigger.value},
        ):
            outcome = self._run(request, trigger)
            result = requeue.classify(self.config, trigger, outcome, context.retry)
            self._record_outcome(request, outcome)
            result = self._persist_status(request, trigger, outcome, result)
            set_span_attributes({
                "ocm.cluster_id": request.resource.cluster_id,
                "pipeline.state": outcome.state.value,
                "pipeline.phase": outcome.phase,
            })
            set_span_status(result.error is None, sanitize_exception(result.error) if result.error else None)

        metrics.reconcile_duration_seconds.labels(kind=self.kind, trigger=trigger.value).observe(
            time.time() - start_time
        )
        metrics.reconcile_total.labels(kind=self.kind, trigger=trigger.value, result=outcome.state.value).inc()
        return result

    def _run(self, request: Request, trigger: Trigger) -> PipelineResult:
        if not isinstance(request.resource, self.resource_type):
            error = TypeMismatchError(
                f"{type(self).__name__} cannot reconcile {type(request.resource).__name__} {request.key}"
            )
            return PipelineResult(PipelineState.FAILED, reason=error.reason, message=str(error), error=error)

        handlers = {
            Trigger.CREATE: self.reconcile_create,
            Trigger.UPDATE: self.reconcile_update,
            Trigger.DELETE: self.reconcile_delete,
        }
        return handlers[trigger](request)

    def _record_outcome(self, request: Request, outcome: PipelineResult) -> None:
        resource: Workload = request.resource
        meta = request.meta()

        if outcome.state is PipelineState.REQUEUE_SCHEDULED:
            self.log_info(
                meta,
                f"Requeue requested by phase {outcome.phase}: {outcome.message}",
                reason=outcome.reason or "Requeue",
                requeue_after=outcome.requeue_after,
            )
            if outcome.reason:
                resource.set_conditions(
                    set_ready_condition(
                        resource.conditions,
                        False,
                        outcome.message,
                        reason=outcome.reason,
                        observed_generation=resource.metadata.generation,
                    )
                )
            return

        if outcome.state is not PipelineState.FAILED:
            return

        error = outcome.error
        cause = root_cause(error)
        message = sanitize_exception(error)
        self.log_error(meta, "Reconciliation failed", error=error, reason=outcome.reason, phase=outcome.phase)
        emit_reconcile_failed(resource.reference(), f"Reconciliation failed: {message}")
        metrics.error_total.labels(kind=self.kind, error_type=type(cause).__name__).inc()

        resource.set_conditions(
            set_ready_condition(
                resource.conditions,
                False,
                message,
                reason=cause.reason if isinstance(cause, ReconcileError) else outcome.reason,
                observed_generation=resource.metadata.generation,
            )
        )

    def _persist_status(
        self,
        request: Request,
        trigger: Trigger,
        outcome: PipelineResult,
        result: requeue.Result,
    ) -> requeue.Result:
        # The finalizer is gone once a delete completes; the object may already be removed
        if trigger is Trigger.DELETE and outcome.state is PipelineState.DONE:
            return result
        if not request.status_changed():
            return result

        resource: Workload = request.resource
        try:
            updated = self.store.patch_status(
                resource.kind,
                request.namespace,
                request.name,
                status=resource.status.to_dict(),
                resource_version=resource.metadata.resource_version,
            )
        except StoreConflictError as e:
            self.log_warning(request.meta(), f"Status update conflict: {e}", reason=e.reason)
            return requeue.Result(requeue=True, requeue_after=self.config.requeue_interval_seconds, error=result.error or e)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return result
            self.log_error(request.meta(), "Status update failed", error=e, reason="StatusUpdateFailed")
            return requeue.on_error(self.config, result.error or e, request.context.retry)

        meta = (updated or {}).get("metadata") or {}
        resource.metadata.resource_version = meta.get("resourceVersion", resource.metadata.resource_version)
        return result
