"""OpenTelemetry tracing for reconciles, phases and OCM requests."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from .utils.context import current_scope

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Tracer | None = None


def initialize_tracing(service_name: str = "ocm-operator") -> None:
    """Initialize OpenTelemetry tracing.

    Environment Variables:
        OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (default: http://localhost:4317)
        OTEL_SERVICE_NAME: Service name (default: ocm-operator)
        OTEL_TRACES_ENABLED: Enable/disable tracing (default: true)
        OCM_API_URL: Recorded on every span as the remote control plane
    """
    global _tracer

    if os.getenv("OTEL_TRACES_ENABLED", "true").lower() == "false":
        logger.info("Tracing disabled by OTEL_TRACES_ENABLED")
        return

    try:
        service_name = os.getenv("OTEL_SERVICE_NAME", service_name)
        resource = Resource.create({
            "service.name": service_name,
            "service.version": os.getenv("OTEL_SERVICE_VERSION", "unknown"),
            "ocm.api_url": os.getenv("OCM_API_URL", "https://api.openshift.com"),
        })
        provider = TracerProvider(resource=resource)
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(provider)
        _tracer = trace.get_tracer(service_name)
    except Exception as e:
        # Tracing initialization failures should not break the operator
        logger.warning(f"Failed to initialize tracing: {e}")


def set_tracer(tracer: Tracer | None) -> None:
    """Install a tracer directly, bypassing the OTLP exporter."""
    global _tracer
    _tracer = tracer


def get_tracer() -> Tracer | None:
    return _tracer


def _scope_attributes() -> dict[str, Any]:
    scope = current_scope()
    if scope is None:
        return {}
    return {f"reconcile.{k}": v for k, v in scope.as_dict().items()}


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span | None]:
    """Open a span tagged with the resource kind and the active reconcile.

    Yields None when tracing is not initialized. An exception escaping the
    block is recorded on the span and re-raised.
    """
    tracer = get_tracer()
    if tracer is None:
        yield None
        return

    attrs = _scope_attributes()
    if kind:
        attrs["resource.kind"] = kind
    attrs.update(attributes or {})

    with tracer.start_as_current_span(
        name, attributes=attrs, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as e:
            if span.is_recording():
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


@contextmanager
def ocm_request_span(operation: str, method: str, path: str) -> Iterator[Span | None]:
    """Span around one OCM API request."""
    with trace_span(
        f"ocm.{operation}",
        attributes={"http.method": method, "ocm.operation": operation, "ocm.path": path},
    ) as span:
        yield span


def set_span_attributes(attributes: dict[str, Any]) -> None:
    """Attach attributes to the current span, skipping empty values."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        if value not in (None, ""):
            span.set_attribute(key, value)


def set_span_status(ok: bool, description: str | None = None) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.set_status(
            trace.Status(
                trace.StatusCode.OK if ok else trace.StatusCode.ERROR,
                None if ok else description,
            )
        )
