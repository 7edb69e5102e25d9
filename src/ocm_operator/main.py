"""Main entry point for the OCM Operator."""

from __future__ import annotations

import logging
import threading
from typing import Any

import kopf
from werkzeug.serving import make_server

from . import handlers
from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .registry import default_registry
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)

_ready = threading.Event()


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    config = OperatorConfig.from_env()

    # Keep kopf's own bookkeeping out of the status subresource, which
    # belongs to the controllers
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    # Start metrics HTTP server with health check endpoints
    combined_app = health.create_combined_wsgi_app(readiness_check=_ready.is_set)
    server = make_server("", config.metrics_port, combined_app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    # The kind registry is built once and shared by every controller
    registry = default_registry()
    handlers.gitlab_identity_provider.configure(config, registry)

    _ready.set()
    logger.info(f"OCM operator started, metrics on port {config.metrics_port}")


@kopf.on.cleanup()
def cleanup(**_: Any) -> None:
    """Release remote clients on shutdown."""
    _ready.clear()
    handlers.gitlab_identity_provider.shutdown()


def main() -> None:
    """Run the operator against all namespaces."""
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
