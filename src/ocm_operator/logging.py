"""Structured JSON logging for the OCM Operator."""

import json
import logging
import os
import sys
from typing import Any

from .utils.context import get_context_dict

REDACTED = "***REDACTED***"

SECRET_FIELDS = frozenset({
    "client_secret",
    "clientSecret",
    "access_token",
    "refresh_token",
    "offline_token",
    "ocm_token",
    "Authorization",
})

# Library loggers that log every HTTP request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "kubernetes.client.rest")


class JSONFormatter(logging.Formatter):
    """Render every record as a single JSON object.

    Lines already built by log_resource_event keep their fields; records from
    kopf and client libraries are wrapped with the active reconcile context.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        try:
            data = json.loads(message)
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = get_context_dict({"message": message})

        data.setdefault("level", record.levelname)
        data.setdefault("logger", record.name)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_structured_logging(level: str | None = None) -> None:
    """Send JSON lines to stdout at LOG_LEVEL (default INFO)."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        handlers=[handler],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = get_context_dict({
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    })
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def log_ocm_call(
    logger: logging.Logger,
    operation: str,
    method: str,
    path: str,
    result: str,
    duration: float,
    status_code: int | None = None,
) -> None:
    """Log one OCM API request at DEBUG."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    log_data = get_context_dict({
        "api": "ocm",
        "operation": operation,
        "method": method,
        "path": path,
        "result": result,
        "status_code": status_code,
        "duration_ms": round(duration * 1000, 1),
    })
    logger.debug(json.dumps(log_data, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Redact secret fields, including inside nested payloads."""
    sanitized: dict[str, Any] = {}
    for key, value in log_data.items():
        if key in SECRET_FIELDS:
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_secrets(value)
        else:
            sanitized[key] = value
    return sanitized
