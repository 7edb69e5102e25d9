"""Reconcile error taxonomy and error sanitization utilities."""

from __future__ import annotations

import re
from typing import Any

from ..constants import (
    REASON_CANCELLED,
    REASON_FINALIZER_FAILED,
    REASON_IMMUTABLE_FIELD,
    REASON_RECONCILE_FAILED,
    REASON_REMOTE_ERROR,
    REASON_REMOTE_REJECTED,
    REASON_STATUS_CONFLICT,
    REASON_TYPE_MISMATCH,
)


class ReconcileError(Exception):
    """Base class for classified reconcile errors.

    The ``reason`` is used verbatim as the condition reason when the error
    ends a reconcile.
    """

    reason = REASON_RECONCILE_FAILED

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class TypeMismatchError(ReconcileError):
    """The dispatched resource does not match the controller's kind."""

    reason = REASON_TYPE_MISMATCH


class FinalizerError(ReconcileError):
    """Adding or removing the finalizer could not be persisted."""

    reason = REASON_FINALIZER_FAILED


class StoreConflictError(ReconcileError):
    """An optimistic concurrency conflict while writing the resource."""

    reason = REASON_STATUS_CONFLICT


class ConfigurationError(ReconcileError):
    """The declared spec cannot be honored until the user corrects it."""


class InvalidSpecError(ReconcileError):
    """A spec field is malformed, such as a cluster key that cannot name any cluster."""


class RemoteTransientError(ReconcileError):
    """The remote API failed in a way that may succeed on retry."""

    reason = REASON_REMOTE_ERROR


class RemotePermanentError(ReconcileError):
    """The remote API rejected the request semantically."""

    reason = REASON_REMOTE_REJECTED


class ImmutableFieldError(ReconcileError):
    """A recorded status identifier would be replaced by a different value."""

    reason = REASON_IMMUTABLE_FIELD


class ReconcileCancelled(ReconcileError):
    """The reconcile deadline passed or the operator is stopping."""

    reason = REASON_CANCELLED


class PhaseError(ReconcileError):
    """Wraps an error raised by a phase with the phase and resource it came from."""

    def __init__(self, phase: str, resource: str, cause: BaseException) -> None:
        super().__init__(f"phase {phase} failed for {resource}: {cause}")
        self.phase = phase
        self.resource = resource
        self.cause = cause
        if isinstance(cause, ReconcileError):
            self.reason = cause.reason


def root_cause(error: BaseException) -> BaseException:
    """Unwrap ``PhaseError`` layers down to the classified error."""
    while isinstance(error, PhaseError):
        error = error.cause
    return error


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
    r"refresh[_\s]?token[=:\s]+([A-Za-z0-9\-_\.=]+)",
    r"access[_\s]?token[=:\s]+([A-Za-z0-9\-_\.=]+)",
    r"client[_\s]?secret[=:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "client_secret",
    "clientsecret",
    "access_token",
    "refresh_token",
    "password",
    "token",
    "authorization",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
