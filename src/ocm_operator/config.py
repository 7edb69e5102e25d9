"""Operator configuration loaded from environment variables.

Values are validated when the configuration is built so a misconfigured
operator fails at startup rather than in the middle of a reconcile.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


class ConfigError(Exception):
    """Raised when operator configuration validation fails."""


DEFAULT_OCM_API_URL = "https://api.openshift.com"
DEFAULT_OCM_TOKEN_URL = "https://sso.redhat.com/auth/realms/redhat-external/protocol/openid-connect/token"
DEFAULT_OCM_CLIENT_ID = "cloud-services"

DEFAULT_REQUEUE_INTERVAL_SECONDS = 30.0
DEFAULT_RECONCILE_TIMEOUT_SECONDS = 120.0
DEFAULT_OCM_REQUEST_TIMEOUT_SECONDS = 30.0

# Exponential backoff: 1s, 2s, 4s, 8s, 16s, 32s, 60s (max)
DEFAULT_MIN_RETRY_DELAY_SECONDS = 1.0
DEFAULT_MAX_RETRY_DELAY_SECONDS = 60.0
DEFAULT_RETRY_BACKOFF = 2.0

DEFAULT_METRICS_PORT = 8080


@dataclass(frozen=True)
class OperatorConfig:
    """Runtime configuration of the operator."""

    ocm_api_url: str = DEFAULT_OCM_API_URL
    ocm_token_url: str = DEFAULT_OCM_TOKEN_URL
    ocm_client_id: str = DEFAULT_OCM_CLIENT_ID
    ocm_token: str = ""
    ocm_request_timeout_seconds: float = DEFAULT_OCM_REQUEST_TIMEOUT_SECONDS

    requeue_interval_seconds: float = DEFAULT_REQUEUE_INTERVAL_SECONDS
    reconcile_timeout_seconds: float = DEFAULT_RECONCILE_TIMEOUT_SECONDS

    min_retry_delay_seconds: float = DEFAULT_MIN_RETRY_DELAY_SECONDS
    max_retry_delay_seconds: float = DEFAULT_MAX_RETRY_DELAY_SECONDS
    retry_backoff: float = DEFAULT_RETRY_BACKOFF

    metrics_port: int = DEFAULT_METRICS_PORT

    def __post_init__(self) -> None:
        if not self.ocm_api_url.startswith(("https://", "http://")):
            raise ConfigError(f"OCM_API_URL must be an http(s) URL, got {self.ocm_api_url!r}")
        if self.requeue_interval_seconds <= 0:
            raise ConfigError("REQUEUE_INTERVAL_SECONDS must be positive")
        if self.reconcile_timeout_seconds <= 0:
            raise ConfigError("RECONCILE_TIMEOUT_SECONDS must be positive")
        if self.ocm_request_timeout_seconds <= 0:
            raise ConfigError("OCM_REQUEST_TIMEOUT_SECONDS must be positive")
        if not 0 < self.min_retry_delay_seconds <= self.max_retry_delay_seconds:
            raise ConfigError("retry delays must satisfy 0 < MIN_RETRY_DELAY_SECONDS <= MAX_RETRY_DELAY_SECONDS")
        if self.retry_backoff < 1.0:
            raise ConfigError("RETRY_BACKOFF must be at least 1.0")
        if not 0 < self.metrics_port < 65536:
            raise ConfigError(f"METRICS_PORT out of range: {self.metrics_port}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OperatorConfig:
        """Build the configuration from environment variables."""
        env = os.environ if environ is None else environ

        try:
            return cls(
                ocm_api_url=env.get("OCM_API_URL", DEFAULT_OCM_API_URL).rstrip("/"),
                ocm_token_url=env.get("OCM_TOKEN_URL", DEFAULT_OCM_TOKEN_URL),
                ocm_client_id=env.get("OCM_CLIENT_ID", DEFAULT_OCM_CLIENT_ID),
                ocm_token=env.get("OCM_TOKEN", ""),
                ocm_request_timeout_seconds=float(
                    env.get("OCM_REQUEST_TIMEOUT_SECONDS", DEFAULT_OCM_REQUEST_TIMEOUT_SECONDS)
                ),
                requeue_interval_seconds=float(
                    env.get("REQUEUE_INTERVAL_SECONDS", DEFAULT_REQUEUE_INTERVAL_SECONDS)
                ),
                reconcile_timeout_seconds=float(
                    env.get("RECONCILE_TIMEOUT_SECONDS", DEFAULT_RECONCILE_TIMEOUT_SECONDS)
                ),
                min_retry_delay_seconds=float(
                    env.get("MIN_RETRY_DELAY_SECONDS", DEFAULT_MIN_RETRY_DELAY_SECONDS)
                ),
                max_retry_delay_seconds=float(
                    env.get("MAX_RETRY_DELAY_SECONDS", DEFAULT_MAX_RETRY_DELAY_SECONDS)
                ),
                retry_backoff=float(env.get("RETRY_BACKOFF", DEFAULT_RETRY_BACKOFF)),
                metrics_port=int(env.get("METRICS_PORT", DEFAULT_METRICS_PORT)),
            )
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e
