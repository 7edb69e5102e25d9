"""Mapping of pipeline outcomes to scheduling decisions."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import OperatorConfig
from ..utils.errors import (
    ConfigurationError,
    FinalizerError,
    ImmutableFieldError,
    InvalidSpecError,
    RemotePermanentError,
    StoreConflictError,
    TypeMismatchError,
    root_cause,
)
from .phases import PipelineResult, PipelineState
from .triggers import Trigger


@dataclass(frozen=True)
class Result:
    """Scheduling decision handed back to the watch substrate.

    ``requeue_after`` without ``requeue`` is the periodic resync of a
    converged resource. ``error`` is set for any failed reconcile; whether it
    is retried is decided by ``requeue``.
    """

    requeue: bool = False
    requeue_after: float = 0.0
    error: BaseException | None = None

    @property
    def fatal(self) -> bool:
        return self.error is not None and not self.requeue


def backoff_delay(config: OperatorConfig, retry: int) -> float:
    """Exponential backoff bounded by the configured maximum."""
    delay = config.min_retry_delay_seconds * (config.retry_backoff ** max(retry, 0))
    return min(delay, config.max_retry_delay_seconds)


def on_error(config: OperatorConfig, error: BaseException, retry: int = 0) -> Result:
    """Classify a failure into a retry schedule.

    Wiring defects never retry. Write conflicts and configuration errors,
    malformed spec fields included, come back after the standard interval so
    that a fix such as creating a missing secret is picked up. Errors that
    need an external correction come back at the periodic interval instead of
    a tight backoff; everything else is treated as transient and backs off
    exponentially.
    """
    cause = root_cause(error)
    if isinstance(cause, TypeMismatchError):
        return Result(requeue=False, error=error)
    if isinstance(cause, (FinalizerError, StoreConflictError, ConfigurationError, InvalidSpecError)):
        return Result(requeue=True, requeue_after=config.requeue_interval_seconds, error=error)
    if isinstance(cause, (RemotePermanentError, ImmutableFieldError)):
        return Result(requeue=True, requeue_after=config.requeue_interval_seconds, error=error)
    return Result(requeue=True, requeue_after=backoff_delay(config, retry), error=error)


def classify(
    config: OperatorConfig,
    trigger: Trigger,
    outcome: PipelineResult,
    retry: int = 0,
) -> Result:
    """Turn a pipeline outcome into the scheduling decision for this trigger."""
    if outcome.state is PipelineState.DONE:
        if trigger is Trigger.DELETE:
            return Result()
        return Result(requeue=False, requeue_after=config.requeue_interval_seconds)

    if outcome.state is PipelineState.REQUEUE_SCHEDULED:
        return Result(requeue=True, requeue_after=outcome.requeue_after)

    return on_error(config, outcome.error, retry)
