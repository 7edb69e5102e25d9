"""Ordered, short-circuiting phase pipelines."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .. import metrics
from ..tracing import trace_span
from ..utils.errors import PhaseError, ReconcileCancelled

if TYPE_CHECKING:
    from .request import Request


class PhaseAction(str, Enum):
    CONTINUE = "continue"
    REQUEUE = "requeue"
    FAIL = "fail"


@dataclass(frozen=True)
class PhaseResult:
    """What a phase asks the pipeline to do next."""

    action: PhaseAction
    requeue_after: float = 0.0
    reason: str = ""
    message: str = ""
    error: BaseException | None = None

    @classmethod
    def proceed(cls) -> PhaseResult:
        return cls(PhaseAction.CONTINUE)

    @classmethod
    def requeue(cls, after: float, reason: str = "", message: str = "") -> PhaseResult:
        return cls(PhaseAction.REQUEUE, requeue_after=after, reason=reason, message=message)

    @classmethod
    def fail(cls, error: BaseException) -> PhaseResult:
        return cls(PhaseAction.FAIL, error=error)


@dataclass(frozen=True)
class Phase:
    name: str
    fn: Callable[[], PhaseResult]


class PipelineState(str, Enum):
    DONE = "done"
    REQUEUE_SCHEDULED = "requeue_scheduled"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineResult:
    state: PipelineState
    phase: str = ""
    requeue_after: float = 0.0
    reason: str = ""
    message: str = ""
    error: BaseException | None = None


class Pipeline:
    """Runs phases in declared order against one request.

    The first phase that requeues or fails ends the run. There is no per-phase
    retry: the next delivery starts again from the first phase, so every phase
    must be safe to execute repeatedly.
    """

    def __init__(self, request: Request, *phases: Phase) -> None:
        self.request = request
        self.phases = phases

    def execute(self) -> PipelineResult:
        kind = self.request.resource.kind
        log = self.request.controller

        for phase in self.phases:
            try:
                self.request.context.check()
            except ReconcileCancelled as e:
                log.log_warning(
                    self.request.meta(),
                    f"Stopping before phase {phase.name}: {e}",
                    reason=e.reason,
                    phase=phase.name,
                )
                return PipelineResult(
                    PipelineState.REQUEUE_SCHEDULED,
                    phase=phase.name,
                    requeue_after=log.config.min_retry_delay_seconds,
                    reason=e.reason,
                    message=str(e),
                )

            log.log_debug(self.request.meta(), f"Running phase {phase.name}", phase=phase.name)
            start_time = time.time()
            try:
                with trace_span(f"phase_{phase.name}", kind=kind, attributes={"phase": phase.name}):
                    result = phase.fn()
            except ReconcileCancelled as e:
                result = PhaseResult.requeue(
                    log.config.min_retry_delay_seconds, reason=e.reason, message=str(e)
                )
            except Exception as e:
                result = PhaseResult.fail(e)
            finally:
                metrics.phase_duration_seconds.labels(kind=kind, phase=phase.name).observe(
                    time.time() - start_time
                )

            if result.action is PhaseAction.CONTINUE:
                continue

            if result.action is PhaseAction.REQUEUE:
                return PipelineResult(
                    PipelineState.REQUEUE_SCHEDULED,
                    phase=phase.name,
                    requeue_after=result.requeue_after,
                    reason=result.reason,
                    message=result.message,
                )

            error = result.error
            if not isinstance(error, PhaseError):
                error = PhaseError(phase.name, self.request.key, error)
            return PipelineResult(
                PipelineState.FAILED,
                phase=phase.name,
                reason=error.reason,
                message=str(error),
                error=error,
            )

        return PipelineResult(PipelineState.DONE)
