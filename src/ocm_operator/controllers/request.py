"""The per-reconcile request envelope."""

from __future__ import annotations

import copy
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..utils.errors import ReconcileCancelled

if TYPE_CHECKING:
    from ..models import Workload
    from .base import Controller


@dataclass
class ReconcileContext:
    """Deadline, cancellation and retry bookkeeping for one reconcile.

    External calls inside a reconcile are synchronous; the pipeline checks
    this context between phases so a reconcile that runs past its deadline
    or is cancelled stops at the next phase boundary.
    """

    timeout: float | None = None
    retry: int = 0
    correlation_id: str = ""
    cancel_event: threading.Event = field(default_factory=threading.Event)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def deadline(self) -> float | None:
        if self.timeout is None:
            return None
        return self.started_at + self.timeout

    def cancel(self) -> None:
        self.cancel_event.set()

    def cancelled(self) -> bool:
        if self.cancel_event.is_set():
            return True
        deadline = self.deadline
        return deadline is not None and time.monotonic() >= deadline

    def check(self) -> None:
        """Raise ReconcileCancelled if the reconcile should stop."""
        if self.cancel_event.is_set():
            raise ReconcileCancelled("reconcile cancelled")
        if self.cancelled():
            raise ReconcileCancelled(f"reconcile deadline of {self.timeout}s exceeded")


@dataclass
class Request:
    """One delivered reconcile event bound to the resource it concerns.

    ``original`` is a snapshot taken when the resource was loaded and is never
    mutated; comparing against it tells whether a status write is needed.
    """

    context: ReconcileContext
    resource: Workload
    controller: Controller
    original: Workload | None = None
    cluster: Any = None

    def __post_init__(self) -> None:
        if self.original is None:
            self.original = copy.deepcopy(self.resource)

    @property
    def name(self) -> str:
        return self.resource.metadata.name

    @property
    def namespace(self) -> str:
        return self.resource.metadata.namespace

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def meta(self) -> dict[str, Any]:
        """Metadata dict in the shape the logging helpers expect."""
        return {
            "name": self.resource.metadata.name,
            "namespace": self.resource.metadata.namespace,
            "uid": self.resource.metadata.uid,
            "generation": self.resource.metadata.generation,
        }

    def status_changed(self) -> bool:
        return self.resource.status.to_dict() != self.original.status.to_dict()
