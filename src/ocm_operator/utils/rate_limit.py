"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_RATE_LIMITS_PER_SECOND = {
    "k8s": float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0")),
    "ocm": float(os.getenv("OCM_RATE_LIMIT_PER_SECOND", "5.0")),
}

# Track last call times
_last_call_times: dict[str, float] = {}
_lock = threading.Lock()


def _wait_for_slot(api_type: str) -> None:
    rate = _RATE_LIMITS_PER_SECOND.get(api_type)
    if not rate:
        return
    min_interval = 1.0 / rate

    with _lock:
        now = time.monotonic()
        next_slot = max(now, _last_call_times.get(api_type, 0.0) + min_interval)
        _last_call_times[api_type] = next_slot

    sleep_time = next_slot - now
    if sleep_time > 0:
        time.sleep(sleep_time)


def rate_limited(api_type: str) -> Callable[[_F], _F]:
    """Decorator factory to space out calls against one API.

    Calls are spaced by ``1 / rate`` seconds across all worker threads so the
    Kubernetes API server and OCM are never flooded by a burst of reconciles.
    """
    def decorator(func: _F) -> _F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            _wait_for_slot(api_type)
            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls."""
    return rate_limited("k8s")(func)


def rate_limit_ocm(func: _F) -> _F:
    """Decorator to rate limit OCM API calls."""
    return rate_limited("ocm")(func)


def is_rate_limit_status(status: int | None, body: str = "") -> bool:
    """Check whether an HTTP status signals throttling.

    Args:
        status: HTTP status code
        body: Optional response body used to disambiguate 503 responses

    Returns:
        True if the response is a rate limit response
    """
    return status == 429 or (status == 503 and "rate limit" in body.lower())


def record_rate_limit_hit(api_type: str) -> None:
    """Count a throttled response."""
    metrics.rate_limit_hits_total.labels(api_type=api_type).inc()
