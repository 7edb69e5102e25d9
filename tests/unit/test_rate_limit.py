"""Tests for rate limiting utilities."""

from __future__ import annotations

from unittest.mock import patch

from ocm_operator.utils import rate_limit
from ocm_operator.utils.rate_limit import (
    is_rate_limit_status,
    rate_limit_k8s,
    rate_limit_ocm,
    rate_limited,
)


class TestRateLimitDecorators:
    """Test cases for the rate limiting decorators."""

    def test_rate_limit_k8s_decorator(self):
        """Test that k8s rate limiting decorator works."""
        call_count = 0

        @rate_limit_k8s
        def test_func():
            nonlocal call_count
            call_count += 1
            return "success"

        result = test_func()
        assert result == "success"
        assert call_count == 1

    def test_rate_limit_ocm_with_args(self):
        """Test OCM rate limiting with function arguments."""
        @rate_limit_ocm
        def test_func(a, b, c=None):
            return f"{a}-{b}-{c}"

        assert test_func("x", "y", c="z") == "x-y-z"

    def test_calls_spaced_by_rate(self, monkeypatch):
        """Test that a second immediate call waits for its slot."""
        monkeypatch.setattr(rate_limit, "_RATE_LIMITS_PER_SECOND", {"test": 1.0})
        monkeypatch.setattr(rate_limit, "_last_call_times", {})

        @rate_limited("test")
        def test_func():
            return "ok"

        with patch("ocm_operator.utils.rate_limit.time.sleep") as mock_sleep, \
                patch("ocm_operator.utils.rate_limit.time.monotonic", return_value=10.0):
            test_func()
            mock_sleep.assert_not_called()
            test_func()

        mock_sleep.assert_called_once()
        assert mock_sleep.call_args[0][0] == 1.0

    def test_unknown_api_not_limited(self):
        with patch("ocm_operator.utils.rate_limit.time.sleep") as mock_sleep:
            rate_limited("unknown")(lambda: None)()

        mock_sleep.assert_not_called()


class TestIsRateLimitStatus:
    """Test cases for throttling detection."""

    def test_429(self):
        assert is_rate_limit_status(429) is True

    def test_503_with_rate_limit_message(self):
        assert is_rate_limit_status(503, "Service Unavailable: rate limit exceeded") is True

    def test_503_without_rate_limit_message(self):
        assert is_rate_limit_status(503, "Service Unavailable") is False

    def test_other_status(self):
        assert is_rate_limit_status(404) is False
        assert is_rate_limit_status(None) is False
