"""Builders for OCM payloads."""

from .identity_provider import build_identity_provider, copy_from, needs_update

__all__ = ["build_identity_provider", "copy_from", "needs_update"]
