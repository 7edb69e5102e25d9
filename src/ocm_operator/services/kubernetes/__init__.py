"""Kubernetes-side collaborators."""

from .store import ResourceStore

__all__ = ["ResourceStore"]
