"""Kubernetes operator managing OpenShift Cluster Manager identity providers."""

__version__ = "0.1.0"
