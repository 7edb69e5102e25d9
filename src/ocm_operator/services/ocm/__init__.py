"""OpenShift Cluster Manager API client."""

from .base import ClusterAPI
from .client import OCMClient
from .models import Cluster, IdentityProvider

__all__ = ["ClusterAPI", "Cluster", "IdentityProvider", "OCMClient"]
