"""Registry of the custom resource kinds the operator knows how to load."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator

from .constants import (
    API_GROUP,
    API_VERSION,
    KIND_GITLAB_IDENTITY_PROVIDER,
    PLURAL_GITLAB_IDENTITY_PROVIDERS,
)
from .models import GitLabIdentityProvider, Workload


@dataclass(frozen=True)
class ResourceKind:
    """Where a kind lives in the API and how to parse it."""

    kind: str
    group: str
    version: str
    plural: str
    model: Callable[[dict[str, Any]], Workload]

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    def parse(self, obj: dict[str, Any]) -> Workload:
        return self.model(obj)


class Registry:
    """Kind lookup table built once at startup and passed to controllers."""

    def __init__(self) -> None:
        self._kinds: dict[str, ResourceKind] = {}

    def register(self, resource_kind: ResourceKind) -> None:
        if resource_kind.kind in self._kinds:
            raise ValueError(f"kind {resource_kind.kind} is already registered")
        self._kinds[resource_kind.kind] = resource_kind

    def get(self, kind: str) -> ResourceKind:
        try:
            return self._kinds[kind]
        except KeyError:
            raise KeyError(f"kind {kind} is not registered") from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def __iter__(self) -> Iterator[ResourceKind]:
        return iter(self._kinds.values())


def default_registry() -> Registry:
    """Build the registry of every kind this operator reconciles."""
    registry = Registry()
    registry.register(
        ResourceKind(
            kind=KIND_GITLAB_IDENTITY_PROVIDER,
            group=API_GROUP,
            version=API_VERSION,
            plural=PLURAL_GITLAB_IDENTITY_PROVIDERS,
            model=GitLabIdentityProvider.from_dict,
        )
    )
    return registry
