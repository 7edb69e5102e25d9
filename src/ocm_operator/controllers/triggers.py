"""Classification of a reconcile event into create, update or delete."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .request import Request


class Trigger(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def classify(request: Request) -> Trigger:
    """Decide which pipeline a delivery runs.

    A deletion timestamp always wins, whatever the status holds. Otherwise a
    resource without a recorded cluster ID has not completed its first
    reconcile and is still being created. No API is consulted.
    """
    resource = request.resource
    if resource.metadata.deletion_timestamp:
        return Trigger.DELETE
    if not resource.cluster_id:
        return Trigger.CREATE
    return Trigger.UPDATE
