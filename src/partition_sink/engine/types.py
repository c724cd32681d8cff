from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from ..models import Record
    from .handle import OperationHandle

PartitionId = int

MAX_REQUEST_SIZE = 1000


@runtime_checkable
class Publisher(Protocol):
    """Sends one batch to a destination without blocking the caller.

    Records within a batch must reach the destination in order; no ordering
    is promised across separate batches.
    """

    def publish(self, destination: str, batch: Sequence["Record"]) -> "OperationHandle": ...
