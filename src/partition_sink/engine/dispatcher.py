from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Sequence

from loguru import logger

from ..errors import InvalidInputError, PublishError
from ..metrics import metrics_registry
from ..models import Record
from .buffer import PartitionBuffer
from .handle import OperationHandle
from .splitter import split_batches
from .types import MAX_REQUEST_SIZE, PartitionId, Publisher


class OutstandingRegistry:
    """partition -> handles dispatched but not yet confirmed by a flush.

    Handles are kept in submission order. Entries disappear only once every
    handle of the partition has been pruned after resolving successfully.
    """

    def __init__(self) -> None:
        self._outstanding: Dict[PartitionId, List[OperationHandle]] = {}
        self._lock = threading.Lock()

    def append(self, partition: PartitionId, handle: OperationHandle) -> None:
        with self._lock:
            self._outstanding.setdefault(partition, []).append(handle)
        metrics_registry.outstanding_handles.inc()

    def snapshot(self, partition: PartitionId) -> List[OperationHandle]:
        """Copy of the partition's handles; waiting happens on the copy, outside the lock."""
        with self._lock:
            return list(self._outstanding.get(partition, ()))

    def prune(self, partition: PartitionId, handles: Iterable[OperationHandle]) -> int:
        """Remove the given handles; drop the entry once it is empty.

        Handles appended since the snapshot are left in place.
        """
        done = {id(h) for h in handles}
        with self._lock:
            current = self._outstanding.get(partition)
            if current is None:
                return 0
            remaining = [h for h in current if id(h) not in done]
            removed = len(current) - len(remaining)
            if remaining:
                self._outstanding[partition] = remaining
            else:
                del self._outstanding[partition]
        if removed:
            metrics_registry.outstanding_handles.dec(removed)
        return removed

    def clear(self) -> int:
        """Forget every handle (shutdown); returns how many were still registered."""
        with self._lock:
            removed = sum(len(hs) for hs in self._outstanding.values())
            self._outstanding = {}
        if removed:
            metrics_registry.outstanding_handles.dec(removed)
        return removed

    def count(self, partition: Optional[PartitionId] = None) -> int:
        with self._lock:
            if partition is not None:
                return len(self._outstanding.get(partition, ()))
            return sum(len(hs) for hs in self._outstanding.values())

    def partitions(self) -> List[PartitionId]:
        with self._lock:
            return list(self._outstanding)

    def __contains__(self, partition: PartitionId) -> bool:
        with self._lock:
            return partition in self._outstanding


class PublishDispatcher:
    """Turns batches into publisher calls and tracks the returned handles."""

    def __init__(
        self,
        publisher: Publisher,
        destination: str,
        registry: OutstandingRegistry,
        buffer: PartitionBuffer,
        *,
        max_request_size: int = MAX_REQUEST_SIZE,
    ):
        if not destination:
            raise InvalidInputError("destination must be a non-empty string")
        self._publisher = publisher
        self._destination = destination
        self._registry = registry
        self._buffer = buffer
        self._max_request_size = max_request_size

    @property
    def destination(self) -> str:
        return self._destination

    def dispatch(
        self, partition: PartitionId, batch: Sequence[Record], *, trigger: str = "threshold"
    ) -> OperationHandle:
        """Publish one batch and register its handle. Never waits on the publish."""
        if not batch:
            raise InvalidInputError("cannot dispatch an empty batch")
        if len(batch) > self._max_request_size:
            raise InvalidInputError(
                f"batch of {len(batch)} exceeds max request size {self._max_request_size}"
            )
        try:
            handle = self._publisher.publish(self._destination, batch)
        except Exception as e:
            metrics_registry.batches_dispatched_total.labels(trigger=trigger, outcome="error").inc()
            raise PublishError(partition, e) from e

        self._registry.append(partition, handle)
        metrics_registry.batches_dispatched_total.labels(trigger=trigger, outcome="ok").inc()
        metrics_registry.batch_size.observe(len(batch))
        logger.debug(
            f"Dispatched batch partition={partition} size={len(batch)} "
            f"handle={handle!r} trigger={trigger}"
        )
        return handle

    def dispatch_records(
        self, partition: PartitionId, records: Sequence[Record], *, trigger: str = "threshold"
    ) -> List[OperationHandle]:
        """Split drained records into request-sized batches and dispatch them in order.

        If a publish call raises, the undispatched remainder goes back to the
        front of the partition's buffer before the error propagates.
        """
        batches = split_batches(records, self._max_request_size)
        handles: List[OperationHandle] = []
        for i, batch in enumerate(batches):
            try:
                handles.append(self.dispatch(partition, batch, trigger=trigger))
            except PublishError:
                rest = [r for b in batches[i:] for r in b]
                self._buffer.requeue(partition, rest)
                logger.warning(
                    f"Publish call failed for partition {partition}; "
                    f"requeued {len(rest)} undispatched records"
                )
                raise
        return handles
