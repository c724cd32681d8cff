"""
Orchestrator-facing lifecycle for the partition sink.

The host calls configure() once, ingest() for each delivery of records,
checkpoint() before committing source offsets and shutdown() when stopping.
The engine underneath does not depend on any host framework.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from loguru import logger

from .config import Settings
from .engine import (
    CONFIGURED_TIMEOUT,
    FlushBarrier,
    FlushResult,
    OutstandingRegistry,
    PartitionBuffer,
    PartitionId,
    Publisher,
    PublishDispatcher,
)
from .errors import InvalidInputError, InvalidRecordError, PublishError
from .metrics import metrics_registry
from .models import Record, make_record

RecordLike = Union[Record, Mapping[str, Any]]


def coerce_record(item: RecordLike) -> Record:
    """Accept a Record or a mapping with partition/key/payload."""
    if isinstance(item, Record):
        return item
    if isinstance(item, Mapping):
        if "partition" not in item or "payload" not in item:
            raise InvalidRecordError(f"record requires partition and payload: {dict(item)!r}")
        return make_record(item["partition"], item["payload"], item.get("key"))
    raise InvalidRecordError(f"unexpected record of type {type(item).__name__}")


class SinkTask:
    """Buffers, batches and publishes records; checkpoint() is the delivery barrier.

    A single caller is expected to drive ingest() and checkpoint(); publisher
    handles may resolve on any thread.

    Usage:
        task = SinkTask(publisher)
        task.configure("projects/p/topics/t", min_batch_size=100)
        task.ingest(records)
        result = task.checkpoint({0, 1})
        if result.ok:
            commit_offsets(...)
        task.shutdown()
    """

    def __init__(self, publisher: Publisher):
        self._publisher = publisher
        self._buffer = PartitionBuffer()
        self._registry = OutstandingRegistry()
        self._dispatcher: Optional[PublishDispatcher] = None
        self._barrier: Optional[FlushBarrier] = None
        self._min_batch_size = 0
        self._stopped = False

    @classmethod
    def from_settings(cls, publisher: Publisher, settings: Settings) -> "SinkTask":
        task = cls(publisher)
        task.configure(
            settings.destination,
            settings.MIN_BATCH_SIZE,
            flush_timeout=settings.FLUSH_TIMEOUT_SEC,
        )
        return task

    # --------------------------- lifecycle

    def configure(
        self, destination: str, min_batch_size: int, *, flush_timeout: Optional[float] = None
    ) -> None:
        if self._dispatcher is not None:
            raise InvalidInputError("task is already configured")
        if min_batch_size <= 0:
            raise InvalidInputError(f"min_batch_size must be > 0, got {min_batch_size}")
        self._min_batch_size = min_batch_size
        self._dispatcher = PublishDispatcher(
            self._publisher, destination, self._registry, self._buffer
        )
        self._barrier = FlushBarrier(
            self._buffer, self._registry, self._dispatcher, timeout=flush_timeout
        )
        logger.info(f"Start sink task for topic {destination} min batch size = {min_batch_size}")

    def ingest(self, records: Iterable[RecordLike]) -> int:
        """Buffer records in order; dispatch a partition as soon as it reaches the threshold.

        If a publish call raises, every record of the call stays buffered
        (undispatched ones in order) and the PublishError propagates.
        """
        dispatcher = self._require_running()
        records = [coerce_record(r) for r in records]
        logger.debug(f"Received {len(records)} records")
        for i, record in enumerate(records):
            pending = self._buffer.accumulate(record.partition, record)
            metrics_registry.records_ingested_total.inc()
            if pending >= self._min_batch_size:
                drained = self._buffer.drain(record.partition)
                try:
                    dispatcher.dispatch_records(record.partition, drained, trigger="threshold")
                except PublishError:
                    # keep the rest of the call buffered for the next flush
                    rest = records[i + 1 :]
                    for r in rest:
                        self._buffer.accumulate(r.partition, r)
                    metrics_registry.records_ingested_total.inc(len(rest))
                    raise
        return len(records)

    def checkpoint(
        self,
        partitions: Iterable[PartitionId],
        timeout: Union[float, None, object] = CONFIGURED_TIMEOUT,
    ) -> FlushResult:
        """Flush; the caller must not commit progress for partitions not in result.succeeded."""
        self._require_running()
        partitions = set(partitions)
        logger.debug(f"Received flush for partitions {sorted(partitions)}")
        return self._barrier.flush(partitions, timeout=timeout)

    def shutdown(self) -> None:
        """Release resources. Does not flush; buffered records are discarded."""
        if self._stopped:
            return
        self._stopped = True
        pending = self._buffer.drain_all()
        if pending:
            logger.warning(
                f"Shutdown discarding {sum(len(r) for r in pending.values())} "
                f"unflushed records from partitions {sorted(pending)}"
            )
        outstanding = self._registry.clear()
        if outstanding:
            logger.warning(f"Shutdown with {outstanding} unconfirmed publishes")
        close = getattr(self._publisher, "close", None)
        if callable(close):
            close()
        logger.info("Sink task stopped")

    # --------------------------- introspection

    @property
    def configured(self) -> bool:
        return self._dispatcher is not None

    @property
    def min_batch_size(self) -> int:
        return self._min_batch_size

    @property
    def buffer(self) -> PartitionBuffer:
        return self._buffer

    @property
    def registry(self) -> OutstandingRegistry:
        return self._registry

    def _require_running(self) -> PublishDispatcher:
        if self._stopped:
            raise InvalidInputError("task has been shut down")
        if self._dispatcher is None:
            raise InvalidInputError("task is not configured")
        return self._dispatcher
