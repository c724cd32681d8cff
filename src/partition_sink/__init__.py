"""
Partition Sink

Buffers keyed records per source partition, publishes them in request-sized
batches without blocking, and turns each checkpoint into a barrier that
confirms every outstanding publish before progress may be acknowledged.

Usage:
    from partition_sink import SinkTask, RoundRobinPublisher, Record

    publisher = RoundRobinPublisher.with_channels(send, channels=10)
    task = SinkTask(publisher)
    task.configure("projects/p/topics/t", min_batch_size=100)
    task.ingest([Record(partition=0, key="k", payload=b"...")])
    if task.checkpoint({0}).ok:
        ...
"""

__version__ = "1.0.0"

from .models import Record, OutboundMessage, make_record
from .errors import (
    PartitionSinkError,
    InvalidInputError,
    InvalidRecordError,
    PublishError,
    PublishFailure,
    HandleTimeoutError,
    CheckpointFailedError,
)
from .engine import (
    MAX_REQUEST_SIZE,
    FlushBarrier,
    FlushResult,
    FlushState,
    OperationHandle,
    OutstandingRegistry,
    PartitionBuffer,
    Publisher,
    PublishDispatcher,
    split_batches,
)
from .publishers import InMemoryPublisher, RoundRobinPublisher, LogTransport
from .task import SinkTask
from .config import Settings, get_settings

__all__ = [
    "Record",
    "OutboundMessage",
    "make_record",
    "PartitionSinkError",
    "InvalidInputError",
    "InvalidRecordError",
    "PublishError",
    "PublishFailure",
    "HandleTimeoutError",
    "CheckpointFailedError",
    "MAX_REQUEST_SIZE",
    "FlushBarrier",
    "FlushResult",
    "FlushState",
    "OperationHandle",
    "OutstandingRegistry",
    "PartitionBuffer",
    "Publisher",
    "PublishDispatcher",
    "split_batches",
    "InMemoryPublisher",
    "RoundRobinPublisher",
    "LogTransport",
    "SinkTask",
    "Settings",
    "get_settings",
]
