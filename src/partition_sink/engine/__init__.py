"""Batch-then-barrier engine

Records are buffered per partition, split into request-sized batches and
dispatched without blocking; a flush turns the outstanding publishes of the
checkpointed partitions into a barrier:
- PartitionBuffer (ordered per-partition accumulation)
- split_batches (contiguous batches bounded by MAX_REQUEST_SIZE)
- OperationHandle (thread-safe single-assignment publish result)
- OutstandingRegistry + PublishDispatcher
- FlushBarrier + FlushResult
"""

from .types import Publisher, PartitionId, MAX_REQUEST_SIZE
from .handle import OperationHandle, HandleState, HandleAlreadyResolved
from .buffer import PartitionBuffer
from .splitter import split_batches
from .dispatcher import OutstandingRegistry, PublishDispatcher
from .barrier import CONFIGURED_TIMEOUT, FlushBarrier, FlushResult, FlushState

__all__ = [
    # types
    "Publisher",
    "PartitionId",
    "MAX_REQUEST_SIZE",
    "OperationHandle",
    "HandleState",
    "HandleAlreadyResolved",
    # buffering
    "PartitionBuffer",
    "split_batches",
    # dispatch
    "OutstandingRegistry",
    "PublishDispatcher",
    # checkpoint
    "CONFIGURED_TIMEOUT",
    "FlushBarrier",
    "FlushResult",
    "FlushState",
]
