"""
Custom exceptions for the partition sink.

Invalid input fails fast at the call that introduced it; publish failures
surface only when a checkpoint awaits them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .engine.barrier import FlushResult


class PartitionSinkError(Exception):
    """Base error for the partition sink."""

    pass


class InvalidInputError(PartitionSinkError, ValueError):
    """Rejected argument (non-positive sizes, empty batch, bad lifecycle call)."""

    pass


class InvalidRecordError(InvalidInputError):
    """Malformed record, rejected before buffering."""

    pass


class PublishError(PartitionSinkError):
    """The publisher raised while accepting a batch; nothing was registered."""

    def __init__(self, partition: int, cause: BaseException):
        super().__init__(f"publish call failed for partition {partition}: {cause}")
        self.partition = partition
        self.cause = cause


class PublishFailure(PartitionSinkError):
    """An operation handle resolved with an error."""

    pass


class HandleTimeoutError(PublishFailure):
    """A handle was still unresolved when the flush timeout expired."""

    pass


class CheckpointFailedError(PartitionSinkError):
    """Checkpoint must not acknowledge progress; carries the partial result."""

    def __init__(self, result: "FlushResult"):
        failed = ", ".join(
            f"{p}: {type(e).__name__}: {e}" for p, e in sorted(result.failed.items())
        )
        super().__init__(f"checkpoint failed for partitions [{failed}]")
        self.result = result

    @property
    def failed_partitions(self) -> frozenset[int]:
        return frozenset(self.result.failed)

    @property
    def succeeded_partitions(self) -> frozenset[int]:
        return self.result.succeeded
