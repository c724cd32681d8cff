"""
Checkpoint barrier.

A flush dispatches every buffered record, then blocks until each handle of
the requested partitions has resolved. Progress for a partition may be
acknowledged only when the flush reports it as succeeded.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from time import monotonic
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from loguru import logger

from ..errors import CheckpointFailedError, HandleTimeoutError, PublishError
from ..metrics import metrics_registry
from .buffer import PartitionBuffer
from .dispatcher import OutstandingRegistry, PublishDispatcher
from .handle import OperationHandle
from .types import PartitionId

# flush(timeout=CONFIGURED_TIMEOUT) uses the barrier's own timeout; None waits indefinitely
CONFIGURED_TIMEOUT = object()


class FlushState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"
    DISPATCHING = "dispatching"
    AWAITING = "awaiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class FlushResult:
    """Outcome of one flush.

    Attributes:
        state: SUCCEEDED or FAILED
        succeeded: Requested partitions whose every outstanding handle resolved successfully
        failed: Requested partition -> first failure reason observed for it
        batches_dispatched: Residual batches fired during the flush (all partitions)
        duration_ms: Wall time of the flush
    """

    state: FlushState
    succeeded: FrozenSet[PartitionId] = frozenset()
    failed: Dict[PartitionId, BaseException] = field(default_factory=dict)
    batches_dispatched: int = 0
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.state is FlushState.SUCCEEDED

    def raise_for_failure(self) -> "FlushResult":
        if not self.ok:
            raise CheckpointFailedError(self)
        return self


class FlushBarrier:
    """Drain, dispatch, then await outstanding handles for the requested partitions.

    Residual records of every partition are dispatched, requested or not, so
    nothing buffered is dropped; only requested partitions are awaited. The
    barrier never retries: failed or unresolved handles stay registered and
    are re-examined by the next flush.
    """

    def __init__(
        self,
        buffer: PartitionBuffer,
        registry: OutstandingRegistry,
        dispatcher: PublishDispatcher,
        *,
        timeout: Optional[float] = None,
    ):
        self._buffer = buffer
        self._registry = registry
        self._dispatcher = dispatcher
        self._timeout = timeout
        self._state = FlushState.IDLE
        self._flush_lock = threading.Lock()

    @property
    def state(self) -> FlushState:
        return self._state

    def flush(
        self,
        requested_partitions: Iterable[PartitionId],
        timeout: Union[float, None, object] = CONFIGURED_TIMEOUT,
    ) -> FlushResult:
        """Run one checkpoint barrier.

        Args:
            requested_partitions: Partitions whose progress the caller wants to acknowledge
            timeout: Overall seconds to wait for handles; None waits indefinitely,
                the default uses the barrier's configured timeout

        Returns:
            FlushResult; FAILED if any requested partition has a failed or unresolved handle
        """
        requested = sorted(set(requested_partitions))
        if timeout is CONFIGURED_TIMEOUT:
            timeout = self._timeout
        with self._flush_lock:
            t0 = monotonic()
            try:
                dispatched = self._dispatch_residuals()
                succeeded, failed = self._await(requested, timeout)
            except Exception:
                self._state = FlushState.FAILED
                metrics_registry.flush_total.labels(outcome="error").inc()
                raise

            self._state = FlushState.FAILED if failed else FlushState.SUCCEEDED
            duration_ms = (monotonic() - t0) * 1000.0
            metrics_registry.flush_total.labels(outcome=self._state.value).inc()
            metrics_registry.flush_latency_ms.observe(duration_ms)

            result = FlushResult(
                state=self._state,
                succeeded=frozenset(succeeded),
                failed=failed,
                batches_dispatched=dispatched,
                duration_ms=duration_ms,
            )
        if failed:
            logger.error(
                f"Flush failed for partitions {sorted(failed)} "
                f"(succeeded={sorted(succeeded)}): "
                + "; ".join(f"{p}={type(e).__name__}: {e}" for p, e in sorted(failed.items()))
            )
        else:
            logger.info(
                f"Flush succeeded for {len(succeeded)} partitions "
                f"(dispatched={dispatched}, {duration_ms:.1f}ms)"
            )
        return result

    # --------------------------- phases

    def _dispatch_residuals(self) -> int:
        self._state = FlushState.DRAINING
        drained = self._buffer.drain_all()
        self._state = FlushState.DISPATCHING
        dispatched = 0
        pending = sorted(drained)
        while pending:
            partition = pending.pop(0)
            try:
                handles = self._dispatcher.dispatch_records(
                    partition, drained[partition], trigger="flush"
                )
            except PublishError:
                # the failing partition requeued its own remainder
                for p in pending:
                    self._buffer.requeue(p, drained[p])
                raise
            dispatched += len(handles)
        if dispatched:
            logger.debug(f"Flush dispatched {dispatched} residual batches from {len(drained)} partitions")
        return dispatched

    def _await(
        self, requested: List[PartitionId], timeout: Optional[float]
    ) -> tuple[set[PartitionId], Dict[PartitionId, BaseException]]:
        self._state = FlushState.AWAITING
        deadline = None if timeout is None else monotonic() + timeout
        succeeded: set[PartitionId] = set()
        failed: Dict[PartitionId, BaseException] = {}

        for partition in requested:
            handles = self._registry.snapshot(partition)
            if not handles:
                succeeded.add(partition)
                continue
            logger.debug(f"Awaiting {len(handles)} outstanding publishes for partition {partition}")
            confirmed, failure = self._await_partition(handles, deadline)
            self._registry.prune(partition, confirmed)
            if failure is None:
                succeeded.add(partition)
            else:
                failed[partition] = failure
        return succeeded, failed

    @staticmethod
    def _await_partition(
        handles: List[OperationHandle], deadline: Optional[float]
    ) -> tuple[List[OperationHandle], Optional[BaseException]]:
        confirmed: List[OperationHandle] = []
        failure: Optional[BaseException] = None
        for handle in handles:
            if failure is not None:
                # stop waiting, but still confirm handles that already succeeded
                if handle.done() and handle.succeeded:
                    confirmed.append(handle)
                continue
            remaining = None if deadline is None else max(0.0, deadline - monotonic())
            if not handle.wait(remaining):
                failure = HandleTimeoutError(f"{handle!r} unresolved after flush timeout")
            elif handle.failed:
                failure = handle.error
            else:
                confirmed.append(handle)
        return confirmed, failure
