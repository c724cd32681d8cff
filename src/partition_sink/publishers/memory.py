from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..engine.handle import OperationHandle
from ..errors import PublishFailure
from ..models import OutboundMessage, Record


@dataclass(frozen=True)
class PublishCall:
    destination: str
    records: tuple[Record, ...]
    handle: OperationHandle

    @property
    def messages(self) -> List[OutboundMessage]:
        return [r.to_message() for r in self.records]


class InMemoryPublisher:
    """
    Publisher that records every call instead of sending it.

    With auto_resolve=True (default) handles succeed immediately; otherwise
    they stay pending until resolve_all()/fail() is called, which lets tests
    and demos drive completion from another thread.
    """

    def __init__(self, auto_resolve: bool = True):
        self.auto_resolve = auto_resolve
        self.calls: List[PublishCall] = []
        self._lock = threading.Lock()

    def publish(self, destination: str, batch: Sequence[Record]) -> OperationHandle:
        handle = OperationHandle(size=len(batch))
        with self._lock:
            self.calls.append(PublishCall(destination, tuple(batch), handle))
        if self.auto_resolve:
            handle.set_result([f"{handle.id}-{i}" for i in range(len(batch))])
        return handle

    # --------------------------- inspection

    @property
    def handles(self) -> List[OperationHandle]:
        with self._lock:
            return [c.handle for c in self.calls]

    def records_for(self, partition: int) -> List[Record]:
        """Concatenation of every batch sent for a partition, in dispatch order."""
        with self._lock:
            return [r for c in self.calls for r in c.records if r.partition == partition]

    def batch_sizes(self) -> List[int]:
        with self._lock:
            return [len(c.records) for c in self.calls]

    # --------------------------- manual completion

    def resolve_all(self) -> int:
        n = 0
        for h in self.handles:
            if not h.done():
                h.set_result(None)
                n += 1
        return n

    def fail(self, index: int, error: Optional[BaseException] = None) -> OperationHandle:
        handle = self.handles[index]
        handle.set_failure(error or PublishFailure(f"publish {index} rejected"))
        return handle
