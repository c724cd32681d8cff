from __future__ import annotations

import threading
from typing import Dict, List, Sequence

from ..models import Record
from .types import PartitionId


class PartitionBuffer:
    """Per-partition ordered accumulation of records awaiting dispatch.

    Pure accumulation and retrieval; the batch threshold lives with the
    caller. One coarse lock guards the mapping.
    """

    def __init__(self) -> None:
        self._pending: Dict[PartitionId, List[Record]] = {}
        self._lock = threading.Lock()

    def accumulate(self, partition: PartitionId, record: Record) -> int:
        """Append record to its partition; returns the new pending count."""
        with self._lock:
            records = self._pending.get(partition)
            if records is None:
                records = self._pending[partition] = []
            records.append(record)
            return len(records)

    def size_of(self, partition: PartitionId) -> int:
        with self._lock:
            return len(self._pending.get(partition, ()))

    def drain(self, partition: PartitionId) -> List[Record]:
        """Return and clear the pending records of one partition."""
        with self._lock:
            return self._pending.pop(partition, [])

    def drain_all(self) -> Dict[PartitionId, List[Record]]:
        """Return and clear every partition that has pending records."""
        with self._lock:
            drained = {p: rs for p, rs in self._pending.items() if rs}
            self._pending = {}
        return drained

    def requeue(self, partition: PartitionId, records: Sequence[Record]) -> None:
        """Put undispatched records back ahead of anything that arrived since."""
        if not records:
            return
        with self._lock:
            self._pending[partition] = list(records) + self._pending.get(partition, [])

    def partitions(self) -> List[PartitionId]:
        with self._lock:
            return [p for p, rs in self._pending.items() if rs]

    def total_pending(self) -> int:
        with self._lock:
            return sum(len(rs) for rs in self._pending.values())

    def __len__(self) -> int:
        return self.total_pending()
