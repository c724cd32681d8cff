"""
Unit tests for PartitionBuffer.
"""

import threading

from partition_sink import PartitionBuffer
from tests.conftest import make_records


def test_accumulate_preserves_arrival_order():
    """Records of one partition come back in the order they arrived."""
    buf = PartitionBuffer()
    records = make_records(0, 5)
    for r in records:
        buf.accumulate(0, r)

    assert buf.drain(0) == records


def test_accumulate_returns_pending_count():
    buf = PartitionBuffer()
    counts = [buf.accumulate(3, r) for r in make_records(3, 3)]
    assert counts == [1, 2, 3]
    assert buf.size_of(3) == 3


def test_size_of_unknown_partition_is_zero():
    assert PartitionBuffer().size_of(42) == 0


def test_drain_clears_partition():
    """Drain returns the records and removes the entry."""
    buf = PartitionBuffer()
    for r in make_records(1, 2):
        buf.accumulate(1, r)

    assert len(buf.drain(1)) == 2
    assert buf.size_of(1) == 0
    assert buf.partitions() == []
    assert buf.drain(1) == []


def test_drain_leaves_other_partitions_alone():
    buf = PartitionBuffer()
    for r in make_records(0, 2) + make_records(1, 3):
        buf.accumulate(r.partition, r)

    buf.drain(0)
    assert buf.size_of(1) == 3
    assert buf.total_pending() == 3


def test_drain_all_returns_every_non_empty_partition():
    buf = PartitionBuffer()
    for r in make_records(0, 2) + make_records(5, 1):
        buf.accumulate(r.partition, r)

    drained = buf.drain_all()
    assert sorted(drained) == [0, 5]
    assert [len(v) for _, v in sorted(drained.items())] == [2, 1]
    assert len(buf) == 0
    assert buf.drain_all() == {}


def test_requeue_puts_records_ahead_of_newer_ones():
    """Requeued records keep their place ahead of records that arrived later."""
    buf = PartitionBuffer()
    old = make_records(0, 3)
    new = make_records(0, 2, start=3)
    for r in new:
        buf.accumulate(0, r)

    buf.requeue(0, old)
    assert buf.drain(0) == old + new


def test_requeue_empty_is_noop():
    buf = PartitionBuffer()
    buf.requeue(0, [])
    assert buf.partitions() == []


def test_concurrent_accumulate_keeps_every_record():
    """Writers on different partitions never lose records."""
    buf = PartitionBuffer()

    def writer(partition):
        for r in make_records(partition, 500):
            buf.accumulate(partition, r)

    threads = [threading.Thread(target=writer, args=(p,)) for p in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert buf.total_pending() == 2000
    for p in range(4):
        assert buf.drain(p) == make_records(p, 500)
