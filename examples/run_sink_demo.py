"""
Demo script for the partition sink.

Shows eager per-partition dispatch, round-robin publishing on worker threads
and checkpoints that fail when a request is rejected.
"""

import random
import threading
import time
from typing import List

from loguru import logger

from partition_sink import OutboundMessage, Record, RoundRobinPublisher, SinkTask


class FlakyTransport:
    """Simulates network latency and rejects one request in `fail_every`."""

    def __init__(self, fail_every: int = 25):
        self.fail_every = fail_every
        self._n = 0
        self._lock = threading.Lock()

    def __call__(self, destination: str, messages: List[OutboundMessage]) -> None:
        time.sleep(random.uniform(0.001, 0.02))
        with self._lock:
            self._n += 1
            n = self._n
        if n % self.fail_every == 0:
            raise ConnectionError(f"request {n} rejected")


def main():
    publisher = RoundRobinPublisher.with_channels(FlakyTransport(), channels=10)
    task = SinkTask(publisher)
    task.configure("projects/demo/topics/events", min_batch_size=200)

    logger.info("🚀 Producing 20,000 records over 8 partitions")
    offsets = {p: 0 for p in range(8)}
    committed = dict(offsets)

    for round_no in range(10):
        batch = []
        for _ in range(2_000):
            p = random.randrange(8)
            batch.append(Record(partition=p, key=f"user-{offsets[p]}", payload=b"payload"))
            offsets[p] += 1
        task.ingest(batch)

        result = task.checkpoint(offsets.keys())
        for p in result.succeeded:
            committed[p] = offsets[p]
        logger.info(
            f"Checkpoint {round_no}: ok={result.ok} succeeded={sorted(result.succeeded)} "
            f"failed={sorted(result.failed)} ({result.duration_ms:.1f}ms)"
        )

    logger.info(f"Committed offsets: {committed}")
    task.shutdown()
    logger.info("✅ Sink demo complete")


if __name__ == "__main__":
    main()
