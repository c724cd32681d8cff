"""
Pytest configuration and fixtures for partition-sink.

Provides record factories and scripted publishers that resolve handles
inline or from background threads.
"""

import threading
from typing import Iterable, Optional, Sequence

import pytest

from partition_sink import InMemoryPublisher, OperationHandle, PublishFailure, Record


def make_records(partition: int, n: int, start: int = 0) -> list[Record]:
    return [
        Record(partition=partition, key=f"k{i}", payload=f"v{i}".encode())
        for i in range(start, start + n)
    ]


class ScriptedPublisher(InMemoryPublisher):
    """Publisher whose calls listed in fail_at resolve with PublishFailure.

    delay=None resolves inline; otherwise each handle resolves on a timer
    thread after `delay` seconds.
    """

    def __init__(self, fail_at: Iterable[int] = (), delay: Optional[float] = None):
        super().__init__(auto_resolve=False)
        self.fail_at = set(fail_at)
        self.delay = delay
        self.resolver_threads: set[str] = set()

    def publish(self, destination: str, batch: Sequence[Record]) -> OperationHandle:
        handle = super().publish(destination, batch)
        index = len(self.calls) - 1
        if self.delay is None:
            self._complete(index, handle)
        else:
            timer = threading.Timer(self.delay, self._complete, args=(index, handle))
            timer.daemon = True
            timer.start()
        return handle

    def _complete(self, index: int, handle: OperationHandle) -> None:
        self.resolver_threads.add(threading.current_thread().name)
        if index in self.fail_at:
            handle.set_failure(PublishFailure(f"batch {index} rejected"))
        else:
            handle.set_result(index)


class RaisingPublisher(InMemoryPublisher):
    """Publisher whose publish() raises synchronously on the listed calls."""

    def __init__(self, raise_at: Iterable[int] = ()):
        super().__init__(auto_resolve=True)
        self.raise_at = set(raise_at)
        self.attempts = 0

    def publish(self, destination: str, batch: Sequence[Record]) -> OperationHandle:
        attempt = self.attempts
        self.attempts += 1
        if attempt in self.raise_at:
            raise ConnectionError("backend unavailable")
        return super().publish(destination, batch)


@pytest.fixture
def destination():
    return "projects/test-project/topics/test-topic"


@pytest.fixture
def publisher():
    """Publisher that succeeds inline."""
    return InMemoryPublisher()


@pytest.fixture
def pending_publisher():
    """Publisher whose handles stay pending until resolved by the test."""
    return InMemoryPublisher(auto_resolve=False)
