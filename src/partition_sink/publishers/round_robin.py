from __future__ import annotations

import itertools
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, List, Sequence

from loguru import logger

from ..engine.handle import OperationHandle
from ..errors import PublishFailure
from ..models import OutboundMessage, Record

if TYPE_CHECKING:
    from ..config import Settings

# Sends one request synchronously; may return server-assigned ids.
Transport = Callable[[str, List[OutboundMessage]], object]


class LogTransport:
    """Transport that only logs each request (dry runs, demos)."""

    def __init__(self, name: str = "log"):
        self.name = name
        self.requests = 0
        self.messages = 0

    def __call__(self, destination: str, messages: List[OutboundMessage]) -> List[str]:
        self.requests += 1
        self.messages += len(messages)
        first = messages[0].attributes if messages else None
        logger.info(
            f"[{self.name}] publish {len(messages)} messages to {destination} (first={first})"
        )
        return [f"{self.name}-{self.requests}-{i}" for i in range(len(messages))]


class RoundRobinPublisher:
    """Fans batches out over N channels, one worker thread per channel.

    Each channel serializes its own requests; consecutive batches go to
    consecutive channels, so ordering across batches is not guaranteed.
    Handles are resolved on the channel's worker thread.

    Usage:
        pub = RoundRobinPublisher([transport] * 10)
        handle = pub.publish("projects/p/topics/t", records)
        ...
        pub.close()
    """

    def __init__(self, transports: Sequence[Transport], *, name: str = "publisher"):
        if not transports:
            raise ValueError("at least one transport is required")
        self._transports = list(transports)
        self._executors = [
            ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{name}-{i}")
            for i in range(len(self._transports))
        ]
        self._next = itertools.cycle(range(len(self._transports)))
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def with_channels(cls, transport: Transport, channels: int = 10) -> "RoundRobinPublisher":
        return cls([transport] * channels)

    @classmethod
    def from_settings(cls, transport: Transport, settings: "Settings") -> "RoundRobinPublisher":
        return cls.with_channels(transport, settings.PUBLISHER_CHANNELS)

    @property
    def channels(self) -> int:
        return len(self._transports)

    def publish(self, destination: str, batch: Sequence[Record]) -> OperationHandle:
        messages = [r.to_message() for r in batch]
        handle = OperationHandle(size=len(messages))
        with self._lock:
            if self._closed:
                raise RuntimeError("publisher is closed")
            channel = next(self._next)
            self._executors[channel].submit(self._send, channel, destination, messages, handle)
        return handle

    def _send(
        self,
        channel: int,
        destination: str,
        messages: List[OutboundMessage],
        handle: OperationHandle,
    ) -> None:
        try:
            ids = self._transports[channel](destination, messages)
        except Exception as e:
            logger.warning(f"Channel {channel} failed to publish {len(messages)} messages: {e}")
            handle.set_failure(PublishFailure(f"channel {channel}: {type(e).__name__}: {e}"))
            return
        handle.set_result(ids)

    def close(self, wait: bool = True) -> None:
        """Stop accepting batches; with wait=True, let queued requests finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for ex in self._executors:
            ex.shutdown(wait=wait)

    def __enter__(self) -> "RoundRobinPublisher":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
