"""
Single-assignment result of one in-flight publish call.

Created on the dispatching thread, resolved from whichever thread completes
the publish, awaited by the flush barrier.
"""

from __future__ import annotations

import itertools
import threading
from enum import Enum
from typing import Callable, Optional

_ids = itertools.count(1)


class HandleState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class HandleAlreadyResolved(RuntimeError):
    pass


class OperationHandle:
    """Thread-safe handle for one publish call.

    Resolves exactly once, to success (with an optional value such as the
    server-assigned message ids) or to a failure reason. Safe to poll or
    block on from any thread.

    Example:
        handle = OperationHandle(size=len(batch))
        executor.submit(send_and_resolve, handle)
        ...
        if handle.wait(timeout=5.0) and handle.succeeded:
            ...
    """

    __slots__ = ("id", "size", "_state", "_value", "_error", "_event", "_lock", "_callbacks")

    def __init__(self, size: int = 0):
        self.id = next(_ids)
        self.size = size
        self._state = HandleState.PENDING
        self._value: object = None
        self._error: Optional[BaseException] = None
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[["OperationHandle"], None]] = []

    def __repr__(self) -> str:
        return f"OperationHandle(id={self.id}, size={self.size}, state={self._state.value})"

    # --------------------------- resolution

    def set_result(self, value: object = None) -> None:
        self._resolve(HandleState.SUCCEEDED, value, None)

    def set_failure(self, error: BaseException) -> None:
        if not isinstance(error, BaseException):
            raise TypeError("failure reason must be an exception")
        self._resolve(HandleState.FAILED, None, error)

    def _resolve(self, state: HandleState, value: object, error: Optional[BaseException]) -> None:
        with self._lock:
            if self._state is not HandleState.PENDING:
                raise HandleAlreadyResolved(f"{self!r} already resolved")
            self._value = value
            self._error = error
            self._state = state
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
        for cb in callbacks:
            cb(self)

    # --------------------------- observation

    @property
    def state(self) -> HandleState:
        return self._state

    def done(self) -> bool:
        """Non-blocking poll."""
        return self._event.is_set()

    @property
    def succeeded(self) -> bool:
        return self._state is HandleState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self._state is HandleState.FAILED

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until resolved. Returns False if the timeout expired first."""
        return self._event.wait(timeout)

    @property
    def value(self) -> object:
        return self._value

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def add_done_callback(self, fn: Callable[["OperationHandle"], None]) -> None:
        """Call fn(handle) once resolved; immediately if already resolved."""
        with self._lock:
            if self._state is HandleState.PENDING:
                self._callbacks.append(fn)
                return
        fn(self)

    # --------------------------- helpers

    @classmethod
    def resolved(cls, value: object = None, size: int = 0) -> "OperationHandle":
        h = cls(size=size)
        h.set_result(value)
        return h

    @classmethod
    def failed_with(cls, error: BaseException, size: int = 0) -> "OperationHandle":
        h = cls(size=size)
        h.set_failure(error)
        return h
