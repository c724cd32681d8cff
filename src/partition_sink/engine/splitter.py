from __future__ import annotations

from typing import List, Sequence, TypeVar

from ..errors import InvalidInputError
from .types import MAX_REQUEST_SIZE

T = TypeVar("T")


def split_batches(messages: Sequence[T], max_size: int = MAX_REQUEST_SIZE) -> List[List[T]]:
    """Slice messages into contiguous, order-preserving batches of at most max_size.

    Batch i covers [i*max_size, min((i+1)*max_size, len)). Empty input yields
    no batches.
    """
    if max_size <= 0:
        raise InvalidInputError(f"max_size must be > 0, got {max_size}")
    return [list(messages[i : i + max_size]) for i in range(0, len(messages), max_size)]
