"""Publisher implementations.

The engine only sees the Publisher protocol; how many backend channels exist
and how a batch is routed to one of them is decided here.
"""

from .memory import InMemoryPublisher, PublishCall
from .round_robin import RoundRobinPublisher, Transport, LogTransport

__all__ = [
    "InMemoryPublisher",
    "PublishCall",
    "RoundRobinPublisher",
    "Transport",
    "LogTransport",
]
