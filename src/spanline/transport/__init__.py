"""Transport implementations for talking to the collection service."""

from .http import HttpTransport
from .memory import InMemoryTransport, RecordedCall

__all__ = [
    "HttpTransport",
    "InMemoryTransport",
    "RecordedCall",
]
