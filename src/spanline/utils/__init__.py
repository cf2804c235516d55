"""Small helpers shared by the tracer and the batch queue."""

from .ids import uuid7
from .jsonenc import encode, payload_size, sanitize
from .timefmt import format_timestamp, utc_now

__all__ = [
    "encode",
    "format_timestamp",
    "payload_size",
    "sanitize",
    "utc_now",
    "uuid7",
]
