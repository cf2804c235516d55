"""Protocol definitions for spanline's pluggable collaborators."""

from .transport import FailureCallback, Transport

__all__ = [
    "FailureCallback",
    "Transport",
]
