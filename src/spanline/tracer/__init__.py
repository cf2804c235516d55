"""Traces, spans and the translation of their mutations into queue messages."""

from .base import BaseEntity
from .models import ErrorInfo, SpanType, Usage
from .snapshot import to_message
from .span import Span
from .trace import Trace

__all__ = [
    "BaseEntity",
    "ErrorInfo",
    "Span",
    "SpanType",
    "Trace",
    "Usage",
    "to_message",
]
