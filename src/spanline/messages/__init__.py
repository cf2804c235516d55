"""Message envelopes and the non-blocking batch delivery queue."""

from .models import Message, MessageKind
from .queue import FEEDBACK_SCORES_PATH, SPANS_BATCH_PATH, TRACES_BATCH_PATH, BatchQueue
from .registry import FlushRegistry, get_registry

__all__ = [
    "FEEDBACK_SCORES_PATH",
    "SPANS_BATCH_PATH",
    "TRACES_BATCH_PATH",
    "BatchQueue",
    "FlushRegistry",
    "Message",
    "MessageKind",
    "get_registry",
]
