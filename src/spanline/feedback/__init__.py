"""Numeric and categorical feedback scores for traces, spans and threads."""

from .models import FeedbackScore, FeedbackScoreSource

__all__ = [
    "FeedbackScore",
    "FeedbackScoreSource",
]
