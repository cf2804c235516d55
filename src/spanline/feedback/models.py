"""Pydantic models for feedback scores."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from spanline.utils.ids import uuid7


class FeedbackScoreSource(StrEnum):
    """Where a feedback score came from."""

    SDK = "sdk"
    UI = "ui"
    AUTOMATION = "automation"


class FeedbackScore(BaseModel):
    """A numeric or categorical quality judgment on a trace, span or thread.

    At least one of ``value`` and ``category_name`` must be given; a score
    with neither fails validation when it is constructed.

    Usage::

        FeedbackScore.for_trace(trace.id, "accuracy", value=0.95)
        FeedbackScore.for_span(span.id, "sentiment", category_name="positive")

    Parameters:
        name: The metric name.  Must not be blank.
        value: Numeric score.
        category_name: Categorical score.
        reason: Optional explanation for the score.
        trace_id: Target trace, if any.
        span_id: Target span, if any.
        thread_id: Target thread, if any.
        source: Origin of the score.  Defaults to ``sdk``.
        id: Score id, generated when omitted.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=uuid7)
    name: str
    value: float | None = None
    category_name: str | None = None
    reason: str | None = None
    trace_id: str | None = None
    span_id: str | None = None
    thread_id: str | None = None
    source: FeedbackScoreSource = FeedbackScoreSource.SDK

    @model_validator(mode="after")
    def validate_score(self) -> Self:
        if not self.name.strip():
            msg = "Feedback score name cannot be empty"
            raise ValueError(msg)
        if self.value is None and self.category_name is None:
            msg = "Either value or category_name must be provided"
            raise ValueError(msg)
        return self

    @classmethod
    def for_trace(
        cls,
        trace_id: str,
        name: str,
        value: float | None = None,
        category_name: str | None = None,
        reason: str | None = None,
    ) -> FeedbackScore:
        return cls(
            name=name, value=value, category_name=category_name, reason=reason,
            trace_id=trace_id,
        )

    @classmethod
    def for_span(
        cls,
        span_id: str,
        name: str,
        value: float | None = None,
        category_name: str | None = None,
        reason: str | None = None,
    ) -> FeedbackScore:
        return cls(
            name=name, value=value, category_name=category_name, reason=reason,
            span_id=span_id,
        )

    @classmethod
    def for_thread(
        cls,
        thread_id: str,
        name: str,
        value: float | None = None,
        category_name: str | None = None,
        reason: str | None = None,
    ) -> FeedbackScore:
        return cls(
            name=name, value=value, category_name=category_name, reason=reason,
            thread_id=thread_id,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedbackScore:
        """Build a score from an API response entry.

        Unknown keys (``project_name``, timestamps, ...) are ignored.
        """
        known = {k: v for k, v in data.items() if k in cls.model_fields and v is not None}
        return cls(**known)

    def to_payload(self, project_name: str) -> dict[str, Any]:
        """Return the wire representation used in a ``scores`` batch.

        Only the target ids, ``value``, ``category_name`` and ``reason``
        that are set appear in the result.

        Parameters:
            project_name: The project the score is logged under.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "source": self.source.value,
            "project_name": project_name,
        }
        for key in ("trace_id", "span_id", "thread_id", "value", "category_name", "reason"):
            field_value = getattr(self, key)
            if field_value is not None:
                data[key] = field_value
        return data

    def to_trace_payload(self, project_name: str) -> dict[str, Any]:
        """Return the entry shape of ``PUT v1/private/traces/feedback-scores``.

        On that endpoint ``id`` names the scored trace, not the score.

        Raises:
            ValueError: If the score has no ``trace_id``.
        """
        if self.trace_id is None:
            msg = "Each FeedbackScore must have trace_id set"
            raise ValueError(msg)
        return {
            "id": self.trace_id,
            "name": self.name,
            "source": self.source.value,
            "project_name": project_name,
            **self._score_fields(),
        }

    def to_thread_payload(self, project_name: str) -> dict[str, Any]:
        """Return the entry shape of ``PUT v1/private/traces/threads/feedback-scores``.

        Thread scores are keyed by ``thread_id`` and carry no ``id``.

        Raises:
            ValueError: If the score has no ``thread_id``.
        """
        if self.thread_id is None:
            msg = "Each FeedbackScore must have thread_id set"
            raise ValueError(msg)
        return {
            "thread_id": self.thread_id,
            "name": self.name,
            "source": self.source.value,
            "project_name": project_name,
            **self._score_fields(),
        }

    def _score_fields(self) -> dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in ("value", "category_name", "reason")
            if getattr(self, key) is not None
        }
