"""Pydantic models for queued telemetry messages."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, model_validator


class MessageKind(StrEnum):
    """The kind of change a message describes."""

    CREATE_TRACE = "create_trace"
    UPDATE_TRACE = "update_trace"
    CREATE_SPAN = "create_span"
    UPDATE_SPAN = "update_span"
    ADD_FEEDBACK_SCORE = "add_feedback_score"

    @property
    def is_trace(self) -> bool:
        return self in (MessageKind.CREATE_TRACE, MessageKind.UPDATE_TRACE)

    @property
    def is_span(self) -> bool:
        return self in (MessageKind.CREATE_SPAN, MessageKind.UPDATE_SPAN)


class Message(BaseModel):
    """An immutable envelope pairing a message kind with its wire payload.

    For trace and span kinds the payload is the owning entity's full
    snapshot and must carry its ``id``; the batch queue deduplicates on it.

    Parameters:
        kind: What the message describes.
        payload: The wire representation (string-keyed, JSON-serialisable).
    """

    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    payload: dict[str, Any]

    @model_validator(mode="after")
    def require_entity_id(self) -> Self:
        if (self.kind.is_trace or self.kind.is_span) and not self.payload.get("id"):
            msg = f"{self.kind} message payload must contain an 'id'"
            raise ValueError(msg)
        return self

    @property
    def entity_id(self) -> str | None:
        """The id of the trace or span this message belongs to, if any."""
        value = self.payload.get("id")
        return str(value) if value is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind.value, "data": self.payload}
