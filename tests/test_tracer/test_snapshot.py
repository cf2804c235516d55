"""Tests for snapshot-to-message translation."""

from __future__ import annotations

from spanline.messages.models import Message, MessageKind
from spanline.tracer.snapshot import to_message
from spanline.tracer.span import Span
from spanline.tracer.trace import Trace


class RecordingQueue:
    """Collects enqueued messages without buffering or flushing."""

    def __init__(self) -> None:
        self.messages: list[Message] = []

    def enqueue(self, message: Message) -> None:
        self.messages.append(message)


class TestToMessage:
    def test_trace_lifecycle_kinds(self) -> None:
        queue = RecordingQueue()
        trace = Trace(queue, "op", "proj")  # type: ignore[arg-type]
        trace.update(output={"a": 1})
        trace.end()

        assert [m.kind for m in queue.messages] == [
            MessageKind.CREATE_TRACE,
            MessageKind.UPDATE_TRACE,
            MessageKind.UPDATE_TRACE,
        ]
        assert all(m.entity_id == trace.id for m in queue.messages)

    def test_span_lifecycle_kinds(self) -> None:
        queue = RecordingQueue()
        span = Span(queue, "trace-1", "step", "proj")  # type: ignore[arg-type]
        span.update(model="m")
        span.log_feedback_score("quality", value=1.0)
        span.end()

        assert [m.kind for m in queue.messages] == [
            MessageKind.CREATE_SPAN,
            MessageKind.UPDATE_SPAN,
            MessageKind.ADD_FEEDBACK_SCORE,
            MessageKind.UPDATE_SPAN,
        ]

    def test_each_message_is_an_independent_snapshot(self) -> None:
        queue = RecordingQueue()
        trace = Trace(queue, "op", "proj", tags=["a"])  # type: ignore[arg-type]
        trace.update(tags=["b"])

        first, second = queue.messages
        assert first.payload["tags"] == ["a"]
        assert second.payload["tags"] == ["a", "b"]

    def test_to_message_uses_current_state(self) -> None:
        queue = RecordingQueue()
        trace = Trace(queue, "op", "proj")  # type: ignore[arg-type]

        created = to_message(trace, created=True)
        updated = to_message(trace)

        assert created.kind is MessageKind.CREATE_TRACE
        assert updated.kind is MessageKind.UPDATE_TRACE
        assert created.payload == trace.to_payload()
