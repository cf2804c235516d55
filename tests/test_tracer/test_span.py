"""Tests for Span fields, nesting and wire payloads."""

from __future__ import annotations

from datetime import UTC, datetime

from spanline.messages.queue import FEEDBACK_SCORES_PATH, SPANS_BATCH_PATH, BatchQueue
from spanline.tracer.models import SpanType, Usage
from spanline.tracer.span import Span
from spanline.transport.memory import InMemoryTransport


def _flushed_spans(queue: BatchQueue, transport: InMemoryTransport) -> list[dict]:
    queue.flush()
    return [s for call in transport.calls_to(SPANS_BATCH_PATH) for s in call.body["spans"]]


class TestSpanCreation:
    def test_minimal_payload(self, queue: BatchQueue, transport: InMemoryTransport) -> None:
        start = datetime(2024, 1, 1, tzinfo=UTC)
        Span(queue, "trace-1", "step", "proj", id="span-1", start_time=start)

        [payload] = _flushed_spans(queue, transport)
        assert payload == {
            "id": "span-1",
            "name": "step",
            "project_name": "proj",
            "start_time": "2024-01-01T00:00:00.000000Z",
            "trace_id": "trace-1",
            "type": "general",
        }

    def test_full_payload_has_common_and_span_fields(self, queue: BatchQueue) -> None:
        start = datetime(2024, 1, 1, tzinfo=UTC)
        span = Span(
            queue, "trace-1", "step", "proj", id="span-2", parent_span_id="span-1",
            start_time=start, type=SpanType.TOOL,
        )
        span.update(
            input={"q": 1}, metadata={"k": "v"}, tags=["a"],
            end_time=datetime(2024, 1, 1, 0, 0, 1, tzinfo=UTC), model="m",
        )

        assert span.to_payload() == {
            "id": "span-2",
            "name": "step",
            "project_name": "proj",
            "start_time": "2024-01-01T00:00:00.000000Z",
            "end_time": "2024-01-01T00:00:01.000000Z",
            "input": {"q": 1},
            "metadata": {"k": "v"},
            "tags": ["a"],
            "trace_id": "trace-1",
            "type": "tool",
            "parent_span_id": "span-1",
            "model": "m",
        }

    def test_type_accepts_string(self, queue: BatchQueue) -> None:
        span = Span(queue, "trace-1", "step", "proj", type="llm")  # type: ignore[arg-type]
        assert span.type is SpanType.LLM

    def test_child_span(self, queue: BatchQueue) -> None:
        parent = Span(queue, "trace-1", "outer", "proj", id="span-1")
        child = parent.span("inner", type=SpanType.TOOL)

        assert child.parent_span_id == "span-1"
        assert child.trace_id == "trace-1"
        assert child.project_name == "proj"
        assert child.type is SpanType.TOOL
        assert child.id != parent.id


class TestSpanUpdate:
    def test_llm_fields(self, queue: BatchQueue, transport: InMemoryTransport) -> None:
        span = Span(queue, "trace-1", "llm", "proj", type=SpanType.LLM)
        span.update(
            output={"text": "hi"},
            model="gpt-4o",
            provider="openai",
            usage=Usage(prompt_tokens=10, completion_tokens=5),
            total_cost=0.0125,
        )

        [payload] = _flushed_spans(queue, transport)
        assert payload["model"] == "gpt-4o"
        assert payload["provider"] == "openai"
        assert payload["usage"] == {"prompt_tokens": 10, "completion_tokens": 5}
        assert payload["total_estimated_cost"] == 0.0125
        assert payload["output"] == {"text": "hi"}

    def test_update_keeps_earlier_values(self, queue: BatchQueue) -> None:
        span = Span(queue, "trace-1", "llm", "proj")
        span.update(model="gpt-4o")
        span.update(provider="openai")

        assert span.model == "gpt-4o"
        assert span.provider == "openai"
        assert span.usage is None
        assert span.total_cost is None

    def test_non_json_values_are_sanitised(
        self, queue: BatchQueue, transport: InMemoryTransport,
    ) -> None:
        when = datetime(2024, 5, 1, tzinfo=UTC)
        span = Span(queue, "trace-1", "step", "proj", input={"when": when, "ids": {1}})
        span.end()

        [payload] = _flushed_spans(queue, transport)
        assert payload["input"] == {"when": "2024-05-01T00:00:00.000000Z", "ids": [1]}

    def test_snapshot_does_not_alias_caller_data(
        self, queue: BatchQueue, transport: InMemoryTransport,
    ) -> None:
        data = {"items": [1]}
        Span(queue, "trace-1", "step", "proj", input=data)
        data["items"].append(2)

        [payload] = _flushed_spans(queue, transport)
        assert payload["input"] == {"items": [1]}


class TestSpanEnd:
    def test_end_twice_emits_once(self, queue: BatchQueue) -> None:
        span = Span(queue, "trace-1", "step", "proj")
        queue.flush()

        span.end()
        assert len(queue) == 1
        queue.flush()

        span.end()
        assert queue.is_empty()

    def test_context_manager(self, queue: BatchQueue) -> None:
        with Span(queue, "trace-1", "step", "proj") as span:
            pass
        assert span.ended


class TestSpanFeedback:
    def test_log_feedback_score_targets_span(
        self, queue: BatchQueue, transport: InMemoryTransport,
    ) -> None:
        span = Span(queue, "trace-1", "step", "proj", id="span-1")
        returned = span.log_feedback_score("sentiment", category_name="positive")
        queue.flush()

        assert returned is span
        [score] = transport.calls_to(FEEDBACK_SCORES_PATH)[0].body["scores"]
        assert score["span_id"] == "span-1"
        assert score["category_name"] == "positive"
        assert "trace_id" not in score
        assert "value" not in score
