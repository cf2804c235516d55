"""Spans: units of work within a trace."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Self

from spanline.messages.models import MessageKind
from spanline.tracer.base import BaseEntity
from spanline.tracer.models import ErrorInfo, SpanType, Usage

if TYPE_CHECKING:
    from spanline.messages.queue import BatchQueue


class Span(BaseEntity):
    """A single operation (LLM call, tool call, processing step) inside a trace.

    Spans nest through ``parent_span_id``; ``span()`` creates a child of
    this span in the same trace.  See ``BaseEntity`` for the mutation and
    message-emission rules.

    Usage::

        span = trace.span("llm-call", type=SpanType.LLM, input={"prompt": p})
        span.update(output={"text": reply}, model="gpt-4o", usage=usage)
        span.end()

    Parameters:
        queue: Receives a message for every change.
        trace_id: The owning trace.
        name: Human-readable name.
        project_name: Project the span is logged under.
        parent_span_id: Optional enclosing span.
        type: Category of operation.
        id: Custom id; a UUIDv7 is generated when omitted.
        start_time: Defaults to now.
        input: Input data.
        metadata: Initial metadata.
        tags: Initial tags.
    """

    create_kind: ClassVar[MessageKind] = MessageKind.CREATE_SPAN
    update_kind: ClassVar[MessageKind] = MessageKind.UPDATE_SPAN
    feedback_target: ClassVar[str] = "span_id"

    __slots__ = (
        "_model",
        "_parent_span_id",
        "_provider",
        "_total_cost",
        "_trace_id",
        "_type",
        "_usage",
    )

    def __init__(
        self,
        queue: BatchQueue,
        trace_id: str,
        name: str,
        project_name: str,
        *,
        parent_span_id: str | None = None,
        type: SpanType = SpanType.GENERAL,
        id: str | None = None,
        start_time: datetime | None = None,
        input: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
    ) -> None:
        super().__init__(
            queue, name, project_name,
            id=id, start_time=start_time, input=input, metadata=metadata, tags=tags,
        )
        self._trace_id = trace_id
        self._parent_span_id = parent_span_id
        self._type = SpanType(type)
        self._model: str | None = None
        self._provider: str | None = None
        self._usage: Usage | None = None
        self._total_cost: float | None = None
        self._emit(created=True)

    @property
    def trace_id(self) -> str:
        return self._trace_id

    @property
    def parent_span_id(self) -> str | None:
        return self._parent_span_id

    @property
    def type(self) -> SpanType:
        return self._type

    @property
    def model(self) -> str | None:
        return self._model

    @property
    def provider(self) -> str | None:
        return self._provider

    @property
    def usage(self) -> Usage | None:
        return self._usage

    @property
    def total_cost(self) -> float | None:
        return self._total_cost

    def span(
        self,
        name: str,
        *,
        type: SpanType = SpanType.GENERAL,
        input: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
    ) -> Span:
        """Create a child span nested under this one."""
        return Span(
            self._queue,
            self._trace_id,
            name,
            self._project_name,
            parent_span_id=self._id,
            type=type,
            input=input,
            metadata=metadata,
            tags=tags,
        )

    def update(
        self,
        *,
        input: Any = None,
        output: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
        end_time: datetime | None = None,
        model: str | None = None,
        provider: str | None = None,
        usage: Usage | None = None,
        error_info: ErrorInfo | None = None,
        total_cost: float | None = None,
    ) -> Self:
        """Update the span and enqueue its new snapshot.

        Parameters:
            input: Replaces the input if given.
            output: Replaces the output if given.
            metadata: Merged into the existing metadata.
            tags: Appended to the existing tags.
            end_time: Replaces the end time if given.
            model: LLM model name.
            provider: LLM provider name.
            usage: Token usage statistics.
            error_info: Error details if the operation failed.
            total_cost: Estimated cost of the operation.
        """
        self._apply(input, output, metadata, tags, end_time, error_info)
        if model is not None:
            self._model = model
        if provider is not None:
            self._provider = provider
        if usage is not None:
            self._usage = usage
        if total_cost is not None:
            self._total_cost = total_cost
        self._emit()
        return self

    def to_payload(self) -> dict[str, Any]:
        """Return the full wire representation of the span."""
        data = super().to_payload()
        data["trace_id"] = self._trace_id
        data["type"] = self._type.value
        if self._parent_span_id is not None:
            data["parent_span_id"] = self._parent_span_id
        if self._model is not None:
            data["model"] = self._model
        if self._provider is not None:
            data["provider"] = self._provider
        if self._usage is not None:
            data["usage"] = self._usage.to_payload()
        if self._total_cost is not None:
            data["total_estimated_cost"] = self._total_cost
        return data
