"""Traces: the top-level record of one logical operation."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Self

from spanline.messages.models import MessageKind
from spanline.tracer.base import BaseEntity
from spanline.tracer.models import ErrorInfo, SpanType
from spanline.tracer.span import Span

if TYPE_CHECKING:
    from spanline.messages.queue import BatchQueue


class Trace(BaseEntity):
    """The complete execution of one operation, e.g. one user request.

    Traces sharing a ``thread_id`` form a conversation.  See
    ``BaseEntity`` for the mutation and message-emission rules.

    Usage::

        with client.trace("answer-question", input={"q": question}) as trace:
            span = trace.span("retrieve")
            ...
            trace.update(output={"answer": answer})

    Parameters:
        queue: Receives a message for every change.
        name: Human-readable name.
        project_name: Project the trace is logged under.
        id: Custom id; a UUIDv7 is generated when omitted.
        start_time: Defaults to now.
        input: Input data.
        metadata: Initial metadata.
        tags: Initial tags.
        thread_id: Optional conversation id grouping related traces.
    """

    create_kind: ClassVar[MessageKind] = MessageKind.CREATE_TRACE
    update_kind: ClassVar[MessageKind] = MessageKind.UPDATE_TRACE
    feedback_target: ClassVar[str] = "trace_id"

    __slots__ = ("_thread_id",)

    def __init__(
        self,
        queue: BatchQueue,
        name: str,
        project_name: str,
        *,
        id: str | None = None,
        start_time: datetime | None = None,
        input: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
        thread_id: str | None = None,
    ) -> None:
        super().__init__(
            queue, name, project_name,
            id=id, start_time=start_time, input=input, metadata=metadata, tags=tags,
        )
        self._thread_id = thread_id
        self._emit(created=True)

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    def span(
        self,
        name: str,
        *,
        parent_span_id: str | None = None,
        type: SpanType = SpanType.GENERAL,
        input: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
    ) -> Span:
        """Create a span in this trace, optionally nested under ``parent_span_id``."""
        return Span(
            self._queue,
            self._id,
            name,
            self._project_name,
            parent_span_id=parent_span_id,
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
        error_info: ErrorInfo | None = None,
    ) -> Self:
        """Update the trace and enqueue its new snapshot.

        ``None`` arguments leave the current value untouched; ``metadata``
        is merged and ``tags`` are appended.
        """
        self._apply(input, output, metadata, tags, end_time, error_info)
        self._emit()
        return self

    def to_payload(self) -> dict[str, Any]:
        """Return the full wire representation of the trace."""
        data = super().to_payload()
        if self._thread_id is not None:
            data["thread_id"] = self._thread_id
        return data
