"""State and lifecycle shared by traces and spans."""

from __future__ import annotations

import logging
from datetime import datetime
from types import TracebackType
from typing import TYPE_CHECKING, Any, ClassVar, Self

from spanline.feedback.models import FeedbackScore
from spanline.messages.models import Message, MessageKind
from spanline.tracer.models import ErrorInfo
from spanline.tracer.snapshot import to_message
from spanline.utils.ids import uuid7
from spanline.utils.jsonenc import sanitize
from spanline.utils.timefmt import format_timestamp, utc_now

if TYPE_CHECKING:
    from spanline.messages.queue import BatchQueue

logger = logging.getLogger(__name__)


class BaseEntity:
    """A mutable telemetry record that reports every change to a ``BatchQueue``.

    Construction enqueues a create message; ``update``, ``end`` and
    ``log_feedback_score`` each enqueue exactly one more message.  The
    queue only ever receives snapshots, never a reference to the entity.

    ``update`` replaces fields that are given and leaves ``None`` arguments
    untouched, merges ``metadata`` and appends ``tags``.  There is no way
    to clear a field, a metadata key or a tag once set.

    Entities are context managers: leaving the ``with`` block ends them,
    recording any escaping exception as ``error_info`` first.
    """

    create_kind: ClassVar[MessageKind]
    update_kind: ClassVar[MessageKind]
    # FeedbackScore field naming this entity as the score target.
    feedback_target: ClassVar[str]

    __slots__ = (
        "__weakref__",
        "_end_time",
        "_error_info",
        "_id",
        "_input",
        "_metadata",
        "_name",
        "_output",
        "_project_name",
        "_queue",
        "_start_time",
        "_tags",
    )

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
    ) -> None:
        self._queue = queue
        self._id = id or uuid7()
        self._name = name
        self._project_name = project_name
        self._start_time = start_time or utc_now()
        self._end_time: datetime | None = None
        self._input = input
        self._output: Any = None
        self._metadata: dict[str, Any] = dict(metadata or {})
        self._tags: list[str] = list(tags or [])
        self._error_info: ErrorInfo | None = None

    # -- Identity and state --

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def project_name(self) -> str:
        return self._project_name

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def end_time(self) -> datetime | None:
        return self._end_time

    @property
    def ended(self) -> bool:
        return self._end_time is not None

    @property
    def input(self) -> Any:
        return self._input

    @property
    def output(self) -> Any:
        return self._output

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    @property
    def error_info(self) -> ErrorInfo | None:
        return self._error_info

    # -- Mutation --

    def _apply(
        self,
        input: Any,
        output: Any,
        metadata: dict[str, Any] | None,
        tags: list[str] | None,
        end_time: datetime | None,
        error_info: ErrorInfo | None,
    ) -> None:
        if input is not None:
            self._input = input
        if output is not None:
            self._output = output
        if metadata is not None:
            self._metadata.update(metadata)
        if tags is not None:
            self._tags.extend(tags)
        if end_time is not None:
            self._end_time = end_time
        if error_info is not None:
            self._error_info = error_info

    def end(self, end_time: datetime | None = None) -> Self:
        """Record the completion time.

        Idempotent: once an end time is set, later calls return immediately
        without enqueueing anything.

        Parameters:
            end_time: When the operation finished.  Defaults to now.
        """
        if self._end_time is not None:
            return self
        self._end_time = end_time or utc_now()
        self._emit()
        return self

    def log_feedback_score(
        self,
        name: str,
        value: float | None = None,
        category_name: str | None = None,
        reason: str | None = None,
    ) -> Self:
        """Attach a feedback score to this entity.

        Parameters:
            name: The metric name.
            value: Numeric score.
            category_name: Categorical score.
            reason: Optional explanation.

        Raises:
            pydantic.ValidationError: If ``name`` is blank or neither
                ``value`` nor ``category_name`` is given.
        """
        score = FeedbackScore(
            name=name,
            value=value,
            category_name=category_name,
            reason=reason,
            **{self.feedback_target: self._id},
        )
        self._queue.enqueue(
            Message(
                kind=MessageKind.ADD_FEEDBACK_SCORE,
                payload=score.to_payload(self._project_name),
            ),
        )
        return self

    def _emit(self, *, created: bool = False) -> None:
        self._queue.enqueue(to_message(self, created=created))

    # -- Serialisation --

    def to_payload(self) -> dict[str, Any]:
        """Return the full wire representation of the entity.

        Unset optional fields are omitted.  Subclasses extend the result
        with their own fields.
        """
        data: dict[str, Any] = {
            "id": self._id,
            "name": self._name,
            "project_name": self._project_name,
            "start_time": format_timestamp(self._start_time),
        }
        if self._end_time is not None:
            data["end_time"] = format_timestamp(self._end_time)
        if self._input is not None:
            data["input"] = sanitize(self._input)
        if self._output is not None:
            data["output"] = sanitize(self._output)
        if self._metadata:
            data["metadata"] = sanitize(self._metadata)
        if self._tags:
            data["tags"] = list(self._tags)
        if self._error_info is not None:
            data["error_info"] = self._error_info.to_payload()
        return data

    # -- Context manager --

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is not None:
            self._error_info = ErrorInfo.from_exception(exc)
            if self.ended:
                self._emit()
                return
        self.end()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, name={self._name!r})"
