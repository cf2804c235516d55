"""High-level client tying configuration, transport and batch queue together."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from types import TracebackType
from typing import Any
from urllib.parse import quote

from spanline.config import SpanlineConfig
from spanline.exceptions import ConfigurationError
from spanline.feedback.models import FeedbackScore
from spanline.messages.models import Message, MessageKind
from spanline.messages.queue import BatchQueue
from spanline.protocols.transport import FailureCallback, Transport
from spanline.tracer.models import SpanType
from spanline.tracer.span import Span
from spanline.tracer.trace import Trace
from spanline.transport.http import HttpTransport

logger = logging.getLogger(__name__)

TRACES_FEEDBACK_SCORES_PATH = "v1/private/traces/feedback-scores"
THREADS_FEEDBACK_SCORES_PATH = "v1/private/traces/threads/feedback-scores"


class SpanlineClient:
    """Entry point for recording traces, spans and feedback scores.

    Every trace and span created through the client reports to the
    client's single ``BatchQueue``.  Delivery happens when a queue
    threshold is crossed, when ``flush()`` is called, or at interpreter
    exit, so instrumented code never waits on the network.

    Administrative calls (batch trace and thread feedback, closing
    threads, lookups, searches and deletions) bypass the queue and go
    straight to the transport, so their errors reach the caller.

    Usage::

        client = SpanlineClient(project_name="my-project")

        trace = client.trace("my-operation", input={"question": q})
        span = trace.span("llm-call", type=SpanType.LLM)
        span.update(output={"response": "Hello!"})
        span.end()
        trace.end()
        client.flush()

    Parameters:
        api_key: Overrides ``SPANLINE_API_KEY``.
        workspace: Overrides ``SPANLINE_WORKSPACE``.
        project_name: Overrides ``SPANLINE_PROJECT_NAME``.
        base_url: Overrides ``SPANLINE_URL_OVERRIDE``.
        config: A complete configuration; when given, the environment and
            the individual overrides above are ignored.
        transport: Custom transport.  Defaults to ``HttpTransport``.
        on_failure: Forwarded to the ``BatchQueue``; observes dropped batches.

    Raises:
        ConfigurationError: If the cloud endpoint is configured without an
            API key or workspace.
    """

    __slots__ = ("_config", "_queue", "_transport")

    def __init__(
        self,
        api_key: str | None = None,
        workspace: str | None = None,
        project_name: str | None = None,
        base_url: str | None = None,
        *,
        config: SpanlineConfig | None = None,
        transport: Transport | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        if config is None:
            config = SpanlineConfig.from_env(
                api_key=api_key,
                workspace=workspace,
                project_name=project_name,
                base_url=base_url,
            )
        _validate_config(config)

        self._config = config
        self._transport: Transport = transport if transport is not None else HttpTransport(config)
        self._queue = BatchQueue(self._transport, config, on_failure=on_failure)

    @property
    def config(self) -> SpanlineConfig:
        return self._config

    @property
    def batch_queue(self) -> BatchQueue:
        return self._queue

    @property
    def transport(self) -> Transport:
        return self._transport

    # -- Tracing --

    def trace(
        self,
        name: str,
        *,
        project_name: str | None = None,
        id: str | None = None,
        input: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
        start_time: datetime | None = None,
        thread_id: str | None = None,
    ) -> Trace:
        """Start a new trace.

        Raises:
            ValueError: If ``name`` is blank.
        """
        if not name or not name.strip():
            msg = "Trace name cannot be empty"
            raise ValueError(msg)
        return Trace(
            self._queue,
            name,
            project_name or self._config.project_name,
            id=id,
            start_time=start_time,
            input=input,
            metadata=metadata,
            tags=tags,
            thread_id=thread_id,
        )

    def span(
        self,
        name: str,
        trace_id: str,
        *,
        project_name: str | None = None,
        parent_span_id: str | None = None,
        type: SpanType = SpanType.GENERAL,
        id: str | None = None,
        input: Any = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
        start_time: datetime | None = None,
    ) -> Span:
        """Start a span in an existing trace (usually ``Trace.span`` is simpler).

        Raises:
            ValueError: If ``name`` or ``trace_id`` is blank.
        """
        if not name or not name.strip():
            msg = "Span name cannot be empty"
            raise ValueError(msg)
        if not trace_id or not trace_id.strip():
            msg = "Trace ID cannot be empty"
            raise ValueError(msg)
        return Span(
            self._queue,
            trace_id,
            name,
            project_name or self._config.project_name,
            parent_span_id=parent_span_id,
            type=type,
            id=id,
            start_time=start_time,
            input=input,
            metadata=metadata,
            tags=tags,
        )

    # -- Feedback --

    def log_feedback_score(self, score: FeedbackScore, project_name: str | None = None) -> None:
        """Queue a single feedback score for delivery with the next span-score batch."""
        self._queue.enqueue(
            Message(
                kind=MessageKind.ADD_FEEDBACK_SCORE,
                payload=score.to_payload(project_name or self._config.project_name),
            ),
        )

    def log_traces_feedback_scores(
        self, scores: Sequence[FeedbackScore], project_name: str | None = None,
    ) -> None:
        """Send feedback scores that each target a trace, in one request.

        Raises:
            ValueError: If ``scores`` is empty or a score has no ``trace_id``.
            TransportError: If the request fails.
        """
        project = project_name or self._config.project_name
        entries = [score.to_trace_payload(project) for score in _require_scores(scores)]
        self._transport.put(TRACES_FEEDBACK_SCORES_PATH, {"scores": entries})

    def log_spans_feedback_scores(
        self, scores: Sequence[FeedbackScore], project_name: str | None = None,
    ) -> None:
        """Queue feedback scores that each target a span.

        Raises:
            ValueError: If ``scores`` is empty or a score has no ``span_id``.
        """
        # Validate everything before queueing anything.
        for score in _require_scores(scores):
            if score.span_id is None:
                msg = "Each FeedbackScore must have span_id set"
                raise ValueError(msg)
        for score in scores:
            self.log_feedback_score(score, project_name)

    def log_threads_feedback_scores(
        self, scores: Sequence[FeedbackScore], project_name: str | None = None,
    ) -> None:
        """Send feedback scores that each target a thread, in one request.

        Threads must be closed (``close_threads``) before they accept scores.

        Raises:
            ValueError: If ``scores`` is empty or a score has no ``thread_id``.
            TransportError: If the request fails.
        """
        project = project_name or self._config.project_name
        entries = [score.to_thread_payload(project) for score in _require_scores(scores)]
        self._transport.put(THREADS_FEEDBACK_SCORES_PATH, {"scores": entries})

    def delete_trace_feedback_score(self, trace_id: str, name: str) -> None:
        """Remove the feedback score called ``name`` from a trace."""
        _require_id(trace_id, "Trace ID")
        _require_id(name, "Feedback score name")
        self._transport.post(f"v1/private/traces/{trace_id}/feedback-scores/delete", {"name": name})

    def delete_span_feedback_score(self, span_id: str, name: str) -> None:
        """Remove the feedback score called ``name`` from a span."""
        _require_id(span_id, "Span ID")
        _require_id(name, "Feedback score name")
        self._transport.post(f"v1/private/spans/{span_id}/feedback-scores/delete", {"name": name})

    # -- Threads, traces and projects --

    def close_threads(self, thread_ids: Sequence[str], project_name: str | None = None) -> None:
        """Close conversation threads so thread-level feedback can be attached.

        Raises:
            ValueError: If ``thread_ids`` is empty.
        """
        if not thread_ids:
            msg = "Thread IDs cannot be empty"
            raise ValueError(msg)
        self._transport.put(
            "v1/private/traces/threads/close",
            {
                "project_name": project_name or self._config.project_name,
                "thread_ids": list(thread_ids),
            },
        )

    def close_thread(self, thread_id: str, project_name: str | None = None) -> None:
        """Close a single conversation thread."""
        _require_id(thread_id, "Thread ID")
        self.close_threads([thread_id], project_name)

    def delete_traces(self, ids: Sequence[str]) -> None:
        """Delete stored traces by id.

        Raises:
            ValueError: If ``ids`` is empty.
        """
        if not ids:
            msg = "Trace IDs cannot be empty"
            raise ValueError(msg)
        self._transport.post("v1/private/traces/delete", {"ids": list(ids)})

    def get_project(self, project_id: str) -> dict[str, Any]:
        """Fetch a project by id."""
        _require_id(project_id, "Project ID")
        return self._transport.get(f"v1/private/projects/{project_id}")

    def get_project_by_name(self, name: str) -> dict[str, Any]:
        """Fetch a project by name."""
        _require_id(name, "Project name")
        return self._transport.post("v1/private/projects/retrieve", {"name": name})

    def get_project_url(self, project_name: str | None = None) -> str:
        """Return the web UI address of a project's trace list.

        The UI lives at the service root, so a trailing ``/api`` is removed
        from ``base_url``.  The workspace defaults to ``default``.
        """
        project = project_name or self._config.project_name
        root = (self._config.base_url or "").rstrip("/")
        root = root.removesuffix("/api")
        workspace = self._config.workspace or "default"
        return f"{root}/{workspace}/projects/{quote(project, safe='')}/traces"

    def delete_projects(self, ids: Sequence[str]) -> None:
        """Delete projects by id.

        Raises:
            ValueError: If ``ids`` is empty.
        """
        if not ids:
            msg = "Project IDs cannot be empty"
            raise ValueError(msg)
        self._transport.post("v1/private/projects/delete", {"ids": list(ids)})

    def delete_project(self, project_id: str) -> None:
        """Delete a single project by id."""
        _require_id(project_id, "Project ID")
        self._transport.delete(f"v1/private/projects/{project_id}")

    # -- Lookups --

    def get_trace_content(self, trace_id: str) -> dict[str, Any]:
        """Fetch a stored trace by id."""
        _require_id(trace_id, "Trace ID")
        return self._transport.get(f"v1/private/traces/{trace_id}")

    def get_span_content(self, span_id: str) -> dict[str, Any]:
        """Fetch a stored span by id."""
        _require_id(span_id, "Span ID")
        return self._transport.get(f"v1/private/spans/{span_id}")

    def search_traces(
        self,
        project_name: str | None = None,
        filter: str | None = None,
        page: int = 1,
        size: int = 100,
    ) -> dict[str, Any]:
        """Page through stored traces, optionally filtered by an expression."""
        query: dict[str, Any] = {
            "page": page,
            "size": size,
            "project_name": project_name or self._config.project_name,
        }
        if filter is not None:
            query["filter"] = filter
        return self._transport.get("v1/private/traces", query)

    def search_spans(
        self,
        trace_id: str | None = None,
        project_name: str | None = None,
        filter: str | None = None,
        page: int = 1,
        size: int = 100,
    ) -> dict[str, Any]:
        """Page through stored spans, optionally restricted to one trace."""
        query: dict[str, Any] = {
            "page": page,
            "size": size,
            "project_name": project_name or self._config.project_name,
        }
        if trace_id is not None:
            query["trace_id"] = trace_id
        if filter is not None:
            query["filter"] = filter
        return self._transport.get("v1/private/spans", query)

    def auth_check(self) -> bool:
        """Return ``True`` if the configured credentials are accepted."""
        try:
            self._transport.post("v1/private/auth", {})
        except Exception:
            logger.debug("Authentication check failed", exc_info=True)
            return False
        return True

    # -- Lifecycle --

    def flush(self) -> None:
        """Send everything buffered so far."""
        self._queue.flush()

    def close(self) -> None:
        """Flush pending messages and release the transport."""
        self._queue.close()
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> SpanlineClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"SpanlineClient(base_url={self._config.base_url!r}, "
            f"project_name={self._config.project_name!r})"
        )


def _validate_config(config: SpanlineConfig) -> None:
    if not config.requires_authentication:
        return
    if config.api_key is None:
        msg = (
            "API key is required for the cloud deployment. "
            "Set SPANLINE_API_KEY or pass api_key to the client."
        )
        raise ConfigurationError(msg)
    if config.workspace is None:
        msg = (
            "Workspace is required for the cloud deployment. "
            "Set SPANLINE_WORKSPACE or pass workspace to the client."
        )
        raise ConfigurationError(msg)


def _require_scores(scores: Sequence[FeedbackScore]) -> Sequence[FeedbackScore]:
    if not scores:
        msg = "Scores cannot be empty"
        raise ValueError(msg)
    return scores


def _require_id(value: str, label: str) -> None:
    if not value or not value.strip():
        msg = f"{label} cannot be empty"
        raise ValueError(msg)
