"""Non-blocking batch queue that buffers, deduplicates and flushes messages."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from spanline.config import SpanlineConfig
from spanline.messages.models import Message
from spanline.messages.registry import get_registry
from spanline.protocols.transport import FailureCallback, Transport
from spanline.utils.jsonenc import payload_size

logger = logging.getLogger(__name__)

TRACES_BATCH_PATH = "v1/private/traces/batch"
SPANS_BATCH_PATH = "v1/private/spans/batch"
FEEDBACK_SCORES_PATH = "v1/private/spans/feedback-scores"


class BatchQueue:
    """Buffers telemetry messages and drains them to a ``Transport`` in batches.

    Three buffers are kept: the latest message per trace id, the latest
    message per span id, and an append-only list of feedback scores.  A
    second message for an already-buffered trace or span replaces the
    first in place, so the entity keeps its original position and only its
    most recent snapshot is ever sent.

    A flush is triggered by whichever threshold is crossed first:

    * the accumulated payload size would exceed ``batch_size_bytes``
      (checked before the new message is buffered);
    * more than ``flush_interval_ms`` has elapsed since the last flush
      (checked lazily, on the next ``enqueue``);
    * the number of buffered messages reaches ``batch_count``
      (checked after the new message is buffered).

    Delivery is best-effort and at-most-once: a batch whose transport call
    fails is handed to ``on_failure`` and then discarded.  Nothing raised
    by the transport or by the callback escapes ``enqueue`` or ``flush``.

    Every queue registers itself with the process-wide ``FlushRegistry``,
    which flushes it at interpreter exit if it still holds messages.

    Note:
        This implementation is **not** thread-safe.  All flushing happens
        synchronously inside the call that triggered it.

    Usage::

        queue = BatchQueue(transport, SpanlineConfig(batch_count=50))
        queue.enqueue(Message(kind=MessageKind.CREATE_TRACE, payload={...}))
        queue.flush()

    Parameters:
        transport: Where batches are sent.
        config: Supplies the three flush thresholds.  Defaults to
            ``SpanlineConfig()``.
        on_failure: Optional callback receiving the dropped batch payload
            and the error for every failed transport call.
        clock: Monotonic clock in seconds, used for the time threshold.
    """

    __slots__ = (
        "__weakref__",
        "_accumulated_bytes",
        "_batch_count",
        "_batch_size_bytes",
        "_clock",
        "_feedback_messages",
        "_flush_interval_s",
        "_last_flush",
        "_on_failure",
        "_span_messages",
        "_trace_messages",
        "_transport",
    )

    def __init__(
        self,
        transport: Transport,
        config: SpanlineConfig | None = None,
        *,
        on_failure: FailureCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        config = config or SpanlineConfig()
        self._transport = transport
        self._batch_size_bytes = config.batch_size_bytes
        self._flush_interval_s = config.flush_interval_ms / 1000
        self._batch_count = config.batch_count
        self._on_failure = on_failure
        self._clock = clock

        self._trace_messages: dict[str, Message] = {}
        self._span_messages: dict[str, Message] = {}
        self._feedback_messages: list[Message] = []
        self._accumulated_bytes = 0
        self._last_flush = clock()

        get_registry().register(self)

    # -- Buffering --

    def enqueue(self, message: Message) -> None:
        """Buffer a message, flushing first or afterwards when a threshold is crossed.

        Parameters:
            message: The message to buffer.
        """
        try:
            self._enqueue(message)
        except Exception:
            logger.warning("Failed to enqueue %s message", message.kind, exc_info=True)

    def _enqueue(self, message: Message) -> None:
        size = payload_size(message.payload)

        if self._accumulated_bytes + size > self._batch_size_bytes:
            logger.debug(
                "Batch size limit reached (%d + %d > %d bytes), flushing",
                self._accumulated_bytes, size, self._batch_size_bytes,
            )
            self.flush()

        if self._clock() - self._last_flush > self._flush_interval_s:
            logger.debug("Flush interval elapsed, flushing")
            self.flush()

        logger.debug(
            "Enqueueing %s message (id=%s)", message.kind.value, message.payload.get("id"),
        )
        if message.kind.is_trace:
            # Replacing an existing key keeps its original position.
            self._trace_messages[message.entity_id] = message  # type: ignore[index]
        elif message.kind.is_span:
            self._span_messages[message.entity_id] = message  # type: ignore[index]
        else:
            self._feedback_messages.append(message)
        self._accumulated_bytes += size

        if len(self) >= self._batch_count:
            logger.debug("Batch count limit reached (%d), flushing", self._batch_count)
            self.flush()

    # -- Draining --

    def flush(self) -> None:
        """Send every buffered message, one transport call per non-empty buffer.

        Traces are sent before spans, and spans before feedback scores.
        All buffers and the size counter are detached before the first
        call, so whatever succeeds or fails, the drained messages are
        gone; a message enqueued while sending (e.g. by ``on_failure``)
        is buffered and counted for the next flush.
        """
        traces, self._trace_messages = list(self._trace_messages.values()), {}
        spans, self._span_messages = list(self._span_messages.values()), {}
        scores, self._feedback_messages = self._feedback_messages, []
        self._accumulated_bytes = 0
        self._last_flush = self._clock()

        self._send("POST", TRACES_BATCH_PATH, "traces", traces)
        self._send("POST", SPANS_BATCH_PATH, "spans", spans)
        self._send("PUT", FEEDBACK_SCORES_PATH, "scores", scores)

    def _send(
        self,
        method: str,
        path: str,
        key: str,
        messages: list[Message],
    ) -> None:
        if not messages:
            return

        payload: dict[str, Any] = {key: [m.payload for m in messages]}
        call = self._transport.post if method == "POST" else self._transport.put
        try:
            call(path, payload)
        except Exception as exc:
            logger.warning(
                "Failed to flush %d %s item(s) to %s: %s", len(messages), key, path, exc,
            )
            self._report_failure(payload, exc)
            return
        logger.debug("Flushed %d %s item(s)", len(messages), key)

    def _report_failure(self, payload: dict[str, Any], error: Exception) -> None:
        if self._on_failure is None:
            return
        try:
            self._on_failure(payload, error)
        except Exception:
            logger.warning("Failure callback %r raised", self._on_failure, exc_info=True)

    # -- State --

    def is_empty(self) -> bool:
        """Return ``True`` when no message is buffered."""
        return not (self._trace_messages or self._span_messages or self._feedback_messages)

    def __len__(self) -> int:
        return len(self._trace_messages) + len(self._span_messages) + len(self._feedback_messages)

    @property
    def accumulated_bytes(self) -> int:
        """Approximate serialised size of everything buffered since the last flush."""
        return self._accumulated_bytes

    def close(self) -> None:
        """Flush any pending messages and leave the exit-time registry."""
        if not self.is_empty():
            self.flush()
        get_registry().unregister(self)

    def __repr__(self) -> str:
        return (
            f"BatchQueue(traces={len(self._trace_messages)}, "
            f"spans={len(self._span_messages)}, "
            f"feedback_scores={len(self._feedback_messages)})"
        )
