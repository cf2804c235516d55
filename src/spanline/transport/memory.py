"""In-memory transport that records calls instead of sending them."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedCall:
    """A single call captured by ``InMemoryTransport``."""

    method: str
    path: str
    body: dict[str, Any] = field(default_factory=dict)


class InMemoryTransport:
    """Stores every call in a list for testing and debugging.

    Implements the ``Transport`` protocol.  Bodies are deep-copied on
    arrival so later mutation by the caller does not alter the record.

    Parameters:
        fail_with: Optional factory returning an exception to raise for a
            given ``(method, path)``; return ``None`` to let the call succeed.
        responses: Canned responses keyed by ``"METHOD path"``.
    """

    __slots__ = ("_calls", "_fail_with", "_responses")

    def __init__(
        self,
        fail_with: Callable[[str, str], Exception | None] | None = None,
        responses: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._calls: list[RecordedCall] = []
        self._fail_with = fail_with
        self._responses = responses or {}

    def post(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._record("POST", path, body)

    def get(self, path: str, query: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._record("GET", path, query)

    def put(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._record("PUT", path, body)

    def patch(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._record("PATCH", path, body)

    def delete(self, path: str) -> None:
        self._record("DELETE", path, None)

    @property
    def calls(self) -> list[RecordedCall]:
        """A copy of every recorded call, in arrival order."""
        return list(self._calls)

    def calls_to(self, path: str) -> list[RecordedCall]:
        """Return the recorded calls made to ``path``."""
        return [c for c in self._calls if c.path == path]

    def clear(self) -> None:
        """Forget all recorded calls."""
        self._calls.clear()

    def _record(self, method: str, path: str, body: dict[str, Any] | None) -> dict[str, Any]:
        self._calls.append(RecordedCall(method, path, copy.deepcopy(body or {})))
        if self._fail_with is not None:
            error = self._fail_with(method, path)
            if error is not None:
                raise error
        logger.debug("Recorded %s %s", method, path)
        return dict(self._responses.get(f"{method} {path}", {}))
