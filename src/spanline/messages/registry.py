"""Process-wide registry that flushes live batch queues at interpreter exit."""

from __future__ import annotations

import atexit
import logging
import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spanline.messages.queue import BatchQueue

logger = logging.getLogger(__name__)

_registry: FlushRegistry | None = None


class FlushRegistry:
    """Tracks live ``BatchQueue`` instances without keeping them alive.

    Queues are held in a ``weakref.WeakSet``: a queue that is garbage
    collected simply disappears from the registry.
    """

    __slots__ = ("_queues",)

    def __init__(self) -> None:
        self._queues: weakref.WeakSet[BatchQueue] = weakref.WeakSet()

    def register(self, queue: BatchQueue) -> None:
        self._queues.add(queue)

    def unregister(self, queue: BatchQueue) -> None:
        self._queues.discard(queue)

    def __contains__(self, queue: object) -> bool:
        return queue in self._queues

    def __len__(self) -> int:
        return len(self._queues)

    def flush_all(self) -> None:
        """Flush every registered queue that still holds messages.

        Never raises: a queue whose flush fails is logged and skipped.
        """
        for queue in list(self._queues):
            if queue.is_empty():
                continue
            logger.debug("Flushing %r at exit", queue)
            try:
                queue.flush()
            except Exception:
                logger.warning("Exit-time flush of %r failed", queue, exc_info=True)


def get_registry() -> FlushRegistry:
    """Return the process-wide registry, creating it on first use.

    The first call also registers ``FlushRegistry.flush_all`` with
    ``atexit``, so the hook is installed at most once per process.
    """
    global _registry
    if _registry is None:
        _registry = FlushRegistry()
        atexit.register(_registry.flush_all)
    return _registry
