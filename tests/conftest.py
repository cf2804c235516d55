"""Shared fixtures for spanline tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from spanline import context, decorators
from spanline.config import SpanlineConfig
from spanline.messages.queue import BatchQueue
from spanline.transport.memory import InMemoryTransport


class FakeClock:
    """A manually advanced monotonic clock for time-threshold tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_queue(
    transport: InMemoryTransport, clock: FakeClock,
) -> Callable[..., BatchQueue]:
    """Factory building a ``BatchQueue`` on the shared transport and clock.

    Keyword arguments other than ``on_failure`` are passed to ``SpanlineConfig``.
    """

    def _make(on_failure: Any = None, **config: Any) -> BatchQueue:
        return BatchQueue(
            transport,
            SpanlineConfig(**config),
            on_failure=on_failure,
            clock=clock,
        )

    return _make


@pytest.fixture
def queue(make_queue: Callable[..., BatchQueue]) -> BatchQueue:
    return make_queue()


@pytest.fixture(autouse=True)
def _reset_tracking_state() -> Iterator[None]:
    context.clear()
    decorators.set_client(None)
    yield
    context.clear()
    decorators.set_client(None)
