"""Tracking of the current trace and span without extending their lifetime.

The current trace and the stack of open spans are stored as weak
references inside ``contextvars``, so each thread and asyncio task sees its
own state and an entity dropped by its owner is never kept alive here.
"""

from __future__ import annotations

import weakref
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spanline.tracer.span import Span
    from spanline.tracer.trace import Trace

_current_trace: ContextVar[weakref.ref[Trace] | None] = ContextVar(
    "spanline_current_trace", default=None,
)
_span_stack: ContextVar[tuple[weakref.ref[Span], ...]] = ContextVar(
    "spanline_span_stack", default=(),
)


def set_current_trace(trace: Trace | None) -> None:
    _current_trace.set(weakref.ref(trace) if trace is not None else None)


def get_current_trace() -> Trace | None:
    """Return the current trace, or ``None`` if unset or already collected."""
    ref = _current_trace.get()
    return ref() if ref is not None else None


def push_span(span: Span) -> None:
    """Make ``span`` the current span, remembering the previous one."""
    _span_stack.set((*_span_stack.get(), weakref.ref(span)))


def pop_span() -> Span | None:
    """Remove the current span and return it, restoring its predecessor."""
    stack = _span_stack.get()
    if not stack:
        return None
    _span_stack.set(stack[:-1])
    return stack[-1]()


def get_current_span() -> Span | None:
    """Return the innermost live span, or ``None``."""
    stack = _span_stack.get()
    return stack[-1]() if stack else None


def has_active_trace() -> bool:
    return get_current_trace() is not None


def has_active_span() -> bool:
    return get_current_span() is not None


def clear() -> None:
    """Forget the current trace and every open span."""
    _current_trace.set(None)
    _span_stack.set(())
