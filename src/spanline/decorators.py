"""The ``@track`` decorator for tracing plain and async functions."""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from spanline import context
from spanline.tracer.models import ErrorInfo, SpanType

if TYPE_CHECKING:
    from spanline.client import SpanlineClient
    from spanline.tracer.span import Span
    from spanline.tracer.trace import Trace

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_client: SpanlineClient | None = None


def set_client(client: SpanlineClient | None) -> None:
    """Set the client used by ``@track``.  ``None`` disables tracking."""
    global _client
    _client = client


def get_client() -> SpanlineClient | None:
    return _client


def track(
    func: F | None = None,
    *,
    name: str | None = None,
    project_name: str | None = None,
    type: SpanType = SpanType.GENERAL,
    capture_input: bool = True,
    capture_output: bool = True,
) -> Any:
    """Trace every call of the decorated function as a span.

    The outermost tracked call opens a trace and a root span; tracked calls
    made inside it become child spans of the innermost open span.  Bound
    arguments are recorded as the span input and the return value as its
    output.  An exception is recorded as ``error_info`` and re-raised; this
    includes ``asyncio.CancelledError`` and ``KeyboardInterrupt``, so a
    cancelled call still ends its span and trace.

    When no client has been set with ``set_client`` the function runs
    untraced.  Works on both regular and ``async`` functions, bare or with
    arguments::

        @track
        def retrieve(query: str) -> list[str]: ...

        @track(name="answer", type=SpanType.LLM)
        async def answer(question: str) -> str: ...

    Parameters:
        func: The function, when used as a bare decorator.
        name: Span (and root trace) name.  Defaults to the qualified name.
        project_name: Project for a root trace; nested spans inherit the
            trace's project.
        type: Category of the span.
        capture_input: Record the call arguments.
        capture_output: Record the return value.
    """

    def decorator(fn: F) -> F:
        span_name = name or fn.__qualname__

        def start(args: tuple[Any, ...], kwargs: dict[str, Any]) -> _TrackedCall | None:
            client = _client
            if client is None:
                return None
            call_input = _capture_arguments(fn, args, kwargs) if capture_input else None
            return _TrackedCall.open(client, span_name, project_name, type, call_input)

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                call = start(args, kwargs)
                if call is None:
                    return await fn(*args, **kwargs)
                try:
                    result = await fn(*args, **kwargs)
                except BaseException as exc:
                    call.fail(exc)
                    raise
                else:
                    call.succeed(result if capture_output else None)
                    return result
                finally:
                    call.close()

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            call = start(args, kwargs)
            if call is None:
                return fn(*args, **kwargs)
            try:
                result = fn(*args, **kwargs)
            except BaseException as exc:
                call.fail(exc)
                raise
            else:
                call.succeed(result if capture_output else None)
                return result
            finally:
                call.close()

        return wrapper  # type: ignore[return-value]

    if func is not None:
        return decorator(func)
    return decorator


class _TrackedCall:
    """The trace and span opened for one invocation of a tracked function."""

    __slots__ = ("is_root", "span", "trace")

    def __init__(self, trace: Trace, span: Span, is_root: bool) -> None:
        self.trace = trace
        self.span = span
        self.is_root = is_root

    @classmethod
    def open(
        cls,
        client: SpanlineClient,
        name: str,
        project_name: str | None,
        span_type: SpanType,
        call_input: Any,
    ) -> _TrackedCall:
        trace = context.get_current_trace()
        if trace is None:
            trace = client.trace(name, project_name=project_name, input=call_input)
            context.set_current_trace(trace)
            span = trace.span(name, type=span_type, input=call_input)
            is_root = True
        else:
            parent = context.get_current_span()
            span = trace.span(
                name,
                parent_span_id=parent.id if parent is not None else None,
                type=span_type,
                input=call_input,
            )
            is_root = False
        context.push_span(span)
        return cls(trace, span, is_root)

    def succeed(self, result: Any) -> None:
        output = normalize_output(result)
        self.span.update(output=output)
        self.span.end()
        if self.is_root:
            self.trace.update(output=output)
            self.trace.end()

    def fail(self, exc: BaseException) -> None:
        error_info = ErrorInfo.from_exception(exc)
        self.span.update(error_info=error_info)
        self.span.end()
        if self.is_root:
            self.trace.update(error_info=error_info)
            self.trace.end()

    def close(self) -> None:
        context.pop_span()
        if self.is_root:
            context.clear()


def _capture_arguments(
    fn: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any],
) -> dict[str, Any]:
    try:
        bound = inspect.signature(fn).bind(*args, **kwargs)
    except (TypeError, ValueError):
        logger.debug("Could not bind arguments of %r", fn, exc_info=True)
        return {"args": list(args), "kwargs": dict(kwargs)}
    bound.apply_defaults()
    return {k: v for k, v in bound.arguments.items() if k not in ("self", "cls")}


def normalize_output(result: Any) -> dict[str, Any] | None:
    """Turn a function's return value into a mapping suitable for span output."""
    if result is None:
        return None
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, Mapping):
        return dict(result)
    return {"result": result}
