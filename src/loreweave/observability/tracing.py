"""@traced decorator: OpenTelemetry span around a sync or async callable.

Without an SDK installed the OTel API hands out no-op spans, so tracing
costs nothing until an application wires a TracerProvider.

Usage:
    @traced("retrieval.characters")
    async def retrieve_characters(self, query: str) -> RetrievalOutcome: ...

    @traced("embedding.request", external=True)
    async def embed(self, text: str) -> list[float]: ...
"""

from __future__ import annotations

import functools
import inspect
import time
from typing import Any, Callable, TypeVar

from opentelemetry import trace

F = TypeVar("F", bound=Callable[..., Any])

_TRACER_NAME = "loreweave"


def _record_error(span: Any, exc: BaseException) -> None:
    span.set_attribute("error", True)
    span.set_attribute("error.type", type(exc).__name__)
    span.record_exception(exc)


def traced(name: str, *, external: bool = False) -> Callable[[F], F]:
    """Decorator: wrap a function in an OTel span.

    Args:
        name: Span name (e.g. "graph.traverse", "index.entity").
        external: Marks the span as waiting on I/O (provider or store
                  calls) rather than computing.
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(_TRACER_NAME)
            with tracer.start_as_current_span(name) as span:
                span.set_attribute("loreweave.external", external)
                t0 = time.monotonic()
                try:
                    return fn(*args, **kwargs)
                except Exception as exc:
                    _record_error(span, exc)
                    raise
                finally:
                    span.set_attribute("loreweave.total_seconds", time.monotonic() - t0)

        @functools.wraps(fn)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(_TRACER_NAME)
            with tracer.start_as_current_span(name) as span:
                span.set_attribute("loreweave.external", external)
                t0 = time.monotonic()
                try:
                    return await fn(*args, **kwargs)
                except Exception as exc:
                    _record_error(span, exc)
                    raise
                finally:
                    span.set_attribute("loreweave.total_seconds", time.monotonic() - t0)

        if inspect.iscoroutinefunction(fn):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper  # type: ignore[return-value]

    return decorator
