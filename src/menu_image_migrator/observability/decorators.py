"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace

F = TypeVar("F", bound=Callable[..., Any])


def traced(span_name: str | None = None, service_name: str = "menu-image-migrator") -> Callable[[F], F]:
    """Decorator to add OpenTelemetry tracing to a function.

    Creates a new span for the decorated function and records the exception
    on the span if one is raised. Async functions are supported.

    Args:
        span_name: Name for the span (defaults to function name if not provided)
        service_name: Service name for span attributes

    Returns:
        Decorated function with tracing

    Example:
        @traced("relocate_image")
        async def relocate(restaurant_id, item_id, image_url) -> str:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__

        def _start(span: trace.Span) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        def _fail(span: trace.Span, e: Exception) -> None:
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(service_name)
            with tracer.start_as_current_span(name) as span:
                _start(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _fail(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(service_name)
            with tracer.start_as_current_span(name) as span:
                _start(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _fail(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
