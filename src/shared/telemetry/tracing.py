"""Span helpers for access decisions"""
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

T = TypeVar("T")

tracer = trace.get_tracer("src.access")


def traced(operation_name: str | None = None, attributes: dict[str, Any] | None = None):
    """
    Wrap an async access check in a span.

    Keyword arguments become `access.<name>` attributes and a boolean result
    is recorded as `access.allowed`, so denied checks can be found in traces.

    Usage:
        @traced("access.can_access_route")
        async def can_access_route(self, user_id: str, path: str) -> bool:
            ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                for key, value in kwargs.items():
                    span.set_attribute(f"access.{key}", str(value))
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                if isinstance(result, bool):
                    span.set_attribute("access.allowed", result)
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: Any) -> None:
    """
    Add attributes to the current span (no-op when nothing is recording)

    Usage:
        add_span_attributes(**{"access.bypass": True})
    """
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        span.set_attribute(key, value)
