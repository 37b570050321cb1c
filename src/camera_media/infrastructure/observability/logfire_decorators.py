"""Decorators for instrumenting media operations with Logfire spans."""

import functools
import inspect
from typing import Any, Callable, Dict, Optional, TypeVar

import logfire

from camera_media.domain.exceptions import MediaError

T = TypeVar("T")


def traced(
    name: Optional[str] = None,
    capture_args: bool = True,
    **extra_attributes: Any,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator to wrap a coroutine function in a Logfire span.

    Media errors are recorded on the span with their failure kind before
    being re-raised.

    Args:
        name: Optional span name (defaults to module and function name)
        capture_args: Whether to capture function arguments
        **extra_attributes: Additional attributes to add to the span

    Returns:
        Decorated function
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        span_name = name or f"{func.__module__}.{func.__name__}"

        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"traced() expects a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            attributes = {
                "function": func.__name__,
                "module": func.__module__,
                **extra_attributes,
            }

            if capture_args:
                # Skip ``self``, buffers are summarised by _safe_repr
                attributes["args"] = _safe_repr(args[1:6])
                attributes["kwargs"] = _safe_repr_dict(kwargs)

            with logfire.span(span_name, **attributes) as span:
                try:
                    return await func(*args, **kwargs)
                except MediaError as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error_type", type(e).__name__)
                    span.set_attribute("failure_kind", e.kind.value)
                    span.set_attribute("error_message", e.message)
                    raise

        return async_wrapper

    return decorator


def _safe_repr(obj: Any, max_length: int = 200) -> str:
    """Safely convert object to string representation.

    Args:
        obj: Object to convert
        max_length: Maximum string length

    Returns:
        String representation
    """
    if isinstance(obj, (bytes, bytearray)):
        return f"<{len(obj)} bytes>"
    if isinstance(obj, tuple):
        return "(" + ", ".join(_safe_repr(item, max_length) for item in obj) + ")"

    try:
        repr_str = repr(obj)
        if len(repr_str) > max_length:
            return repr_str[:max_length] + "..."
        return repr_str
    except Exception:
        return f"<{type(obj).__name__} object>"


def _safe_repr_dict(d: Dict[str, Any], max_items: int = 10) -> Dict[str, str]:
    """Safely convert dictionary to string representations."""
    result = {}
    for i, (key, value) in enumerate(d.items()):
        if i >= max_items:
            result["..."] = f"({len(d) - max_items} more items)"
            break
        result[str(key)] = _safe_repr(value)

    return result
