"""Observability infrastructure: stdlib logging bridged to Pydantic Logfire."""

from .logfire_decorators import traced
from .logfire_setup import configure_logfire, configure_logging

__all__ = [
    "configure_logfire",
    "configure_logging",
    "traced",
]
