"""Observability module for structured logging."""

from llxt.observability.logging import configure_logging


__all__ = [
    "configure_logging",
]
