"""Tracing infrastructure module."""

from threadwise.infrastructure.tracing.setup import setup_tracing

__all__ = ["setup_tracing"]
