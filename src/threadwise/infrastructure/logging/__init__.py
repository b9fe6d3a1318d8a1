"""Logging infrastructure module."""

from threadwise.infrastructure.logging.setup import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
