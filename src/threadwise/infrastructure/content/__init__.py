"""Webpage content extraction."""

from threadwise.infrastructure.content.extractor import SubprocessContentExtractor

__all__ = ["SubprocessContentExtractor"]
