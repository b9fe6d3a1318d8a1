"""Query building for trigger messages."""

from threadwise.application.handlers.message_query import (
    IMAGE_CONTENT_TYPES,
    build_link_query,
    find_images,
    find_url,
)

__all__ = ["IMAGE_CONTENT_TYPES", "build_link_query", "find_images", "find_url"]
