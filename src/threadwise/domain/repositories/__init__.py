"""Repository protocols."""

from threadwise.domain.repositories.message_store import MessageStore

__all__ = ["MessageStore"]
