"""Bounded EventQueue with deduplication."""

import asyncio

from threadwise.domain.entities.event import Event

DEFAULT_CAPACITY = 128


class EventQueue:
    """In-memory bounded event queue with deduplication.

    Supports:
    - Non-blocking enqueue from gateway callbacks (drops when full)
    - Deduplication based on identity_key
    - Processing state tracking
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize the event queue.

        Args:
            capacity: Maximum number of queued events.
        """
        self._capacity = capacity
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=capacity)
        self._pending: dict[str, Event] = {}
        # Keyed by event.id so events sharing an identity_key can overlap
        self._processing: dict[str, Event] = {}

    @property
    def capacity(self) -> int:
        """Return the maximum number of queued events."""
        return self._capacity

    @property
    def pending_count(self) -> int:
        """Return the number of pending events."""
        return len(self._pending)

    @property
    def processing_count(self) -> int:
        """Return the number of events being processed."""
        return len(self._processing)

    def enqueue_nowait(self, event: Event) -> bool:
        """Add an event to the queue without waiting.

        An event whose identity_key is already pending is ignored, so a
        redelivered platform message is handled once.

        Args:
            event: The event to enqueue.

        Returns:
            True if the event was queued, False if it was a duplicate or
            the queue is full.
        """
        key = event.get_identity_key()
        if key in self._pending:
            return False

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False

        self._pending[key] = event
        return True

    async def dequeue(self) -> Event:
        """Get the next event from the queue.

        Returns:
            The next event to process.
        """
        event = await self._queue.get()
        self._pending.pop(event.get_identity_key(), None)
        self._processing[event.id] = event
        return event

    def mark_done(self, event: Event) -> None:
        """Mark an event as done processing.

        Args:
            event: The event that has been processed.
        """
        if event.id in self._processing:
            del self._processing[event.id]
