"""Inference client protocol."""

from collections.abc import AsyncIterator
from typing import Protocol

from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stream import StreamChunk


class InferenceClient(Protocol):
    """Language model access.

    Attributes:
        supports_streaming: Whether ``stream`` yields incremental output.
    """

    supports_streaming: bool

    async def infer(
        self,
        model: str,
        system_prompt: str,
        user_message: str,
        history: list[HistoryItem],
        images: list[str],
    ) -> str:
        """Run a blocking completion.

        Raises:
            InferenceError: If the model call fails.
        """
        ...

    def stream(
        self,
        model: str,
        system_prompt: str,
        user_message: str,
        history: list[HistoryItem],
        images: list[str],
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion as chunks, ending with a ``done`` chunk.

        Failures are reported as a chunk with ``error`` set.
        """
        ...
