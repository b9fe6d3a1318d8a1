"""Mock LLM model for tests and offline runs."""

from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any, TypeVar

from strands.models import Model
from strands.types.content import Messages
from strands.types.streaming import StreamEvent

T = TypeVar("T")

DEFAULT_CHUNKS = ["Mock ", "LLM ", "response"]


class MockModel(Model):
    """Mock model that streams canned text without calling an API.

    Every call is recorded in ``calls`` as ``(messages, system_prompt)``.
    """

    def __init__(
        self,
        chunks: list[str] | None = None,
        raise_error: bool = False,
        fail_after: int | None = None,
    ) -> None:
        """Initialize the mock model.

        Args:
            chunks: Text deltas to stream. Defaults to DEFAULT_CHUNKS.
            raise_error: If True, raise before streaming anything.
            fail_after: If set, raise after this many deltas.
        """
        self._chunks = list(DEFAULT_CHUNKS if chunks is None else chunks)
        self._raise_error = raise_error
        self._fail_after = fail_after
        self._config: dict[str, Any] = {}
        self.calls: list[tuple[Messages, str | None]] = []

    async def stream(
        self,
        messages: Messages,
        tool_specs: list[Any] | None = None,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> AsyncIterable[StreamEvent]:
        """Stream mock response events.

        Raises:
            RuntimeError: If raise_error is True or fail_after is reached.
        """
        self.calls.append((messages, system_prompt))
        if self._raise_error:
            raise RuntimeError("Mock LLM error for testing")

        yield {"messageStart": {"role": "assistant"}}
        yield {
            "contentBlockStart": {
                "contentBlockIndex": 0,
                "start": {"text": ""},
            }
        }
        for index, text in enumerate(self._chunks):
            if self._fail_after is not None and index >= self._fail_after:
                raise RuntimeError("Mock LLM stream interrupted")
            yield {
                "contentBlockDelta": {
                    "delta": {"text": text},
                    "contentBlockIndex": 0,
                }
            }
        yield {"contentBlockStop": {"contentBlockIndex": 0}}
        yield {"messageStop": {"stopReason": "end_turn"}}

    async def structured_output(
        self,
        output_model: type[T],
        prompt: Messages,
        **kwargs: Any,
    ) -> AsyncGenerator[dict[str, T | Any], None]:
        """Not supported by the mock; yields an empty result."""
        yield {}
        return

    def update_config(self, **model_config: Any) -> None:
        """Update model configuration."""
        self._config.update(model_config)

    def get_config(self) -> dict[str, Any]:
        """Get model configuration."""
        return self._config
