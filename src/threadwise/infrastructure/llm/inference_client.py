"""Inference client backed by strands models."""

from collections.abc import AsyncIterator, Callable
from typing import Any

import aiohttp
from strands import Agent
from strands.types.content import ContentBlock, Message, Messages
from structlog.stdlib import BoundLogger

from threadwise.config.models import LLMConfig
from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stream import StreamChunk
from threadwise.domain.errors import InferenceError
from threadwise.infrastructure.llm.model_factory import Model, create_model

# Image formats accepted by strands image content blocks
IMAGE_FORMATS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/gif": "gif",
    "image/webp": "webp",
}

IMAGE_DOWNLOAD_TIMEOUT = 30


class StrandsInferenceClient:
    """InferenceClient implementation over strands models.

    A fresh model and, for blocking calls, a fresh Agent are created per
    request. No conversation state is kept between calls.
    """

    supports_streaming = True

    def __init__(
        self,
        config: LLMConfig,
        logger: BoundLogger,
        model_factory: Callable[[LLMConfig], Model] = create_model,
    ) -> None:
        """Initialize the client.

        Args:
            config: LLM configuration; model_id is overridden per call.
            logger: Logger instance.
            model_factory: Builds a model from configuration.
        """
        self._config = config
        self._logger = logger
        self._model_factory = model_factory

    def _create_model(self, model: str) -> Model:
        return self._model_factory(self._config.model_copy(update={"model_id": model}))

    async def infer(
        self,
        model: str,
        system_prompt: str,
        user_message: str,
        history: list[HistoryItem],
        images: list[str],
    ) -> str:
        """Run a blocking completion with a one-shot Agent.

        Raises:
            InferenceError: If the model call fails.
        """
        messages = await self.build_messages(user_message, history, images)
        prompt = messages.pop()["content"]

        agent = Agent(
            model=self._create_model(model),
            system_prompt=system_prompt,
            messages=messages,
            tools=[],
            callback_handler=None,
        )
        try:
            result = await agent.invoke_async(prompt)
        except Exception as e:
            self._logger.error("Inference failed", model=model, error=str(e))
            raise InferenceError(f"Inference failed: {e}") from e

        return self._extract_response_text(result) or ""

    async def stream(
        self,
        model: str,
        system_prompt: str,
        user_message: str,
        history: list[HistoryItem],
        images: list[str],
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion as text chunks.

        Yields one chunk per text delta, then a ``done`` chunk. A failure
        ends the stream with a ``done`` chunk carrying ``error``.
        """
        messages = await self.build_messages(user_message, history, images)
        instance = self._create_model(model)

        try:
            async for event in instance.stream(messages, system_prompt=system_prompt):
                text = event.get("contentBlockDelta", {}).get("delta", {}).get("text")
                if text:
                    yield StreamChunk(content=text)
        except Exception as e:
            self._logger.error("Inference stream failed", model=model, error=str(e))
            yield StreamChunk(done=True, error=str(e))
            return

        yield StreamChunk(done=True)

    async def build_messages(
        self, user_message: str, history: list[HistoryItem], images: list[str]
    ) -> Messages:
        """Build the strands message list for one request.

        History items without content are skipped. Bot messages become
        assistant turns, everything else user turns. Images are attached to
        the final user turn.
        """
        messages: Messages = []
        for item in history:
            if not item.content:
                continue
            role = "assistant" if item.is_bot_message else "user"
            messages.append(Message(role=role, content=[ContentBlock(text=item.content)]))

        content: list[ContentBlock] = [ContentBlock(text=user_message)]
        content.extend(await self._download_images(images))
        messages.append(Message(role="user", content=content))
        return messages

    async def _download_images(self, urls: list[str]) -> list[ContentBlock]:
        if not urls:
            return []

        blocks: list[ContentBlock] = []
        timeout = aiohttp.ClientTimeout(total=IMAGE_DOWNLOAD_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for url in urls:
                try:
                    async with session.get(url) as response:
                        response.raise_for_status()
                        image_format = IMAGE_FORMATS.get(response.content_type)
                        if image_format is None:
                            self._logger.info(
                                "Skipping unsupported image",
                                url=url,
                                content_type=response.content_type,
                            )
                            continue
                        data = await response.read()
                except aiohttp.ClientError as e:
                    self._logger.warning("Image download failed", url=url, error=str(e))
                    continue
                blocks.append(
                    ContentBlock(image={"format": image_format, "source": {"bytes": data}})
                )
        return blocks

    def _extract_response_text(self, result: Any) -> str | None:
        """Extract text from agent result.

        Args:
            result: The agent result object.

        Returns:
            The extracted text or None.
        """
        if result is None:
            return None

        if hasattr(result, "message"):
            message: dict[str, Any] = result.message
            if isinstance(message, dict) and "content" in message:
                content: list[dict[str, Any]] = message["content"]
                texts = [
                    block["text"]
                    for block in content
                    if isinstance(block, dict) and "text" in block
                ]
                return "".join(texts)

        return str(result)
