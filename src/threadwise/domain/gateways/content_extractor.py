"""Content extractor protocol."""

from typing import Protocol


class ContentExtractor(Protocol):
    """Extracts readable text from a webpage."""

    async def extract(self, url: str) -> str:
        """Return the main text of the page at ``url``.

        Raises:
            ContentExtractionError: If the page cannot be read.
        """
        ...
