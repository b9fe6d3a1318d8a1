"""Helpers that turn a trigger message into a model request."""

import re

from jinja2 import Template

from threadwise.domain.entities.chat_message import Attachment, TriggerMessage
from threadwise.domain.entities.history import HistoryItem

URL_PATTERN = re.compile(r"https://\S+")

LINK_QUERY_TEMPLATE = Template("URL: {{ url }}\nContent:\n{{ content }}")

IMAGE_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "image/tiff",
        "image/bmp",
        "image/x-icon",
        "image/vnd.microsoft.icon",
        "image/heic",
        "image/heif",
        "image/avif",
        "image/jxl",
    }
)


def find_url(content: str) -> str | None:
    """Return the first https URL in ``content``, if any."""
    match = URL_PATTERN.search(content)
    return match.group(0) if match else None


def find_images(trigger: TriggerMessage, chain: list[HistoryItem]) -> list[str]:
    """Return the URL of the first image attachment.

    The trigger's own attachments are checked before the reply chain. At most
    one image is returned.
    """
    candidates: list[Attachment] = list(trigger.attachments)
    for item in chain:
        candidates.extend(item.attachments)

    for attachment in candidates:
        if attachment.content_type in IMAGE_CONTENT_TYPES:
            return [attachment.url]
    return []


def build_link_query(url: str, content: str) -> str:
    """Build the model request for a shared link.

    Args:
        url: The link found in the conversation.
        content: Text extracted from the page.

    Returns:
        The query prompt string.
    """
    return LINK_QUERY_TEMPLATE.render(url=url, content=content)
