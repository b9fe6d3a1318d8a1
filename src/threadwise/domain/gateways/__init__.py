"""Gateway protocols for external collaborators."""

from threadwise.domain.gateways.chat_gateway import ChatGateway, ReplySink
from threadwise.domain.gateways.content_extractor import ContentExtractor
from threadwise.domain.gateways.inference import InferenceClient

__all__ = ["ChatGateway", "ContentExtractor", "InferenceClient", "ReplySink"]
