"""LLM infrastructure module."""

from threadwise.infrastructure.llm.inference_client import StrandsInferenceClient
from threadwise.infrastructure.llm.model_factory import create_model

__all__ = ["StrandsInferenceClient", "create_model"]
