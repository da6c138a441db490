"""
Provider adapters: map ChatRequests to provider-native payloads.
"""
from typing import Optional

from ..model_config import ModelRegistry, get_model_registry
from .anthropic import AnthropicAdapter, AnthropicSchemaAdapter
from .base import PayloadOptions, ProviderAdapter, SchemaAdapter, StructuredOutput, read_response_format
from .gemini import GeminiAdapter, GeminiRequest, GeminiSchemaAdapter
from .openai import OpenAIAdapter, OpenAISchemaAdapter

ADAPTERS: dict[str, type[ProviderAdapter]] = {
    "openai": OpenAIAdapter,
    "anthropic": AnthropicAdapter,
    "gemini": GeminiAdapter,
}


def get_adapter(family: str) -> ProviderAdapter:
    """Get an adapter by provider family.

    Raises:
        ValueError: If the family is unknown.
    """
    adapter_class = ADAPTERS.get(family)
    if adapter_class is None:
        raise ValueError(f"Unknown provider family '{family}'. Available: {', '.join(ADAPTERS)}")
    return adapter_class()


def get_adapter_for_model(model: Optional[str], registry: Optional[ModelRegistry] = None) -> ProviderAdapter:
    """Get the adapter for the family serving a model."""
    family = (registry or get_model_registry()).get_model_family(model)
    return get_adapter(family)


__all__ = [
    "ADAPTERS",
    "AnthropicAdapter",
    "AnthropicSchemaAdapter",
    "GeminiAdapter",
    "GeminiRequest",
    "GeminiSchemaAdapter",
    "OpenAIAdapter",
    "OpenAISchemaAdapter",
    "PayloadOptions",
    "ProviderAdapter",
    "SchemaAdapter",
    "StructuredOutput",
    "get_adapter",
    "get_adapter_for_model",
    "read_response_format",
]
