"""
Execution layer: send formatted requests to provider APIs.
"""
from typing import Optional

import httpx

from ..chat import ChatRequest, ProviderResponse, Usage
from ..model_config import ModelRegistry, get_model_registry
from .anthropic import AnthropicProvider
from .base import ExecutionOptions, Provider
from .gemini import GeminiProvider
from .openai import OpenAIProvider

PROVIDERS: dict[str, type[Provider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


def get_provider(
    model: Optional[str],
    registry: Optional[ModelRegistry] = None,
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Provider:
    """Get the provider serving a model, chosen by the model's family.

    Unknown models resolve to the default family.
    """
    family = (registry or get_model_registry()).get_model_family(model)
    provider_class = PROVIDERS.get(family, OpenAIProvider)
    return provider_class(client=client, transport=transport)


async def execute(
    request: ChatRequest,
    options: Optional[ExecutionOptions] = None,
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderResponse:
    """Send a request with the provider for its model.

    The model is taken from the options, then from the request.
    """
    options = options or ExecutionOptions()
    provider = get_provider(options.model or request.model, client=client, transport=transport)
    return await provider.execute(request, options)


__all__ = [
    "AnthropicProvider",
    "ExecutionOptions",
    "GeminiProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "Provider",
    "ProviderResponse",
    "Usage",
    "execute",
    "get_provider",
]
