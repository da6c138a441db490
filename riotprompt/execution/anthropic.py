"""
Anthropic messages provider.
"""
from ..adapters.anthropic import DEFAULT_ANTHROPIC_MODEL, AnthropicAdapter
from ..constants import ANTHROPIC_API_VERSION
from .base import Provider


class AnthropicProvider(Provider):
    """Sends requests to ``/messages``.

    Structured output comes back as a forced tool call; the adapter returns
    its input as pretty-printed JSON text.
    """

    family = "anthropic"
    default_model = DEFAULT_ANTHROPIC_MODEL

    def _create_adapter(self) -> AnthropicAdapter:
        return AnthropicAdapter()

    def _endpoint(self, base_url: str, model: str) -> str:
        return f"{base_url}/messages"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "Content-Type": "application/json",
        }
