"""
OpenAI chat-completions provider.
"""
from ..adapters.openai import OpenAIAdapter
from ..constants import DEFAULT_MODEL
from .base import Provider


class OpenAIProvider(Provider):
    """Sends requests to ``/chat/completions``."""

    family = "openai"
    default_model = DEFAULT_MODEL

    def _create_adapter(self) -> OpenAIAdapter:
        return OpenAIAdapter()

    def _endpoint(self, base_url: str, model: str) -> str:
        return f"{base_url}/chat/completions"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
