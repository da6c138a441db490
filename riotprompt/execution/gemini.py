"""
Gemini generateContent provider.
"""
from ..adapters.gemini import DEFAULT_GEMINI_MODEL, GeminiAdapter
from .base import Provider


class GeminiProvider(Provider):
    """Sends requests to ``models/{model}:generateContent``.

    Chat-mode requests carry their history in ``contents`` ahead of the
    final message, so both modes use the same endpoint.
    """

    family = "gemini"
    default_model = DEFAULT_GEMINI_MODEL

    def _create_adapter(self) -> GeminiAdapter:
        return GeminiAdapter()

    def _endpoint(self, base_url: str, model: str) -> str:
        return f"{base_url}/models/{model}:generateContent"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }
