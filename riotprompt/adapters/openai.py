"""
OpenAI chat-completions adapter.
"""
import copy
from typing import Any, Optional

from ..chat import ChatRequest, ProviderResponse, Usage
from ..constants import DEFAULT_MODEL
from .base import PayloadOptions, ProviderAdapter, SchemaAdapter


class OpenAISchemaAdapter(SchemaAdapter):
    """OpenAI accepts JSON Schema as-is."""

    provider = "openai"

    def adapt_schema(self, schema: Any) -> Any:
        return copy.deepcopy(schema)


class OpenAIAdapter(ProviderAdapter):
    """Messages and response format pass through unchanged.

    Example:
        payload = OpenAIAdapter().build_payload(request)
        # {"model": "gpt-4o", "messages": [...], "response_format": {...}}
    """

    name = "openai"

    def __init__(self) -> None:
        self.schema_adapter = OpenAISchemaAdapter()

    def build_payload(
        self,
        request: ChatRequest,
        options: Optional[PayloadOptions] = None,
    ) -> dict[str, Any]:
        options = options or PayloadOptions()
        payload: dict[str, Any] = {
            "model": options.model or request.model or DEFAULT_MODEL,
            "messages": [message.to_dict() for message in request.messages],
        }
        if request.response_format is not None:
            payload["response_format"] = copy.deepcopy(request.response_format)
        if options.temperature is not None:
            payload["temperature"] = options.temperature
        if options.max_tokens is not None:
            payload["max_tokens"] = options.max_tokens
        return payload

    def parse_response(self, data: dict[str, Any]) -> ProviderResponse:
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._unexpected("missing choices") from e

        usage = None
        if isinstance(data.get("usage"), dict):
            usage = Usage(
                input_tokens=data["usage"].get("prompt_tokens", 0),
                output_tokens=data["usage"].get("completion_tokens", 0),
            )
        return ProviderResponse(
            content=message.get("content") or "",
            model=data.get("model"),
            usage=usage,
        )
