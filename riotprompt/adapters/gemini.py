"""
Gemini generateContent adapter.

System and developer messages become ``systemInstruction``. The remaining
turns are split into history and a final message: a conversation with more
than one turn is sent as a chat (history plus the last message), a single
turn as a one-shot generation. Assistant turns use Gemini's ``model`` role.

JSON Schemas are normalized to Gemini's dialect: ``type`` is uppercased,
``additionalProperties`` and ``$schema`` are dropped, and ``properties`` and
``items`` are normalized recursively.
"""
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from ..chat import ChatRequest, ProviderResponse, Usage
from .base import PayloadOptions, ProviderAdapter, SchemaAdapter, read_response_format, split_system

DEFAULT_GEMINI_MODEL = "gemini-1.5-pro"
JSON_MIME_TYPE = "application/json"

# Keys Gemini's schema dialect rejects
UNSUPPORTED_SCHEMA_KEYS = ("additionalProperties", "$schema")

GeminiMode = Literal["chat", "generate"]


class GeminiSchemaAdapter(SchemaAdapter):
    """Normalizes JSON Schema for ``generationConfig.responseSchema``."""

    provider = "gemini"

    def _normalize(self, schema: Any) -> Any:
        if not isinstance(schema, dict):
            return schema

        normalized = dict(schema)
        if isinstance(normalized.get("type"), str):
            normalized["type"] = normalized["type"].upper()

        if isinstance(normalized.get("properties"), dict):
            normalized["properties"] = {
                key: self._normalize(value)
                for key, value in normalized["properties"].items()
            }

        if "items" in normalized:
            normalized["items"] = self._normalize(normalized["items"])

        for key in UNSUPPORTED_SCHEMA_KEYS:
            normalized.pop(key, None)
        return normalized

    def adapt_schema(self, schema: Any) -> dict[str, Any]:
        """Normalize a JSON Schema object.

        Raises:
            SchemaTranslationError: If the schema is not a JSON object.
        """
        return self._normalize(self.require_object(schema))


def _content(role: str, text: str) -> dict[str, Any]:
    return {"role": role, "parts": [{"text": text}]}


@dataclass
class GeminiRequest:
    """A Gemini call split the way the chat and one-shot APIs take it.

    Attributes:
        model: Model name.
        system_instruction: Joined system/developer text.
        history: Prior turns for chat mode.
        message: The text sent in this call.
        mode: "chat" when history is replayed, otherwise "generate".
        generation_config: Gemini generationConfig.
    """
    model: str
    message: str
    mode: GeminiMode = "generate"
    system_instruction: Optional[str] = None
    history: list[dict[str, Any]] = field(default_factory=list)
    generation_config: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Render the REST body for ``models/{model}:generateContent``."""
        payload: dict[str, Any] = {
            "contents": [*self.history, _content("user", self.message)],
        }
        if self.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": self.system_instruction}]}
        if self.generation_config:
            payload["generationConfig"] = dict(self.generation_config)
        return payload


class GeminiAdapter(ProviderAdapter):
    """Builds Gemini payloads.

    Example:
        gemini_request = GeminiAdapter().build_request(request)
        gemini_request.mode      # "generate" for a single user turn
        gemini_request.to_payload()
    """

    name = "gemini"

    def __init__(self) -> None:
        self.schema_adapter = GeminiSchemaAdapter()

    def build_generation_config(
        self,
        request: ChatRequest,
        options: PayloadOptions,
    ) -> dict[str, Any]:
        config: dict[str, Any] = {}
        structured = read_response_format(request.response_format)
        if structured is not None:
            config["responseMimeType"] = JSON_MIME_TYPE
            if structured.kind == "json_schema":
                config["responseSchema"] = self.schema_adapter.adapt_schema(structured.schema)
        if options.temperature is not None:
            config["temperature"] = options.temperature
        if options.max_tokens is not None:
            config["maxOutputTokens"] = options.max_tokens
        return config

    def build_request(
        self,
        request: ChatRequest,
        options: Optional[PayloadOptions] = None,
    ) -> GeminiRequest:
        """Split a ChatRequest into system instruction, history and message."""
        options = options or PayloadOptions()
        system, turns = split_system(request)

        history = [
            _content("model" if role == "assistant" else "user", content)
            for role, content in turns
        ]

        if len(history) > 1:
            last = history.pop()
            message = last["parts"][0]["text"]
            mode: GeminiMode = "chat"
        else:
            user_turns = [content for role, content in turns if role == "user"]
            message = user_turns[-1] if user_turns and user_turns[-1] else " "
            history = []
            mode = "generate"

        return GeminiRequest(
            model=options.model or request.model or DEFAULT_GEMINI_MODEL,
            message=message,
            mode=mode,
            system_instruction=system or None,
            history=history,
            generation_config=self.build_generation_config(request, options),
        )

    def build_payload(
        self,
        request: ChatRequest,
        options: Optional[PayloadOptions] = None,
    ) -> dict[str, Any]:
        return self.build_request(request, options).to_payload()

    def parse_response(self, data: dict[str, Any]) -> ProviderResponse:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._unexpected("missing candidates") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

        usage = None
        metadata = data.get("usageMetadata")
        if isinstance(metadata, dict):
            usage = Usage(
                input_tokens=metadata.get("promptTokenCount", 0),
                output_tokens=metadata.get("candidatesTokenCount", 0),
            )
        return ProviderResponse(content=text, model=data.get("modelVersion"), usage=usage)
