"""
Anthropic messages adapter.

System and developer messages move into the top-level ``system`` field.
Structured output is requested by forcing a single tool whose input schema is
the requested JSON Schema; the tool input in the reply is the structured data.
"""
import copy
import json
from typing import Any, Optional

from ..chat import ChatRequest, ProviderResponse, Usage
from ..constants import DEFAULT_MAX_TOKENS, STRUCTURED_TOOL_DESCRIPTION
from .base import PayloadOptions, ProviderAdapter, SchemaAdapter, read_response_format, split_system

DEFAULT_ANTHROPIC_MODEL = "claude-3-opus-20240229"

# Schema used when plain JSON output is requested without a schema
JSON_OBJECT_SCHEMA: dict[str, Any] = {"type": "object"}


class AnthropicSchemaAdapter(SchemaAdapter):
    """Tool input schemas are plain JSON Schema objects."""

    provider = "anthropic"

    def adapt_schema(self, schema: Any) -> dict[str, Any]:
        return copy.deepcopy(self.require_object(schema))


class AnthropicAdapter(ProviderAdapter):
    """Builds ``/v1/messages`` payloads.

    Example:
        payload = AnthropicAdapter().build_payload(request)
        payload["system"]       # persona text
        payload["tool_choice"]  # {"type": "tool", "name": "response"} for JSON Schema output
    """

    name = "anthropic"

    def __init__(self) -> None:
        self.schema_adapter = AnthropicSchemaAdapter()

    def build_tools(self, request: ChatRequest) -> Optional[tuple[list[dict[str, Any]], dict[str, Any]]]:
        """Build the forced tool for a structured response format.

        Returns:
            ``(tools, tool_choice)``, or None when no structured output is
            requested.
        """
        structured = read_response_format(request.response_format)
        if structured is None:
            return None

        if structured.kind == "json_schema":
            input_schema = self.schema_adapter.adapt_schema(structured.schema)
        else:
            input_schema = dict(JSON_OBJECT_SCHEMA)

        tool = {
            "name": structured.name,
            "description": structured.description or STRUCTURED_TOOL_DESCRIPTION,
            "input_schema": input_schema,
        }
        return [tool], {"type": "tool", "name": structured.name}

    def build_payload(
        self,
        request: ChatRequest,
        options: Optional[PayloadOptions] = None,
    ) -> dict[str, Any]:
        options = options or PayloadOptions()
        system, turns = split_system(request)

        payload: dict[str, Any] = {
            "model": options.model or request.model or DEFAULT_ANTHROPIC_MODEL,
            "max_tokens": options.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [{"role": role, "content": content} for role, content in turns],
        }
        if system:
            payload["system"] = system
        if options.temperature is not None:
            payload["temperature"] = options.temperature

        tools = self.build_tools(request)
        if tools is not None:
            payload["tools"], payload["tool_choice"] = tools
        return payload

    def parse_response(self, data: dict[str, Any]) -> ProviderResponse:
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise self._unexpected("missing content blocks")

        text = ""
        tool_use = next((b for b in blocks if isinstance(b, dict) and b.get("type") == "tool_use"), None)
        if tool_use is not None:
            text = json.dumps(tool_use.get("input", {}), indent=2)
        elif blocks and isinstance(blocks[0], dict) and blocks[0].get("type") == "text":
            text = blocks[0].get("text", "")

        usage = None
        if isinstance(data.get("usage"), dict):
            usage = Usage(
                input_tokens=data["usage"].get("input_tokens", 0),
                output_tokens=data["usage"].get("output_tokens", 0),
            )
        return ProviderResponse(content=text, model=data.get("model"), usage=usage)
