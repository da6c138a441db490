"""
Base classes for provider adapters.

A ProviderAdapter turns a provider-neutral ChatRequest into the JSON body a
provider's API expects and turns the provider's JSON reply back into a
ProviderResponse. Structured-output schemas are translated by a
SchemaAdapter, one per provider dialect.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..chat import ChatRequest, ProviderResponse, is_json_schema_format
from ..errors import ExecutionError, SchemaTranslationError


@dataclass
class PayloadOptions:
    """Per-call generation settings merged into a payload."""
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class StructuredOutput:
    """The parts of a response-format descriptor adapters care about."""
    kind: str
    name: str = "response"
    description: Optional[str] = None
    schema: Any = None


def read_response_format(response_format: Optional[dict[str, Any]]) -> Optional[StructuredOutput]:
    """Interpret a response-format descriptor.

    Returns:
        A StructuredOutput for ``json_schema`` and ``json_object`` formats,
        otherwise None.
    """
    if not response_format:
        return None
    if is_json_schema_format(response_format):
        json_schema = response_format.get("json_schema") or {}
        return StructuredOutput(
            kind="json_schema",
            name=json_schema.get("name") or "response",
            description=json_schema.get("description"),
            schema=json_schema.get("schema"),
        )
    if response_format.get("type") == "json_object":
        return StructuredOutput(kind="json_object")
    return None


def split_system(request: ChatRequest) -> tuple[str, list[tuple[str, str]]]:
    """Separate system/developer content from the conversation turns.

    Returns:
        The system contents joined by blank lines, and the remaining
        (role, content) turns in order.
    """
    system_parts: list[str] = []
    turns: list[tuple[str, str]] = []
    for message in request.messages:
        if message.role in ("system", "developer"):
            if message.content.strip():
                system_parts.append(message.content.strip())
        else:
            turns.append((message.role, message.content))
    return "\n\n".join(system_parts), turns


class SchemaAdapter(ABC):
    """Translates a JSON Schema into a provider's schema dialect."""

    provider: str = ""

    def require_object(self, schema: Any) -> dict[str, Any]:
        """Reject schemas that are not JSON objects.

        Raises:
            SchemaTranslationError: If the schema is not a dict.
        """
        if not isinstance(schema, dict):
            raise SchemaTranslationError(
                self.provider,
                f"Structured output schema must be a JSON object, got {type(schema).__name__}",
            )
        return schema

    @abstractmethod
    def adapt_schema(self, schema: Any) -> Any:
        """Return the provider-native form of a JSON Schema."""
        pass


class ProviderAdapter(ABC):
    """Builds provider payloads and parses provider replies."""

    name: str = ""
    schema_adapter: SchemaAdapter

    @abstractmethod
    def build_payload(
        self,
        request: ChatRequest,
        options: Optional[PayloadOptions] = None,
    ) -> dict[str, Any]:
        """Build the JSON request body for the provider.

        Raises:
            SchemaTranslationError: If the response format cannot be expressed.
        """
        pass

    @abstractmethod
    def parse_response(self, data: dict[str, Any]) -> ProviderResponse:
        """Normalize a provider JSON reply.

        Raises:
            ExecutionError: If the reply does not have the expected shape.
        """
        pass

    def _unexpected(self, detail: str) -> ExecutionError:
        return ExecutionError(f"Unexpected {self.name} response: {detail}", {"provider": self.name})
