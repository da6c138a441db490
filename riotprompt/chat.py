"""
Provider-neutral chat request objects.
"""
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .constants import CHAT_ROLES

Role = Literal["system", "developer", "user", "assistant"]

# Any model identifier; unknown names fall back to the default model config
Model = str


@dataclass
class Message:
    """A single chat message."""
    role: Role
    content: str
    name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass
class ChatRequest:
    """An ordered list of messages plus optional model and response format.

    Attributes:
        messages: Messages in send order.
        model: Target model name.
        response_format: Structured-output descriptor. For JSON Schema output
            this is ``{"type": "json_schema", "json_schema": {"name": ...,
            "description": ..., "schema": {...}}}``.
    """
    messages: list[Message] = field(default_factory=list)
    model: Optional[Model] = None
    response_format: Optional[dict[str, Any]] = None

    def add_message(self, message: Message) -> "ChatRequest":
        """Append a message.

        Raises:
            ValueError: If the message role is not a chat role.
        """
        if message.role not in CHAT_ROLES:
            raise ValueError(
                f"Invalid role '{message.role}'. Expected one of: {', '.join(CHAT_ROLES)}"
            )
        self.messages.append(message)
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"messages": [m.to_dict() for m in self.messages]}
        if self.model is not None:
            data["model"] = self.model
        if self.response_format is not None:
            data["response_format"] = self.response_format
        return data


def create_request(model: Optional[Model] = None, messages: Optional[list[Message]] = None,
                   response_format: Optional[dict[str, Any]] = None) -> ChatRequest:
    request = ChatRequest(model=model, response_format=response_format)
    for message in messages or []:
        request.add_message(message)
    return request


def json_schema_format(
    schema: Any,
    name: str = "response",
    description: Optional[str] = None,
    strict: Optional[bool] = None,
) -> dict[str, Any]:
    """Build a JSON Schema response-format descriptor.

    The schema is stored as given; providers that cannot use it report the
    problem when the request is adapted.
    """
    json_schema: dict[str, Any] = {"name": name, "schema": schema}
    if description is not None:
        json_schema["description"] = description
    if strict is not None:
        json_schema["strict"] = strict
    return {"type": "json_schema", "json_schema": json_schema}


def is_json_schema_format(response_format: Any) -> bool:
    return isinstance(response_format, dict) and response_format.get("type") == "json_schema"


@dataclass
class Usage:
    """Token usage reported by a provider."""
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class ProviderResponse:
    """Normalized provider reply.

    Attributes:
        content: Response text. For forced structured output this is the
            structured data as pretty-printed JSON.
        model: Model that produced the response.
        usage: Token usage, when the provider reports it.
    """
    content: str
    model: Optional[str] = None
    usage: Optional[Usage] = None
