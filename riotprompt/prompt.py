"""
Prompt - the aggregate of persona, instructions, content and context.
"""
from dataclasses import dataclass
from typing import Any, Optional

from .items import Section


@dataclass
class Prompt:
    """A complete prompt ready for formatting.

    Attributes:
        instructions: What the model should do. Required.
        persona: Who the model should be.
        contents: Material the model should operate on.
        contexts: Background information.
        response_format: Optional structured-output descriptor, e.g.
            ``{"type": "json_schema", "json_schema": {...}}``.
    """
    instructions: Section[Any]
    persona: Optional[Section[Any]] = None
    contents: Optional[Section[Any]] = None
    contexts: Optional[Section[Any]] = None
    response_format: Optional[dict[str, Any]] = None

    def areas(self) -> list[tuple[str, Optional[Section[Any]]]]:
        """Named areas in formatting order."""
        return [
            ("persona", self.persona),
            ("instructions", self.instructions),
            ("contexts", self.contexts),
            ("contents", self.contents),
        ]


def create_prompt(
    instructions: Optional[Section[Any]],
    persona: Optional[Section[Any]] = None,
    contents: Optional[Section[Any]] = None,
    contexts: Optional[Section[Any]] = None,
    response_format: Optional[dict[str, Any]] = None,
) -> Prompt:
    """Create a Prompt.

    Raises:
        ValueError: If no instructions section is given.
    """
    if instructions is None:
        raise ValueError("A prompt requires an instructions section")
    return Prompt(
        instructions=instructions,
        persona=persona,
        contents=contents,
        contexts=contexts,
        response_format=response_format,
    )
