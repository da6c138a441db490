"""
Formatter - renders Sections to text and Prompts to ChatRequests.

Two separator styles are supported:

- ``tag``: ``<Title>`` and ``</Title>`` lines around the section body
- ``markdown``: a ``#`` heading sized by nesting depth, capped at six

Areas (the top-level Persona, Instructions, Context and Content sections) use
``area_separator``; everything nested inside them uses ``section_separator``.
Items are joined with blank lines in their stored order. The formatter never
modifies the sections it reads.
"""
import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Optional, Union

from .chat import ChatRequest, Message, Model
from .items import Section, Weighted
from .logger import wrap_logger
from .model_config import ModelRegistry, get_model_registry
from .prompt import Prompt

SectionSeparator = Literal["tag", "markdown"]

ITEM_SEPARATOR = "\n\n"
MAX_HEADING_DEPTH = 6


@dataclass(frozen=True)
class FormatOptions:
    """Rendering options.

    Attributes:
        area_separator: Style for top-level areas.
        section_separator: Style for nested sections.
        section_indentation: Indent tag-style bodies by two spaces.
        section_title_prefix: Text placed before every section title.
        section_title_separator: Placed between the prefix and the title.
        section_depth: Depth offset for top-level areas.
    """
    area_separator: SectionSeparator = "tag"
    section_separator: SectionSeparator = "markdown"
    section_indentation: bool = False
    section_title_prefix: Optional[str] = None
    section_title_separator: str = ":"
    section_depth: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FormatOptions":
        """Build options from a plain dict, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        options = cls(**known)
        for style in (options.area_separator, options.section_separator):
            if style not in ("tag", "markdown"):
                raise ValueError(f"Unknown section separator '{style}'. Expected 'tag' or 'markdown'")
        return options


DEFAULT_FORMAT_OPTIONS = FormatOptions()


class Formatter:
    """Renders prompts for a target model.

    Example:
        formatter = Formatter()
        request = formatter.format_prompt("gpt-4o", prompt)
        request.to_dict()
    """

    def __init__(
        self,
        format_options: Optional[FormatOptions] = None,
        model_registry: Optional[ModelRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.options = format_options or DEFAULT_FORMAT_OPTIONS
        self._registry = model_registry
        self._logger = wrap_logger(logger, "Formatter")

    @property
    def model_registry(self) -> ModelRegistry:
        return self._registry or get_model_registry()

    def _title(self, title: str) -> str:
        prefix = self.options.section_title_prefix
        if prefix:
            return f"{prefix}{self.options.section_title_separator} {title}"
        return title

    def _indent(self, text: str) -> str:
        return "\n".join(f"  {line}" if line else line for line in text.split("\n"))

    def _render(self, section: Section[Any], depth: int, style: SectionSeparator) -> str:
        body = self.format_array(section.items, depth + 1)
        if not section.title:
            return body

        title = self._title(section.title)
        if style == "tag":
            if self.options.section_indentation and body:
                body = self._indent(body)
            if not body:
                return f"<{title}>\n</{title}>"
            return f"<{title}>\n{body}\n</{title}>"

        heading = "#" * min(max(depth, 1), MAX_HEADING_DEPTH) + f" {title}"
        return f"{heading}\n\n{body}" if body else heading

    def format(self, item: Union[Weighted, Section[Any]], depth: int = 1) -> str:
        """Render a single item or nested section."""
        if isinstance(item, Section):
            return self.format_section(item, depth)
        return item.text

    def format_array(self, items: Iterable[Union[Weighted, Section[Any]]], depth: int = 1) -> str:
        """Render items in order, separated by blank lines."""
        parts = [self.format(item, depth) for item in items]
        return ITEM_SEPARATOR.join(part for part in parts if part)

    def format_section(self, section: Section[Any], depth: int = 1) -> str:
        """Render a nested section with the section separator style."""
        return self._render(section, depth, self.options.section_separator)

    def format_area(self, section: Section[Any]) -> str:
        """Render a top-level area with the area separator style."""
        return self._render(section, self.options.section_depth + 1, self.options.area_separator)

    def format_persona(self, model: Optional[Model], persona: Optional[Section[Any]]) -> Optional[Message]:
        """Render the persona as a system or developer message.

        Returns:
            The persona message, or None when there is no persona text.
        """
        if persona is None or persona.is_empty():
            return None
        role = self.model_registry.get_persona_role(model)
        return Message(role=role, content=self.format_area(persona))

    def format_prompt(self, model: Optional[Model], prompt: Prompt) -> ChatRequest:
        """Render a prompt into a provider-neutral chat request.

        The persona becomes the first message when present. Instructions,
        Context and Content follow in that order as one user message.
        """
        request = ChatRequest(
            model=model,
            response_format=copy.deepcopy(prompt.response_format),
        )

        persona = self.format_persona(model, prompt.persona)
        if persona is not None:
            request.add_message(persona)

        parts = [
            self.format_area(section)
            for section in (prompt.instructions, prompt.contexts, prompt.contents)
            if section is not None and not section.is_empty()
        ]
        request.add_message(Message(role="user", content=ITEM_SEPARATOR.join(parts)))

        self._logger.debug(
            f"Formatted prompt for {model or 'default model'} with {len(request.messages)} messages"
        )
        return request


def create_formatter(
    format_options: Optional[FormatOptions] = None,
    model_registry: Optional[ModelRegistry] = None,
    logger: Optional[logging.Logger] = None,
) -> Formatter:
    return Formatter(format_options=format_options, model_registry=model_registry, logger=logger)
