"""
Builder - fluent assembly of a Prompt from text, files and directories.

Calls are recorded in order and resolved by `Builder.build`, which reads any
files and directories involved. Markdown files go through the Parser,
directories through the Loader; relative paths resolve against the builder's
base path.

Example:
    prompt = await (
        Builder(base_path="./prompts", parameters={"language": "Python"})
        .add_persona("You are a senior {{language}} reviewer.")
        .add_instruction_path("instructions.md")
        .load_context(["context"])
        .set_response_format(schema={"type": "object"})
        .build()
    )
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from .chat import json_schema_format
from .constants import DEFAULT_IGNORE_PATTERNS
from .items import (
    Content,
    Context,
    Instruction,
    Section,
    Trait,
    Weighted,
    create_section,
    create_weighted,
    merge_parameters,
)
from .loader import Loader
from .logger import wrap_logger
from .parser import Parser
from .prompt import Prompt, create_prompt

PathLike = Union[str, Path]

# Item specs accepted by `Builder.add`: raw text or a mapping with one of
# "content", "path" or "directories", plus optional "title" and "weight"
ItemSpec = Union[str, Mapping[str, Any]]

Resolved = list[Union[Weighted, Section[Any]]]


@dataclass(frozen=True)
class Area:
    """A top-level prompt area."""
    name: str
    title: str
    item_type: type[Weighted]


PERSONA = Area("persona", "Persona", Trait)
INSTRUCTIONS = Area("instructions", "Instructions", Instruction)
CONTENTS = Area("contents", "Content", Content)
CONTEXTS = Area("contexts", "Context", Context)

AREAS = {area.name: area for area in (PERSONA, INSTRUCTIONS, CONTENTS, CONTEXTS)}


class Builder:
    """Collects prompt pieces and assembles them into a Prompt."""

    def __init__(
        self,
        base_path: PathLike = ".",
        parameters: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
    ) -> None:
        """Initialize the builder.

        Args:
            base_path: Directory that relative paths resolve against.
            parameters: Substitution values for every piece.
            logger: Optional logger; a "Builder" child logger is derived from it.
            ignore_patterns: Ignore patterns for directory loading.
        """
        self.base_path = Path(base_path)
        self._parameters: dict[str, Any] = dict(parameters or {})
        self._logger = wrap_logger(logger, "Builder")
        self._ignore_patterns = list(
            DEFAULT_IGNORE_PATTERNS if ignore_patterns is None else ignore_patterns
        )
        self._steps: list[tuple[str, Callable[[], Awaitable[Resolved]]]] = []
        self._response_format: Optional[dict[str, Any]] = None

    def resolve_path(self, path: PathLike) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.base_path / candidate

    def _parser(self, item_type: type[Weighted]) -> Parser:
        return Parser(parameters=self._parameters, logger=self._logger, item_type=item_type)

    def _loader(self, item_type: type[Weighted]) -> Loader:
        return Loader(
            ignore_patterns=self._ignore_patterns,
            parameters=self._parameters,
            logger=self._logger,
            item_type=item_type,
        )

    async def _resolve_path(
        self,
        path: PathLike,
        item_type: type[Weighted],
        title: Optional[str] = None,
        weight: Optional[float] = None,
    ) -> Resolved:
        resolved = self.resolve_path(path)
        if resolved.is_dir():
            sections = await self._loader(item_type).load([resolved], weight=weight)
            if title:
                return [create_section(title=title, items=sections, weight=weight, item_type=item_type)]
            return list(sections)

        section = await self._parser(item_type).parse_file(resolved)
        if title:
            section.title = title
        if weight is not None:
            section.weight = weight
        if section.title is None:
            # untitled documents contribute their items directly
            return list(section.items)
        return [section]

    async def _resolve_directories(
        self,
        directories: Sequence[PathLike],
        item_type: type[Weighted],
        title: Optional[str] = None,
        weight: Optional[float] = None,
    ) -> Resolved:
        paths = [self.resolve_path(directory) for directory in directories]
        sections = await self._loader(item_type).load(paths, weight=weight)
        if title:
            return [create_section(title=title, items=sections, weight=weight, item_type=item_type)]
        return list(sections)

    def _resolve_text(
        self,
        text: str,
        item_type: type[Weighted],
        title: Optional[str] = None,
        weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Resolved:
        merged = merge_parameters(self._parameters, parameters)
        if title:
            section = create_section(title=title, parameters=merged, item_type=item_type)
            return [section.add(text, weight=weight)]
        return [create_weighted(text, weight=weight, parameters=merged or None, item_type=item_type)]

    async def resolve(self, item: ItemSpec, item_type: type[Weighted]) -> Resolved:
        """Resolve an item spec into items and sections.

        Raises:
            ValueError: If a mapping names none of content, path or directories.
            TypeError: If the spec is neither a string nor a mapping.
        """
        if isinstance(item, str):
            return self._resolve_text(item, item_type)
        if not isinstance(item, Mapping):
            raise TypeError(f"Prompt items must be str or mapping, got {type(item).__name__}")

        title = item.get("title")
        weight = item.get("weight")
        if "content" in item:
            return self._resolve_text(item["content"], item_type, title, weight, item.get("parameters"))
        if "path" in item:
            return await self._resolve_path(item["path"], item_type, title, weight)
        if "directories" in item:
            return await self._resolve_directories(item["directories"], item_type, title, weight)
        raise ValueError("Prompt item mappings need one of 'content', 'path' or 'directories'")

    def add(self, area: str, item: ItemSpec) -> "Builder":
        """Queue an item spec for an area.

        Args:
            area: One of "persona", "instructions", "contents", "contexts".
            item: Raw text or a mapping item spec.
        """
        if area not in AREAS:
            raise ValueError(f"Unknown prompt area '{area}'. Expected one of: {', '.join(AREAS)}")
        item_type = AREAS[area].item_type

        async def step() -> Resolved:
            return await self.resolve(item, item_type)

        self._steps.append((area, step))
        return self

    def add_group(self, area: str, title: str, items: Sequence[ItemSpec]) -> "Builder":
        """Queue a titled sub-section built from several item specs."""
        item_type = AREAS[area].item_type

        async def step() -> Resolved:
            section = create_section(title=title, parameters=self._parameters, item_type=item_type)
            for item in items:
                section.add(await self.resolve(item, item_type))
            return [section]

        self._steps.append((area, step))
        return self

    def add_persona(self, text: str, weight: Optional[float] = None) -> "Builder":
        return self.add("persona", {"content": text, "weight": weight})

    def add_persona_path(self, path: PathLike) -> "Builder":
        return self.add("persona", {"path": path})

    def add_instruction(self, text: str, weight: Optional[float] = None) -> "Builder":
        return self.add("instructions", {"content": text, "weight": weight})

    def add_instruction_path(self, path: PathLike) -> "Builder":
        return self.add("instructions", {"path": path})

    def add_content(self, text: str, weight: Optional[float] = None) -> "Builder":
        return self.add("contents", {"content": text, "weight": weight})

    def add_content_path(self, path: PathLike) -> "Builder":
        return self.add("contents", {"path": path})

    def add_context(self, text: str, weight: Optional[float] = None) -> "Builder":
        return self.add("contexts", {"content": text, "weight": weight})

    def add_context_path(self, path: PathLike) -> "Builder":
        return self.add("contexts", {"path": path})

    def load_context(self, directories: Sequence[PathLike]) -> "Builder":
        """Queue context directories for the Loader."""
        return self.add("contexts", {"directories": list(directories)})

    def load_content(self, directories: Sequence[PathLike]) -> "Builder":
        """Queue content directories for the Loader."""
        return self.add("contents", {"directories": list(directories)})

    def set_response_format(
        self,
        response_format: Optional[dict[str, Any]] = None,
        *,
        schema: Optional[Any] = None,
        name: str = "response",
        description: Optional[str] = None,
    ) -> "Builder":
        """Set the structured-output descriptor.

        Either pass a complete descriptor, or a JSON Schema via ``schema``.
        """
        if schema is not None:
            response_format = json_schema_format(schema, name=name, description=description)
        self._response_format = response_format
        return self

    async def build(self) -> Prompt:
        """Resolve every queued piece and assemble the Prompt.

        Returns:
            The Prompt. Areas with nothing queued are None, except
            Instructions, which is always present.

        Raises:
            FileReadError: If a file passed by path cannot be read.
        """
        sections: dict[str, Section[Any]] = {}
        for area_name, step in self._steps:
            area = AREAS[area_name]
            if area_name not in sections:
                sections[area_name] = create_section(
                    title=area.title,
                    parameters=self._parameters,
                    item_type=area.item_type,
                )
            sections[area_name].add(await step())

        instructions = sections.get("instructions")
        if instructions is None:
            instructions = create_section(
                title=INSTRUCTIONS.title,
                parameters=self._parameters,
                item_type=Instruction,
            )
        self._logger.debug(f"Built prompt from {len(self._steps)} pieces")
        return create_prompt(
            instructions=instructions,
            persona=sections.get("persona"),
            contents=sections.get("contents"),
            contexts=sections.get("contexts"),
            response_format=self._response_format,
        )


def create_builder(
    base_path: PathLike = ".",
    parameters: Optional[Mapping[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
    ignore_patterns: Optional[Sequence[str]] = None,
) -> Builder:
    return Builder(base_path=base_path, parameters=parameters, logger=logger,
                   ignore_patterns=ignore_patterns)
