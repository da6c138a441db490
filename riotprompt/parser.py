"""
Markdown parser - turns markdown text into a Section tree.

The parser walks the input line by line:

- ATX headings (``#`` to ``######``) open a section at their depth, closing
  any open sections at the same or greater depth first. The heading text is
  the section title and is never repeated as an item.
- Consecutive plain lines form one paragraph item; a blank line ends it.
- Every bullet (``-``, ``*``) or numbered (``1.``) line is its own item.
  Indented plain lines directly after a list line continue that item.
- Fenced code blocks are kept verbatim as a single item.

Content before the first heading lands in an implicit top-level section.
``{{placeholder}}`` tokens are substituted from the parser's parameters as
items and titles are created; unknown placeholders are left as written.
"""
import asyncio
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .errors import FileReadError
from .items import Section, Weighted, apply_parameters, create_section
from .logger import wrap_logger


class ParserState(Enum):
    """What the parser is currently accumulating."""
    SECTION = "section"
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"


_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)\s*$")
_CLOSING_SEQUENCE = re.compile(r"\s+#+$")
_FENCE_PATTERN = re.compile(r"^\s*(`{3,}|~{3,})")


def _heading_title(raw: str) -> str:
    """Strip an optional closing ``#`` sequence from heading text."""
    stripped = _CLOSING_SEQUENCE.sub("", raw).strip()
    return stripped or raw.strip()


def _find_first_heading(lines: list[str]) -> Optional[tuple[int, str]]:
    """Locate the first heading line outside fenced code blocks."""
    fence: Optional[str] = None
    for index, line in enumerate(lines):
        fence_match = _FENCE_PATTERN.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            continue
        if fence is not None:
            continue
        match = _HEADING_PATTERN.match(line)
        if match:
            return index, _heading_title(match.group(2))
    return None


def extract_first_header(markdown_text: str) -> Optional[str]:
    """Return the title of the first heading in the text, if any.

    Headings inside fenced code blocks are not counted.

    Example:
        >>> extract_first_header("Intro\\n\\n# Overview\\nBody")
        'Overview'
    """
    found = _find_first_heading(markdown_text.splitlines())
    return found[1] if found else None


def remove_first_header(markdown_text: str) -> str:
    """Remove the first heading line and trim the remaining text.

    Text without a heading is returned unchanged.
    """
    lines = markdown_text.splitlines()
    found = _find_first_heading(lines)
    if found is None:
        return markdown_text
    index = found[0]
    return "\n".join(lines[:index] + lines[index + 1:]).strip()


class Parser:
    """Parses markdown into Sections.

    Example:
        parser = Parser(parameters={"name": "Ada"})
        section = parser.parse("# Greeting\\nHello {{name}}.")
        section.title        # "Greeting"
        section.items[0].text  # "Hello Ada."
    """

    _LIST_PATTERN = re.compile(r"^\s*(?:[-*]|\d+\.)\s+(.*)$")

    def __init__(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        item_type: type[Weighted] = Weighted,
    ) -> None:
        """Initialize the parser.

        Args:
            parameters: Values for placeholder substitution.
            logger: Optional logger; a "Parser" child logger is derived from it.
            item_type: Leaf class for parsed items.
        """
        self._parameters: dict[str, Any] = dict(parameters or {})
        self._logger = wrap_logger(logger, "Parser")
        self._item_type = item_type

    @property
    def parameters(self) -> dict[str, Any]:
        return dict(self._parameters)

    def _new_section(self, title: Optional[str]) -> Section[Any]:
        if title is not None:
            title = apply_parameters(title, self._parameters)
        return create_section(
            title=title,
            parameters=self._parameters,
            item_type=self._item_type,
        )

    def parse(self, markdown_text: str, title: Optional[str] = None) -> Section[Any]:
        """Parse markdown text into a Section.

        Args:
            markdown_text: The markdown input.
            title: Title for the top-level section. When omitted and the
                document is a single top-level heading section with no
                content before it, that section is returned directly.

        Returns:
            The root Section.
        """
        root = self._new_section(title)
        # (depth, section); the root sits at depth 0
        stack: list[tuple[int, Section[Any]]] = [(0, root)]
        buffer: list[str] = []
        state = ParserState.SECTION
        fence = ""

        def flush() -> None:
            nonlocal state
            if buffer:
                text = "\n".join(buffer)
                if text.strip():
                    stack[-1][1].add(text)
                buffer.clear()
            state = ParserState.SECTION

        for line in markdown_text.splitlines():
            if state is ParserState.CODE:
                buffer.append(line)
                if line.strip().startswith(fence):
                    flush()
                continue

            heading = _HEADING_PATTERN.match(line)
            if heading:
                flush()
                depth = len(heading.group(1))
                while stack[-1][0] >= depth:
                    stack.pop()
                section = self._new_section(_heading_title(heading.group(2)))
                stack[-1][1].add(section)
                stack.append((depth, section))
                continue

            if not line.strip():
                flush()
                continue

            fence_match = _FENCE_PATTERN.match(line)
            if fence_match:
                flush()
                fence = fence_match.group(1)
                buffer.append(line)
                state = ParserState.CODE
                continue

            list_item = self._LIST_PATTERN.match(line)
            if list_item:
                flush()
                buffer.append(list_item.group(1).strip())
                state = ParserState.LIST
                continue

            if state is ParserState.LIST:
                if line[0].isspace():
                    buffer.append(line.strip())
                    continue
                flush()

            state = ParserState.PARAGRAPH
            buffer.append(line.strip())

        if state is ParserState.CODE:
            self._logger.debug("Unterminated code fence, keeping block as-is")
        flush()

        if title is None and len(root.items) == 1 and isinstance(root.items[0], Section):
            return root.items[0]
        return root

    async def parse_file(self, path: Union[str, Path], title: Optional[str] = None) -> Section[Any]:
        """Read a markdown file and parse it.

        Raises:
            FileReadError: If the file cannot be read or decoded.
        """
        file_path = Path(path)
        self._logger.debug(f"Parsing markdown file {file_path.name}")
        try:
            text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            raise FileReadError(str(file_path), reason) from e
        return self.parse(text, title=title)


def create_parser(
    parameters: Optional[Mapping[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
    item_type: type[Weighted] = Weighted,
) -> Parser:
    return Parser(parameters=parameters, logger=logger, item_type=item_type)


def parse(markdown_text: str, parameters: Optional[Mapping[str, Any]] = None,
          title: Optional[str] = None) -> Section[Any]:
    """Parse markdown with a one-off parser."""
    return Parser(parameters=parameters).parse(markdown_text, title=title)
