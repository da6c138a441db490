"""
Filesystem loader - turns context directories into Sections.

Each input directory becomes one Section:

1. ``context.md``, when present, provides the section title (its leading
   heading, or the directory name) and its remaining body as the first item.
2. Every other regular file that survives the ignore patterns becomes a
   nested Section. Markdown files with a leading heading use it as the title;
   everything else is titled by file name. The file content is one item.

Directories are not recursed into. A failure in one directory is logged and
the remaining directories still load.
"""
import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Pattern, Sequence, Union

from .constants import CONTEXT_FILE_NAME, DEFAULT_IGNORE_PATTERNS
from .errors import FileReadError, create_safe_error
from .items import Section, Weighted, create_section, merge_parameters
from .logger import wrap_logger
from .parser import extract_first_header, remove_first_header
from .safe_regex import SafeRegex


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        raise FileReadError(str(path), reason) from e


def _list_entries(directory: Path) -> list[str]:
    # sorted so the section order does not depend on the filesystem
    return sorted(entry.name for entry in directory.iterdir())


class Loader:
    """Loads context directories into Sections.

    Example:
        loader = Loader(parameters={"project": "riot"})
        sections = await loader.load(["./context"])
    """

    def __init__(
        self,
        ignore_patterns: Optional[Sequence[str]] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        item_type: type[Weighted] = Weighted,
    ) -> None:
        """Initialize the loader.

        Args:
            ignore_patterns: Regex or glob patterns for entries to skip.
                Defaults to dotfiles and common binary/media extensions.
            parameters: Substitution values for loaded text.
            logger: Optional logger; a "Loader" child logger is derived from it.
            item_type: Leaf class for loaded items.
        """
        self._logger = wrap_logger(logger, "Loader")
        self._parameters: dict[str, Any] = dict(parameters or {})
        self._item_type = item_type
        self.ignore_patterns: list[str] = list(
            DEFAULT_IGNORE_PATTERNS if ignore_patterns is None else ignore_patterns
        )
        self._ignore_regexes = self._compile_ignore_patterns(self.ignore_patterns)

    def _compile_ignore_patterns(self, patterns: Iterable[str]) -> list[Pattern[str]]:
        """Compile ignore patterns, dropping any that are unsafe or unusable."""
        def on_block(message: str, pattern: str) -> None:
            self._logger.warning(
                f"Blocked unsafe ignore pattern: {message} (pattern length {len(pattern)})"
            )

        def on_warning(message: str, pattern: str) -> None:
            self._logger.debug(f"Regex warning: {message}")

        safe_regex = SafeRegex(on_block=on_block, on_warning=on_warning)
        compiled: list[Pattern[str]] = []

        for pattern in patterns:
            result = safe_regex.create(pattern, re.IGNORECASE)
            if result.safe and result.regex is not None:
                compiled.append(result.regex)
                continue

            if result.reason != "invalid_syntax":
                # blocked patterns match nothing
                continue

            glob_result = safe_regex.glob_to_regex(pattern, re.IGNORECASE)
            if glob_result.safe and glob_result.regex is not None:
                compiled.append(glob_result.regex)
                continue

            self._logger.warning(
                f"Invalid ignore pattern '{pattern}': {result.error or glob_result.error}"
            )

        return compiled

    def is_ignored(self, name: str, full_path: str) -> bool:
        """Check an entry against the ignore patterns.

        Args:
            name: Entry file name.
            full_path: Resolved absolute path of the entry.
        """
        return any(
            regex.search(name) or regex.search(full_path)
            for regex in self._ignore_regexes
        )

    def _section(self, title: str, options: dict[str, Any]) -> Section[Any]:
        return create_section(
            title=title,
            weight=options["weight"],
            item_weight=options["item_weight"],
            parameters=options["parameters"],
            item_type=self._item_type,
        )

    def _load_directory(self, directory: Path, options: dict[str, Any]) -> Section[Any]:
        dir_name = directory.name or str(directory)
        self._logger.debug(f"Processing context directory {dir_name}")

        context_file = directory / CONTEXT_FILE_NAME
        if context_file.is_file():
            self._logger.debug(f"Found {CONTEXT_FILE_NAME} in {dir_name}")
            text = _read_text(context_file)
            header = extract_first_header(text)
            section = self._section(header or dir_name, options)
            body = remove_first_header(text) if header else text
            if body.strip():
                section.add(body)
        else:
            section = self._section(dir_name, options)

        for name in _list_entries(directory):
            if name == CONTEXT_FILE_NAME:
                continue
            path = directory / name
            if self.is_ignored(name, str(path.resolve())):
                self._logger.debug(f"Ignoring {name}")
                continue
            if not path.is_file():
                continue

            try:
                content = _read_text(path)
            except FileReadError as e:
                self._logger.warning(f"Skipping unreadable file: {e}")
                continue

            title = name
            if name.endswith(".md"):
                header = extract_first_header(content)
                if header:
                    title = header
                    content = remove_first_header(content)

            self._logger.debug(f"Processing file {name} in {dir_name}")
            file_section = self._section(title, options)
            if content.strip():
                file_section.add(content)
            section.add(file_section)

        return section

    async def _load_one(self, directory: Union[str, Path], options: dict[str, Any]) -> Optional[Section[Any]]:
        path = Path(directory)
        try:
            return await asyncio.to_thread(self._load_directory, path, options)
        except Exception as e:
            safe_error = create_safe_error(
                e, {"operation": "load", "directory": os.path.basename(str(path))}
            )
            self._logger.warning(f"Error processing context directory: {safe_error}")
            return None

    async def load(
        self,
        directories: Optional[Sequence[Union[str, Path]]] = None,
        *,
        weight: Optional[float] = None,
        item_weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        concurrent: bool = False,
    ) -> list[Section[Any]]:
        """Load one Section per directory.

        Args:
            directories: Context directories, in the desired output order.
            weight: Weight for every created section.
            item_weight: Weight for every created item.
            parameters: Per-call parameters, overriding the loader's.
            concurrent: Process directories concurrently.

        Returns:
            Sections in input order. Directories that fail are left out.
        """
        if not directories:
            self._logger.debug("No context directories provided")
            return []

        options = {
            "weight": weight,
            "item_weight": item_weight,
            "parameters": merge_parameters(self._parameters, parameters),
        }

        if concurrent:
            results = await asyncio.gather(
                *(self._load_one(directory, options) for directory in directories)
            )
        else:
            results = [await self._load_one(directory, options) for directory in directories]

        return [section for section in results if section is not None]


def create_loader(
    ignore_patterns: Optional[Sequence[str]] = None,
    parameters: Optional[Mapping[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
    item_type: type[Weighted] = Weighted,
) -> Loader:
    return Loader(
        ignore_patterns=ignore_patterns,
        parameters=parameters,
        logger=logger,
        item_type=item_type,
    )
