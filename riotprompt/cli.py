"""
Command line entry point for riotprompt.

Commands:
    riotprompt process <path>   Format a prompt and print or save it
    riotprompt execute <path>   Format a prompt and send it to the model

A prompt path is either a directory or a serialized ``.json``/``.xml``
prompt. A prompt directory holds ``persona/`` or ``persona.md``,
``instructions/`` or ``instructions.md`` (required) and an optional
``context/`` directory.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.rule import Rule
from rich.text import Text

from .chat import ChatRequest
from .config import RiotConfig, get_config
from .constants import LIBRARY_DESCRIPTION, LIBRARY_NAME, LIBRARY_VERSION
from .errors import RiotPromptError, format_error_for_display
from .execution import ExecutionOptions, execute
from .formatter import FormatOptions, Formatter
from .items import Context, Instruction, Section, Trait, Weighted, create_section
from .loader import Loader
from .logger import configure_logging
from .model_config import get_model_family
from .prompt import Prompt, create_prompt
from .serializer import from_json, from_xml, to_json, to_xml


console = Console()
error_console = Console(stderr=True)


async def _load_area(
    directory: Path,
    file: Optional[Path],
    title: str,
    item_type: type[Weighted],
    loader: Loader,
) -> Optional[Section]:
    """Load an area from a directory, or from a single markdown file."""
    if directory.is_dir():
        sections = await loader.load([directory])
        if not sections:
            return None
        return create_section(title=title, items=sections, item_type=item_type)

    if file is not None and file.is_file():
        text = await asyncio.to_thread(file.read_text, encoding="utf-8")
        section = create_section(title=title, item_type=item_type)
        if text.strip():
            section.add(text)
        return section
    return None


async def load_prompt_from_directory(path: Path, loader: Optional[Loader] = None) -> Prompt:
    """Assemble a Prompt from a prompt directory.

    Raises:
        RiotPromptError: If the directory has no instructions.
    """
    loader = loader or Loader()

    persona = await _load_area(path / "persona", path / "persona.md", "Persona", Trait, loader)
    instructions = await _load_area(
        path / "instructions", path / "instructions.md", "Instructions", Instruction, loader
    )
    if instructions is None:
        raise RiotPromptError("instructions (directory or .md file) is required")
    contexts = await _load_area(path / "context", None, "Context", Context, loader)

    return create_prompt(instructions=instructions, persona=persona, contexts=contexts)


async def load_prompt(path: Path, loader: Optional[Loader] = None) -> Prompt:
    """Load a prompt from a directory or a serialized file.

    Raises:
        FileNotFoundError: If the path does not exist.
        RiotPromptError: If the file type is unsupported or invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Prompt path not found: {path.name}")
    if path.is_dir():
        return await load_prompt_from_directory(path, loader)

    content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    if path.suffix == ".json":
        return from_json(content)
    if path.suffix == ".xml":
        return from_xml(content)
    raise RiotPromptError("Supported file formats are .json and .xml")


def render_request(request: ChatRequest) -> str:
    """Plain-text view of a chat request, one block per message."""
    return "\n\n".join(
        f"--- ROLE: {message.role} ---\n{message.content}" for message in request.messages
    )


def render_output(prompt: Prompt, model: str, output_format: str, config: RiotConfig) -> str:
    if output_format == "json":
        return to_json(prompt)
    if output_format == "xml":
        return to_xml(prompt)
    formatter = Formatter(FormatOptions.from_dict(config.format))
    return render_request(formatter.format_prompt(model, prompt))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog=LIBRARY_NAME,
        description=LIBRARY_DESCRIPTION
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"{LIBRARY_NAME} {LIBRARY_VERSION}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    process = subparsers.add_parser(
        "process",
        help="Format a prompt (directory, JSON or XML) and output it"
    )
    process.add_argument("path", type=str, help="Prompt directory or serialized prompt file")
    process.add_argument("-m", "--model", type=str, help="Model to format for")
    process.add_argument(
        "--format",
        dest="output_format",
        choices=["text", "json", "xml"],
        default="text",
        help="Output format"
    )
    process.add_argument("-o", "--output", type=str, help="Write output to a file")

    run = subparsers.add_parser(
        "execute",
        help="Format a prompt and send it to the model"
    )
    run.add_argument("path", type=str, help="Prompt directory or serialized prompt file")
    run.add_argument("-m", "--model", type=str, help="Model to execute with")
    run.add_argument("-k", "--key", type=str, help="API key (defaults to the provider's env var)")
    run.add_argument("-t", "--temperature", type=float, help="Sampling temperature")
    run.add_argument("--max-tokens", type=int, help="Maximum tokens to generate")

    return parser.parse_args(argv)


async def process_command(args: argparse.Namespace, config: RiotConfig) -> int:
    model = args.model or config.default_model
    console.print(f"Processing prompt from: [bold]{args.path}[/bold]")
    console.print(f"Using model: [cyan]{model}[/cyan]")

    prompt = await load_prompt(Path(args.path), Loader(ignore_patterns=config.ignore_patterns))
    output = render_output(prompt, model, args.output_format, config)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        console.print(f"[green]Output written to {args.output}[/green]")
    else:
        console.print(Rule("Result"))
        console.print(Text(output))
    return 0


async def execute_command(args: argparse.Namespace, config: RiotConfig) -> int:
    model = args.model or config.default_model
    console.print(f"Executing prompt from: [bold]{args.path}[/bold]")
    console.print(f"Using model: [cyan]{model}[/cyan]")

    prompt = await load_prompt(Path(args.path), Loader(ignore_patterns=config.ignore_patterns))
    formatter = Formatter(FormatOptions.from_dict(config.format))
    request = formatter.format_prompt(model, prompt)

    options = ExecutionOptions(
        api_key=args.key or config.get_api_key(get_model_family(model)),
        model=model,
        temperature=args.temperature if args.temperature is not None else config.temperature,
        max_tokens=args.max_tokens or config.max_tokens,
    )
    result = await execute(request, options)

    console.print(Rule("Response"))
    console.print(Text(result.content))
    if result.usage:
        console.print(Rule("Usage"))
        console.print(f"Input Tokens: {result.usage.input_tokens}")
        console.print(f"Output Tokens: {result.usage.output_tokens}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        enabled=True if args.verbose else None,
    )

    try:
        config = get_config()
        if args.command == "process":
            return asyncio.run(process_command(args, config))
        return asyncio.run(execute_command(args, config))
    except (RiotPromptError, OSError, ValueError) as e:
        error_console.print(Text.assemble(("Error: ", "red"), format_error_for_display(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
