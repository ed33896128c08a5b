"""CLI entry point and commands.

Provides the command line interface with commands for:
- schemas: Print the schemas of a registry's tools
- dispatch: Execute the tool calls in a response document
- stream: Feed a response file through the streaming consumer in chunks
- call: Invoke one tool directly
"""

import importlib
import json
import sys
from collections.abc import Iterator
from contextlib import AbstractContextManager, nullcontext
from enum import StrEnum
from typing import Annotated, Any, BinaryIO, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from toolcalls.exceptions import ConfigurationError, ToolNotFoundError
from toolcalls.logging_config import configure_logging
from toolcalls.settings import get_settings
from toolcalls.streaming.consumer import chunk_source
from toolcalls.streaming.dispatcher import DispatchMode, ExecutionOutcome
from toolcalls.tools.registry import ToolRegistry

app = typer.Typer(
    name="toolcalls",
    help="Discover and execute tool calls in LLM API responses",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


RegistryOption = Annotated[
    str,
    typer.Option("--registry", "-r", help="Registry to use, as 'module:attribute'"),
]
ModeOption = Annotated[
    Optional[DispatchMode],  # noqa: UP007
    typer.Option("--mode", "-m", help="Dispatch mode (defaults to DISPATCH_MODE setting)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print outcomes as JSON instead of a table"),
]


def load_registry(ref: str) -> ToolRegistry:
    """Resolve a ``module:attribute`` reference to a ToolRegistry.

    The attribute may be a registry instance or a zero-argument factory
    returning one.

    Raises:
        ConfigurationError: The reference cannot be resolved to a registry.
    """
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Registry reference must look like 'module:attribute', got {ref!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import registry module {module_name!r}: {e}") from e

    target = getattr(module, attr, None)
    if callable(target):
        target = target()
    if not isinstance(target, ToolRegistry):
        raise ConfigurationError(f"{ref!r} is not a ToolRegistry")
    return target


def _registry_or_exit(ref: str) -> ToolRegistry:
    try:
        return load_registry(ref)
    except ConfigurationError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(2) from e


def _unreadable(path: str, e: OSError) -> typer.Exit:
    console.print(f"[red]Cannot read {escape(path)}: {escape(e.strerror or str(e))}[/red]")
    return typer.Exit(2)


def _read_document(path: str) -> Any:
    if path == "-":
        text = sys.stdin.read()
    else:
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise _unreadable(path, e) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {escape(path)}: {escape(str(e))}[/red]")
        raise typer.Exit(2) from e


def _open_binary(path: str) -> AbstractContextManager[BinaryIO]:
    if path == "-":
        return nullcontext(sys.stdin.buffer)
    try:
        return open(path, "rb")
    except OSError as e:
        raise _unreadable(path, e) from e


def _iter_file_chunks(stream: BinaryIO, size: int) -> Iterator[bytes]:
    while chunk := stream.read(size):
        yield chunk


def _outcome_table(outcomes: list[ExecutionOutcome]) -> Table:
    table = Table(title="Tool Calls", show_header=True)
    table.add_column("#", style="dim")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Result")

    for i, outcome in enumerate(outcomes, start=1):
        if outcome.ok:
            table.add_row(str(i), escape(outcome.name), "[green]ok[/green]", escape(json.dumps(outcome.result, default=str)))
        else:
            table.add_row(str(i), escape(outcome.name), "[red]error[/red]", escape(outcome.error or ""))
    return table


@app.callback()
def main(
    log_level: Annotated[
        Optional[LogLevel],  # noqa: UP007
        typer.Option("--log-level", help="Override the LOG_LEVEL setting"),
    ] = None,
) -> None:
    """Discover and execute tool calls in LLM API responses."""
    configure_logging(log_level.value if log_level else None)


@app.command()
def schemas(
    registry: RegistryOption,
    openai: Annotated[
        bool,
        typer.Option("--openai", help="Wrap schemas in the chat completions 'tools' format"),
    ] = False,
) -> None:
    """Print the schemas of every registered tool."""
    reg = _registry_or_exit(registry)
    docs = reg.tools_for_openai() if openai else reg.schemas()
    typer.echo(json.dumps(docs, indent=2))


@app.command()
def dispatch(
    path: Annotated[str, typer.Argument(help="Response JSON file ('-' for stdin)")],
    registry: RegistryOption,
    mode: ModeOption = None,
    as_json: JsonOption = False,
) -> None:
    """Execute every tool call found in a response document."""
    reg = _registry_or_exit(registry)
    outcomes = reg.process_response(_read_document(path), mode=mode)

    if as_json:
        typer.echo(json.dumps([o.to_dict() for o in outcomes], default=str))
    elif outcomes:
        console.print(_outcome_table(outcomes))
    else:
        console.print("[yellow]No tool calls found[/yellow]")

    if not all(o.ok for o in outcomes):
        raise typer.Exit(1)


@app.command()
def stream(
    path: Annotated[str, typer.Argument(help="Streamed response file ('-' for stdin)")],
    registry: RegistryOption,
    chunk_size: Annotated[
        Optional[int],  # noqa: UP007
        typer.Option("--chunk-size", "-c", min=1, help="Bytes per chunk (defaults to STREAM_CHUNK_SIZE)"),
    ] = None,
    mode: ModeOption = None,
    as_json: JsonOption = False,
) -> None:
    """Feed a response file through the streaming consumer chunk by chunk."""
    reg = _registry_or_exit(registry)
    size = chunk_size or get_settings().stream_chunk_size
    failed = 0

    def on_outcome(outcome: ExecutionOutcome) -> None:
        nonlocal failed
        if not outcome.ok:
            failed += 1
        if as_json:
            typer.echo(json.dumps(outcome.to_dict(), default=str))
        elif outcome.ok:
            console.print(f"[green]✓[/green] {escape(outcome.name)}: {escape(json.dumps(outcome.result, default=str))}")
        else:
            console.print(f"[red]✗[/red] {escape(outcome.name)}: {escape(outcome.error or '')}")

    with _open_binary(path) as source:
        delivered = reg.process_stream(chunk_source(_iter_file_chunks(source, size)), on_outcome, mode=mode)

    if not as_json:
        console.print(f"[dim]{delivered} tool call(s) executed[/dim]")
    if failed:
        raise typer.Exit(1)


@app.command()
def call(
    name: Annotated[str, typer.Argument(help="Tool name")],
    registry: RegistryOption,
    args: Annotated[
        str,
        typer.Option("--args", "-a", help="Arguments as a JSON document"),
    ] = "{}",
) -> None:
    """Invoke one tool directly and print its result."""
    reg = _registry_or_exit(registry)
    try:
        arguments = json.loads(args)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid --args JSON: {escape(str(e))}[/red]")
        raise typer.Exit(2) from e

    try:
        result = reg.invoke(name, arguments)
    except ToolNotFoundError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Tool {escape(name)} failed: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    typer.echo(json.dumps(result, default=str))
