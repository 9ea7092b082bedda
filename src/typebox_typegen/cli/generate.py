import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from typebox_typegen.core.emitter import generate as _generate
from typebox_typegen.core.errors import SchemaResolutionError
from typebox_typegen.core.source import CompilationContext
from typebox_typegen.watcher.watchfiles_adapter import WatchfilesWatcher, watch_directories

logger = logging.getLogger(__name__)
console = Console()


def parse_schema_pairs(values: list[str]) -> dict[str, str]:
    """Turn ``SchemaName=TypeName`` option values into an ordered request mapping."""
    request: dict[str, str] = {}
    for value in values:
        schema_name, separator, type_name = value.partition("=")
        schema_name, type_name = schema_name.strip(), type_name.strip()
        if not separator or not schema_name or not type_name:
            raise typer.BadParameter(f"Expected SchemaName=TypeName, got {value!r}", param_hint="--schema")
        request[schema_name] = type_name
    return request


def _emit(entry: str, request: dict[str, str], output: Path | None) -> CompilationContext:
    context = CompilationContext()
    result = _generate(entry, request, context)
    if output is None:
        console.print(result, markup=False, highlight=False, soft_wrap=True)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result + "\n", encoding="utf-8")
        console.print(f"[green]Wrote[/green] {len(request)} type(s) to {escape(str(output))}")
    return context


def _report(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")


async def _watch(entry: str, request: dict[str, str], output: Path, sources: list[Path]) -> None:
    """Regenerate ``output`` on source changes until cancelled.

    Generation runs in a worker thread. When a regeneration loads files from
    directories not yet watched, the watcher is restarted over the grown set.
    """
    directories = watch_directories(sources)
    while True:
        grown = asyncio.Event()
        pending: list[Path] = []

        async def _regenerate(paths: set[Path], grown: asyncio.Event = grown, pending: list[Path] = pending) -> None:
            try:
                context = await asyncio.to_thread(_emit, entry, request, output)
            except (SchemaResolutionError, OSError) as exc:
                _report(exc)
                return
            added = [d for d in watch_directories(context.loaded_paths) if d not in directories and d not in pending]
            if added:
                pending.extend(added)
                grown.set()

        watcher = WatchfilesWatcher(directories, _regenerate)
        await watcher.start()
        watching = asyncio.create_task(watcher.wait())
        growing = asyncio.create_task(grown.wait())
        try:
            await asyncio.wait({watching, growing}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            growing.cancel()
            await watcher.stop()
            watching.cancel()

        if watching.done() and not watching.cancelled():
            watching.result()
        if not grown.is_set():
            return
        directories = [*directories, *pending]
        logger.info("Watching %d more director(ies)", len(pending))


def generate(
    entry: Annotated[
        str, typer.Argument(help="Module reference of the entry schema file (e.g. @/schemas/v3.1/strict/openapi-document).")
    ],
    schema: Annotated[
        list[str],
        typer.Option("--schema", "-s", help="SchemaName=TypeName pair. Repeat for several; output follows this order."),
    ],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the types to this file.")] = None,
    watch: Annotated[bool, typer.Option(help="Regenerate the output file whenever a loaded source changes.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log resolution details.")] = False,
) -> None:
    """Generate TypeScript types from TypeBox schema declarations."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    if watch and output is None:
        console.print("[red]--watch requires --output.[/red]")
        raise typer.Exit(1)

    request = parse_schema_pairs(schema)
    try:
        context = _emit(entry, request, output)
    except (SchemaResolutionError, OSError) as exc:
        _report(exc)
        raise typer.Exit(1) from None

    if watch:
        assert output is not None
        console.print("Watching for changes (Ctrl+C to stop)...")
        try:
            asyncio.run(_watch(entry, request, output, context.loaded_paths))
        except KeyboardInterrupt:
            console.print("Stopped.")
