from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from typebox_typegen.core.declarations import index_declarations
from typebox_typegen.core.modules import find_module_map
from typebox_typegen.core.source import CompilationContext

console = Console()


def schemas(
    entry: Annotated[str, typer.Argument(help="Module reference of the schema file to inspect.")],
) -> None:
    """List the object and compose declarations a schema file exposes."""
    context = CompilationContext()
    try:
        parsed = context.load_reference(entry)
        index = index_declarations(context, parsed)
    except OSError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from None

    table = Table(show_lines=False)
    for header in ("name", "objects", "statement_line"):
        table.add_column(header)
    for name, declaration in index.items():
        line = str(declaration.statement.start_point[0] + 1) if declaration.statement is not None else "-"
        table.add_row(name, str(len(declaration.objects)), line)
    console.print(table)
    console.print(f"({len(index)} declarations)")

    module_map = find_module_map(parsed)
    if module_map:
        modules = Table(show_lines=False)
        modules.add_column("key")
        modules.add_column("definition")
        for key, identifier in module_map.items():
            modules.add_row(key, identifier)
        console.print(modules)
        console.print(f"({len(module_map)} module entries)")
