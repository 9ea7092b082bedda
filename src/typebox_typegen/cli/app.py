import typer

from typebox_typegen.cli.generate import generate
from typebox_typegen.cli.schemas import schemas

app = typer.Typer(
    name="typebox-typegen",
    help="Compile TypeBox schema declarations into TypeScript types.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("generate")(generate)
app.command("schemas")(schemas)


def main() -> None:
    app()
