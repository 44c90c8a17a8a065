from __future__ import annotations

import typer

from nightly import __version__
from nightly.cli.commands.package_cmd import package
from nightly.cli.commands.plan_cmd import plan
from nightly.cli.commands.run_cmd import run

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command()(run)
app.command()(plan)
app.command()(package)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    """Nightly release orchestrator."""


def main() -> None:
    app()
