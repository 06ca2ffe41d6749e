"""CLI application for Cloud SQL operations tooling."""

import typer

from sqlops.cli.commands.instances import app as instances_app
from sqlops.cli.commands.operations import app as operations_app
from sqlops.cli.common.context import build_sql_context
from sqlops.cli.common.logs import setup_logging
from sqlops.cli.common.options import VerboseOpt

app = typer.Typer(
    help="sqlops - Cloud SQL instance tooling",
    no_args_is_help=True,
)

app.add_typer(instances_app, name="instances", help="Get / create / delete Cloud SQL instances.")
app.add_typer(operations_app, name="operations", help="Inspect / wait for Cloud SQL operations.")


@app.callback()
def _init(ctx: typer.Context, verbose: bool = VerboseOpt):
    """Configure logging and the shared context."""
    setup_logging(verbose)
    if ctx.obj is None:
        ctx.obj = build_sql_context()


if __name__ == "__main__":
    app()
