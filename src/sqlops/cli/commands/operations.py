"""Commands for inspecting and awaiting Cloud SQL operations.

A create or delete that was interrupted (Ctrl-C or --timeout) keeps running
remotely; these commands let the operator re-query or resume waiting on it.
"""

from __future__ import annotations

import typer

from sqlops.cli.common.context import SqlAppContext, build_sql_context
from sqlops.cli.common.exits import cli_errors, warn_exit
from sqlops.cli.common.options import ProjectOpt, TimeoutOpt
from sqlops.cli.common.output import out
from sqlops.cli.common.progress import watch_operation
from sqlops.core.cancel import CancelToken
from sqlops.core.errors import ConfigurationError, OperationCancelled
from sqlops.core.operations import PollPolicy, wait_for_operation
from sqlops.core.pager import fetch_all_operations

app = typer.Typer(
    help="Inspect and wait for Cloud SQL operations",
    no_args_is_help=False,
    invoke_without_command=True,
)


@app.callback()
def _init(ctx: typer.Context):
    """Initialize operations context."""
    if ctx.obj is None:
        ctx.obj = build_sql_context()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


def _project_or_fail(appctx: SqlAppContext, project: str | None) -> str:
    resolved = appctx.resolve_project(project)
    if not resolved:
        raise ConfigurationError("No project given and none configured. Pass --project.")
    return resolved


@app.command()
def get(
    ctx: typer.Context,
    operation: str = typer.Argument(..., help="Operation id"),
    project: str | None = ProjectOpt,
):
    """Show the current state of an operation."""
    appctx: SqlAppContext = ctx.obj

    with cli_errors():
        resolved = _project_or_fail(appctx, project)
        with out.status("Loading operation..."):
            op = appctx.adapter.get_operation(resolved, operation)

    out.operations_table([op], title="Operation")


@app.command()
def wait(
    ctx: typer.Context,
    operation: str = typer.Argument(..., help="Operation id"),
    project: str | None = ProjectOpt,
    timeout: int | None = TimeoutOpt,
):
    """Wait until an operation is DONE."""
    appctx: SqlAppContext = ctx.obj

    with cli_errors():
        resolved = _project_or_fail(appctx, project)
        cancel = CancelToken()
        with watch_operation(f"wait {operation}", cancel=cancel, timeout=timeout) as watch:
            op = appctx.adapter.get_operation(resolved, operation)
            watch.submitted(op)
            final = wait_for_operation(
                appctx.adapter,
                resolved,
                op,
                policy=PollPolicy.from_env(),
                cancel=cancel,
                on_poll=watch.polled,
            )

    out.success(f"Operation {final.name} is DONE")


@app.command("list")
def list_(
    ctx: typer.Context,
    instance: str = typer.Option(..., "--instance", "-i", help="Instance name"),
    project: str | None = ProjectOpt,
):
    """List operations recorded for an instance, most recent first."""
    appctx: SqlAppContext = ctx.obj

    with cli_errors():
        resolved = _project_or_fail(appctx, project)
        cancel = CancelToken()
        try:
            with out.status("Loading operations..."):
                ops = list(fetch_all_operations(appctx.adapter, resolved, instance, cancel=cancel))
        except KeyboardInterrupt as exc:
            cancel.cancel()
            raise OperationCancelled() from exc

    if not ops:
        warn_exit(f"No operations found for {resolved}/{instance}", code=0)
    out.operations_table(ops, title=f"Operations on {resolved}/{instance}")
