"""Commands for managing Cloud SQL instances."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer

from sqlops.cli.common.context import SqlAppContext, build_sql_context
from sqlops.cli.common.exits import cli_errors, ok_exit, warn_exit
from sqlops.cli.common.options import (
    DryRunOpt,
    FilterOpt,
    ForceOpt,
    MaxResultsOpt,
    OutputOpt,
    ProjectOpt,
    TimeoutOpt,
)
from sqlops.cli.common.output import out
from sqlops.cli.common.progress import watch_operation
from sqlops.core.cancel import CancelToken
from sqlops.core.errors import ConfigurationError, OperationCancelled
from sqlops.core.instances import (
    GetSingle,
    create_instance,
    delete_instance,
    delete_target,
    get_instances,
    resolve_create_params,
    resolve_delete_params,
    resolve_get_params,
)
from sqlops.core.models import Instance
from sqlops.core.operations import PollPolicy

app = typer.Typer(
    help="Get, create and delete Cloud SQL instances",
    no_args_is_help=False,
    invoke_without_command=True,
)

_OUTPUT_FORMATS = ("table", "json")


@app.callback()
def _init(ctx: typer.Context):
    """Initialize instances context."""
    if ctx.obj is None:
        ctx.obj = build_sql_context()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


def _check_output(output: str) -> str:
    if output not in _OUTPUT_FORMATS:
        raise ConfigurationError(
            f"Unknown output format '{output}' (expected one of: {', '.join(_OUTPUT_FORMATS)})."
        )
    return output


def _read_json(path: str, *, what: str) -> Any:
    """Read a JSON document from a file, or from stdin when path is '-'."""
    try:
        text = sys.stdin.read() if path == "-" else Path(path).read_text()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {what} from '{path}': {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {what} '{path}': {exc}") from exc


def build_instance_config(
    *,
    name: str,
    database_version: str | None,
    tier: str | None,
    region: str | None,
) -> dict[str, Any]:
    """Build a minimal `sql#instance` body from individual flags."""
    config: dict[str, Any] = {"name": name}
    if database_version:
        config["databaseVersion"] = database_version
    if region:
        config["region"] = region
    if tier:
        config["settings"] = {"tier": tier}
    return config


def _emit(instances, output: str, *, title: str) -> int:
    """Emit instances as they are produced, as JSON lines or table rows."""
    if output == "json":
        count = 0
        for instance in instances:
            out.json_line(instance.raw)
            count += 1
        return count

    return out.instances_table(instances, title=title)


@app.command()
def get(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Instance name (omit to list all)"),
    project: str | None = ProjectOpt,
    filter_: str | None = FilterOpt,
    max_results: int | None = MaxResultsOpt,
    output: str = OutputOpt,
):
    """
    Get one instance by name, or list all instances in the project.
    """
    appctx: SqlAppContext = ctx.obj

    with cli_errors():
        _check_output(output)
        params = resolve_get_params(
            name=name,
            project=project,
            filter_=filter_,
            max_results=max_results,
            resolve_project=appctx.resolve_project,
        )
        cancel = CancelToken()
        try:
            shown = _emit(
                get_instances(appctx.adapter, params, cancel=cancel),
                output,
                title=f"Instances in {params.project}",
            )
        except KeyboardInterrupt as exc:
            cancel.cancel()
            raise OperationCancelled() from exc

    if not shown and not isinstance(params, GetSingle) and output == "table":
        warn_exit(f"No instances found in project {params.project}", code=0)


@app.command()
def create(
    ctx: typer.Context,
    config_file: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON file with the sql#instance body ('-' reads stdin)",
    ),
    name: str | None = typer.Option(None, "--name", help="Instance name"),
    database_version: str | None = typer.Option(
        None, "--database-version", help="e.g. POSTGRES_15, MYSQL_8_0"
    ),
    tier: str | None = typer.Option(None, "--tier", help="Machine tier, e.g. db-f1-micro"),
    region: str | None = typer.Option(None, "--region", help="Region, e.g. europe-west1"),
    project: str | None = ProjectOpt,
    timeout: int | None = TimeoutOpt,
    output: str = OutputOpt,
):
    """
    Create an instance and wait until it is ready.
    """
    appctx: SqlAppContext = ctx.obj

    with cli_errors():
        _check_output(output)
        if config_file and name:
            raise ConfigurationError("Use either --config or --name, not both.")
        if config_file:
            config = _read_json(config_file, what="instance configuration")
        elif name:
            config = build_instance_config(
                name=name, database_version=database_version, tier=tier, region=region
            )
        else:
            raise ConfigurationError("Provide an instance configuration with --config or --name.")

        params = resolve_create_params(
            config=config, project=project, resolve_project=appctx.resolve_project
        )

        cancel = CancelToken()
        with watch_operation(f"create {params.ref}", cancel=cancel, timeout=timeout) as watch:
            instance = create_instance(
                appctx.adapter,
                params,
                policy=PollPolicy.from_env(),
                cancel=cancel,
                on_submit=watch.submitted,
                on_poll=watch.polled,
            )

    out.success(f"Created instance {instance.ref}")
    if output == "json":
        out.json_line(instance.raw)
    else:
        out.instance_details(instance)


@app.command()
def delete(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Instance name"),
    instance_file: str | None = typer.Option(
        None,
        "--instance-file",
        help="JSON instance snapshot as printed by `get -o json` ('-' reads stdin)",
    ),
    project: str | None = ProjectOpt,
    force: bool = ForceOpt,
    dry_run: bool = DryRunOpt,
    timeout: int | None = TimeoutOpt,
):
    """
    Delete an instance. Warning: this deletes all data inside it as well.
    """
    appctx: SqlAppContext = ctx.obj

    with cli_errors():
        instance_object = None
        if instance_file is not None:
            payload = _read_json(instance_file, what="instance snapshot")
            if not isinstance(payload, dict):
                raise ConfigurationError("The instance snapshot must be a JSON object.")
            instance_object = Instance.from_api(payload)

        params = resolve_delete_params(
            instance_name=name,
            instance_object=instance_object,
            project=project,
            resolve_project=appctx.resolve_project,
        )
        target = delete_target(params)

        if dry_run:
            warn_exit(f"Dry-run enabled: instance {target} would be deleted", code=0)

        def _confirm(label: str) -> bool:
            return out.confirm(f"Delete instance {label} and all of its data?")

        cancel = CancelToken()
        with watch_operation(f"delete {target}", cancel=cancel, timeout=timeout) as watch:
            result = delete_instance(
                appctx.adapter,
                params,
                confirm=_confirm,
                force=force,
                policy=PollPolicy.from_env(),
                cancel=cancel,
                on_submit=watch.submitted,
                on_poll=watch.polled,
            )

    if not result.deleted:
        ok_exit("Cancelled")
    out.success(f"Deleted instance {result.ref}")
