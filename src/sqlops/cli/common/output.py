"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.theme import Theme

from sqlops.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME, stderr=True)
table_console = Console(theme=_THEME)

_STATE_STYLES = {
    "RUNNABLE": "ok",
    "DONE": "ok",
    "SUSPENDED": "warn",
    "PENDING_CREATE": "warn",
    "PENDING_DELETE": "warn",
    "MAINTENANCE": "warn",
    "PENDING": "warn",
    "RUNNING": "warn",
    "FAILED": "err",
}


def _styled_state(state: str | None) -> str:
    if not state:
        return ""
    style = _STATE_STYLES.get(state, "meta")
    return f"[{style}]{state}[/{style}]"


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "auto_enter"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be sqlops consistent."""
        return f"[sqlops] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            table_console.print(f"[meta]{k}[/]: {v}")

    def json_line(self, payload: Mapping[str, Any]) -> None:
        """Write one compact JSON document per line to stdout."""
        typer.echo(json.dumps(payload, sort_keys=True))

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise (including Ctrl-C).
        """
        # Questionary renders `instruction=...` inline next to the echoed answer.
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
            pointer="❯",
        )
        return bool(prompt.ask())

    def instances_table(self, instances: Iterable[Any], title: str = "Instances") -> int:
        """
        Expects objects with .name .project .state .database_version .region
        .tier .ip_addresses (like sqlops.core.models.Instance)

        Rows are drawn as they arrive; nothing is printed for an empty
        iterable. Returns the number of rows shown.
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok", no_wrap=True)
        t.add_column("Project", style="meta")
        t.add_column("State")
        t.add_column("Version")
        t.add_column("Region")
        t.add_column("Tier", style="meta")
        t.add_column("IP addresses", style="meta")

        live: Live | None = None
        count = 0
        try:
            for i in instances:
                t.add_row(
                    i.name,
                    i.project,
                    _styled_state(i.state),
                    i.database_version or "",
                    i.region or "",
                    i.tier or "",
                    ", ".join(i.ip_addresses),
                )
                count += 1
                if live is None:
                    live = Live(t, console=table_console, refresh_per_second=8)
                    live.start()
                else:
                    live.refresh()
        finally:
            if live is not None:
                live.stop()
        return count

    def instance_details(self, instance: Any) -> None:
        """Print one instance as key-value pairs."""
        self.kv(
            {
                "name": instance.name,
                "project": instance.project,
                "state": _styled_state(instance.state),
                "databaseVersion": instance.database_version or "",
                "region": instance.region or "",
                "tier": instance.tier or "",
                "connectionName": instance.connection_name or "",
                "ipAddresses": ", ".join(instance.ip_addresses),
            }
        )

    def operations_table(self, operations: Iterable[Any], title: str = "Operations") -> None:
        """
        Expects objects with .name .operation_type .target_id .status .errors
        (like sqlops.core.models.Operation)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Operation", style="ok", no_wrap=True)
        t.add_column("Type")
        t.add_column("Target", style="meta")
        t.add_column("Status")
        t.add_column("Error", style="err")

        for op in operations:
            errors = "; ".join(f"{e.code}: {e.message}" for e in op.errors)
            t.add_row(
                op.name,
                op.operation_type or "",
                op.target_id or "",
                _styled_state("FAILED" if op.failed else op.status.value),
                errors,
            )

        table_console.print(t)


out = Out()
