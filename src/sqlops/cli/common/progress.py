"""Progress display for long-running Cloud SQL operations."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from sqlops.cli.common.output import console
from sqlops.core.cancel import CancelToken
from sqlops.core.errors import OperationCancelled
from sqlops.core.models import Operation, OperationStatus


def _style_for(status: OperationStatus) -> str:
    if status == OperationStatus.DONE:
        return "green"
    if status in (OperationStatus.RUNNING, OperationStatus.PENDING):
        return "yellow"
    return "dim"


class OperationWatch:
    """
    Live spinner row for one operation.

    The row only appears once the operation is submitted, so prompts shown
    before submission (confirmation) are not drawn over.

    Pass `submitted` and `polled` as the `on_submit` / `on_poll` callbacks of
    the core commands; the row shows the operation id, its latest status and
    the elapsed time.
    """

    def __init__(
        self,
        progress: Progress,
        label: str,
        *,
        cancel: CancelToken,
        timeout: float | None = None,
    ):
        self.progress = progress
        self.cancel = cancel
        self.timeout = timeout
        self.operation: Operation | None = None
        self._timer = None
        self._started = False
        self._task_id = progress.add_task(
            "",
            total=1,
            label=label,
            operation="-",
            status="SUBMITTING",
            style="dim",
        )

    def submitted(self, op: Operation) -> None:
        self.operation = op
        if self.timeout and self._timer is None:
            self._timer = self.cancel.cancel_after(self.timeout)
        if not self._started:
            self.progress.start()
            self._started = True
        self.progress.update(self._task_id, operation=op.name)
        self.polled(op)

    def polled(self, op: Operation) -> None:
        self.operation = op
        self.progress.update(
            self._task_id,
            status=op.status.value,
            style=_style_for(op.status),
            completed=1 if op.done else 0,
        )

    def close(self) -> None:
        if self._started:
            self.progress.stop()
        if self._timer is not None:
            self._timer.cancel()


@contextmanager
def watch_operation(
    label: str,
    *,
    cancel: CancelToken,
    timeout: float | None = None,
) -> Iterator[OperationWatch]:
    """
    Show a spinner while an operation is submitted and awaited.

    Ctrl-C and `timeout` (counted from submission) both cancel the wait: the token is set and an
    OperationCancelled naming the operation (if already submitted) is raised.
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.fields[label]}[/]"),
        TextColumn("op={task.fields[operation]}"),
        TextColumn(
            "status=[{task.fields[style]}]{task.fields[status]}[/{task.fields[style]}]"
        ),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    watch = OperationWatch(progress, label, cancel=cancel, timeout=timeout)
    try:
        yield watch
    except KeyboardInterrupt as exc:
        cancel.cancel()
        name = watch.operation.name if watch.operation else None
        raise OperationCancelled(name) from exc
    except OperationCancelled as exc:
        if exc.operation_name is None and watch.operation is not None:
            raise OperationCancelled(watch.operation.name) from exc
        raise
    finally:
        watch.close()
