"""Exit handling utilities for the CLI."""

from contextlib import contextmanager
from typing import Iterator, NoReturn

import typer

from sqlops.cli.common.output import out
from sqlops.core.auth import AuthError
from sqlops.core.errors import (
    ConfigurationError,
    OperationCancelled,
    OperationFailed,
    TransportError,
)

EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def ok_exit(msg: str | None = None) -> NoReturn:
    """Exit successfully with an optional informational message."""
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Exit with a warning message and optional exit code."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str, code: int = EXIT_FAILURE) -> NoReturn:
    """Print an error message and exit with a given code, chaining `exc`."""
    out.error(message)
    raise typer.Exit(code) from exc


@contextmanager
def cli_errors() -> Iterator[None]:
    """Map sqlops error kinds to messages and distinct exit codes."""
    try:
        yield
    except ConfigurationError as exc:
        exit_from_exc(exc, message=str(exc), code=EXIT_USAGE)
    except OperationCancelled as exc:
        out.warn(str(exc))
        if exc.operation_name:
            out.info(f"Check it later with: sqlops operations get {exc.operation_name}")
        raise typer.Exit(EXIT_CANCELLED) from exc
    except OperationFailed as exc:
        exit_from_exc(exc, message=str(exc))
    except TransportError as exc:
        exit_from_exc(exc, message=f"Cloud SQL API request failed ({exc})")
    except AuthError as exc:
        exit_from_exc(exc, message=str(exc))
