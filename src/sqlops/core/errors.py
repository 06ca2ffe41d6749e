"""Error taxonomy for Cloud SQL operations.

Every failure that leaves the core is one of the distinguishable kinds below,
so that calling automation (and the CLI exit-code mapping) can branch on it.
An empty list result is not an error and has no type here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from sqlops.core.models import Operation, OperationErrorDetail


class SqlOpsError(Exception):
    """Base class for all sqlops errors."""


class ConfigurationError(SqlOpsError):
    """Raised when an invocation cannot be resolved before any network call."""


class TransportError(SqlOpsError):
    """
    Raised when an API call failed before a semantic response was obtained.

    Attributes:
        code: HTTP status code (or None for connection-level failures).
        message: Error message as reported by the server or transport.
    """

    def __init__(self, code: int | None, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if code is not None else message)


class OperationFailed(SqlOpsError):
    """
    Raised when a long-running operation reached DONE with an error payload.

    The remote error details are carried verbatim, never reinterpreted.
    """

    def __init__(self, operation: Operation, errors: Sequence[OperationErrorDetail]):
        self.operation = operation
        self.errors = tuple(errors)
        details = "; ".join(f"{e.code}: {e.message}" for e in self.errors)
        super().__init__(f"Operation {operation.name} failed: {details}")


class OperationCancelled(SqlOpsError):
    """Raised when waiting was cancelled locally. The remote action continues."""

    def __init__(self, operation_name: str | None = None):
        self.operation_name = operation_name
        if operation_name:
            msg = f"Stopped waiting for operation {operation_name}; its outcome is unknown"
        else:
            msg = "Cancelled"
        super().__init__(msg)
