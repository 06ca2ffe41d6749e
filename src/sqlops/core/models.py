"""Core Cloud SQL domain models.

These models represent Cloud SQL instances, long-running operations and list
pages in a simple, immutable form. They are built from the raw Cloud SQL Admin
API payloads but are otherwise free of SDK and CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


@dataclass(frozen=True)
class InstanceRef:
    """
    Identity of a Cloud SQL instance.

    Attributes:
        project: Project identifier that owns the instance.
        name: Instance name, unique within the project.
    """

    project: str
    name: str

    def __str__(self) -> str:
        return f"{self.project}/{self.name}"


@dataclass(frozen=True)
class Instance:
    """
    Snapshot of a Cloud SQL instance as returned by the API at one point in time.

    Attributes:
        name: Instance name.
        project: Project identifier that owns the instance.
        state: Serving state (e.g. RUNNABLE, PENDING_CREATE).
        database_version: Engine version (e.g. POSTGRES_15).
        region: Region the instance lives in.
        tier: Machine tier from the instance settings.
        connection_name: `project:region:name` connection string, once assigned.
        ip_addresses: IP addresses assigned to the instance.
        raw: Full API payload the snapshot was built from.
    """

    name: str
    project: str
    state: str | None = None
    database_version: str | None = None
    region: str | None = None
    tier: str | None = None
    connection_name: str | None = None
    ip_addresses: tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def ref(self) -> InstanceRef:
        """Return the identity of this instance."""
        return InstanceRef(project=self.project, name=self.name)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> Instance:
        """Build a snapshot from a `sql#instance` resource."""
        settings = payload.get("settings") or {}
        addresses = tuple(
            a["ipAddress"] for a in payload.get("ipAddresses") or [] if a.get("ipAddress")
        )
        return cls(
            name=payload.get("name", ""),
            project=payload.get("project", ""),
            state=payload.get("state"),
            database_version=payload.get("databaseVersion"),
            region=payload.get("region"),
            tier=settings.get("tier"),
            connection_name=payload.get("connectionName"),
            ip_addresses=addresses,
            raw=dict(payload),
        )


class OperationStatus(str, Enum):
    """
    Status of a long-running operation.

    Values:
        PENDING: The operation is queued and has not started yet.
        RUNNING: The operation is in progress.
        DONE: The operation finished, successfully or with errors.
        UNKNOWN: The server reported a status this client does not know.
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> OperationStatus:
        """Map a raw API status to a known status (UNKNOWN otherwise)."""
        try:
            return cls(value or "")
        except ValueError:
            return cls.UNKNOWN

    @property
    def rank(self) -> int:
        """Position in the forward-only lifecycle (UNKNOWN sorts first)."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    OperationStatus.UNKNOWN: -1,
    OperationStatus.PENDING: 0,
    OperationStatus.RUNNING: 1,
    OperationStatus.DONE: 2,
}


@dataclass(frozen=True)
class OperationErrorDetail:
    """A single error reported by the server for a failed operation."""

    code: str
    message: str


@dataclass(frozen=True)
class Operation:
    """
    Handle to a Cloud SQL long-running operation.

    Attributes:
        name: Opaque operation identifier used to poll its status.
        status: Current lifecycle status.
        operation_type: Kind of mutation (CREATE, DELETE, ...).
        target_id: Name of the instance the operation acts on.
        target_project: Project of the instance the operation acts on.
        errors: Error details, only present when DONE with a failure.
    """

    name: str
    status: OperationStatus
    operation_type: str | None = None
    target_id: str | None = None
    target_project: str | None = None
    errors: tuple[OperationErrorDetail, ...] = ()

    @property
    def done(self) -> bool:
        return self.status == OperationStatus.DONE

    @property
    def failed(self) -> bool:
        return self.done and bool(self.errors)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> Operation:
        """Build a handle from a `sql#operation` resource."""
        error_block = payload.get("error") or {}
        errors = tuple(
            OperationErrorDetail(code=str(e.get("code", "")), message=str(e.get("message", "")))
            for e in error_block.get("errors") or []
        )
        return cls(
            name=payload.get("name", ""),
            status=OperationStatus.parse(payload.get("status")),
            operation_type=payload.get("operationType"),
            target_id=payload.get("targetId"),
            target_project=payload.get("targetProject"),
            errors=errors,
        )


@dataclass(frozen=True)
class ListInstancesRequest:
    """
    Reusable request descriptor for listing instances.

    Only `page_token` changes between page fetches.
    """

    project: str
    filter: str | None = None
    max_results: int | None = None
    page_token: str | None = None


@dataclass(frozen=True)
class Page:
    """One page of a list response."""

    items: list[Any]
    next_page_token: str | None = None
