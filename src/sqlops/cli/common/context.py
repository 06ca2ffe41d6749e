"""Application context management for the CLI."""

from dataclasses import dataclass, field
from functools import cached_property

from sqlops.core.adapters.sqladmin import SqlAdminAdapter
from sqlops.core.auth import get_service
from sqlops.core.config import resolve_project
from sqlops.core.instances import ProjectResolver


@dataclass
class SqlAppContext:
    """Application context holding the Cloud SQL adapter and project resolver.

    The adapter is built on first use, so invocations that fail validation
    never load credentials.
    """

    resolve_project: ProjectResolver = field(default=resolve_project)

    @cached_property
    def adapter(self) -> SqlAdminAdapter:
        return SqlAdminAdapter(get_service())


def build_sql_context() -> SqlAppContext:
    """Build and return the application context for Cloud SQL commands."""
    return SqlAppContext()
