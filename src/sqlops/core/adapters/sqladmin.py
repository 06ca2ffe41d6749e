from __future__ import annotations

import logging
from typing import Any, Mapping

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import Error as GoogleApiError
from googleapiclient.errors import HttpError

from sqlops.core.errors import TransportError
from sqlops.core.models import Instance, ListInstancesRequest, Operation, Page

log = logging.getLogger(__name__)


def _transport_error(exc: Exception) -> TransportError:
    """Translate a client library failure into a TransportError."""
    if isinstance(exc, HttpError):
        code = getattr(exc.resp, "status", None)
        message = getattr(exc, "reason", None) or str(exc)
        return TransportError(int(code) if code is not None else None, message)
    return TransportError(None, str(exc) or type(exc).__name__)


class SqlAdminAdapter:
    """Adapter around the Cloud SQL Admin API (instances and operations)."""

    def __init__(self, service: Any) -> None:
        self.service = service

    def _execute(self, request: Any) -> Mapping[str, Any]:
        """Execute one API request, mapping failures to TransportError."""
        try:
            return request.execute() or {}
        except (GoogleApiError, GoogleAuthError, httplib2.HttpLib2Error, OSError) as exc:
            raise _transport_error(exc) from exc

    def get_instance(self, project: str, name: str) -> Instance:
        """Return the current snapshot of one instance."""
        payload = self._execute(self.service.instances().get(project=project, instance=name))
        return Instance.from_api(payload)

    def list_instances(self, request: ListInstancesRequest) -> Page:
        """Return one page of instances."""
        kwargs: dict[str, Any] = {"project": request.project}
        if request.filter:
            kwargs["filter"] = request.filter
        if request.max_results:
            kwargs["maxResults"] = request.max_results
        if request.page_token:
            kwargs["pageToken"] = request.page_token

        payload = self._execute(self.service.instances().list(**kwargs))
        items = [Instance.from_api(i) for i in payload.get("items") or []]
        return Page(items=items, next_page_token=payload.get("nextPageToken") or None)

    def insert_instance(self, project: str, config: Mapping[str, Any]) -> Operation:
        """Submit an instance creation and return its operation handle."""
        log.debug("instances.insert project=%s name=%s", project, config.get("name"))
        payload = self._execute(
            self.service.instances().insert(project=project, body=dict(config))
        )
        return Operation.from_api(payload)

    def delete_instance(self, project: str, name: str) -> Operation:
        """Submit an instance deletion and return its operation handle."""
        log.debug("instances.delete project=%s name=%s", project, name)
        payload = self._execute(self.service.instances().delete(project=project, instance=name))
        return Operation.from_api(payload)

    def get_operation(self, project: str, operation_name: str) -> Operation:
        """Return the current state of an operation."""
        payload = self._execute(
            self.service.operations().get(project=project, operation=operation_name)
        )
        return Operation.from_api(payload)

    def list_operations(
        self, project: str, instance: str, page_token: str | None = None
    ) -> Page:
        """Return one page of operations recorded for an instance."""
        kwargs: dict[str, Any] = {"project": project, "instance": instance}
        if page_token:
            kwargs["pageToken"] = page_token
        payload = self._execute(self.service.operations().list(**kwargs))
        items = [Operation.from_api(o) for o in payload.get("items") or []]
        return Page(items=items, next_page_token=payload.get("nextPageToken") or None)
