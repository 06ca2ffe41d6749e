"""Lazy iteration over paged Cloud SQL list endpoints.

List calls return a bounded page plus an opaque continuation token. The
helpers here follow the token until it runs out and expose the result as a
single generator. A generator is single-use: once iteration has started the
only way to start over is to call the function again.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterator, Protocol, TypeVar

from sqlops.core.cancel import CancelToken
from sqlops.core.errors import OperationCancelled
from sqlops.core.models import Instance, ListInstancesRequest, Operation, Page

log = logging.getLogger(__name__)

T = TypeVar("T")


class InstanceListAdapter(Protocol):
    """Interface for fetching one page of instances."""

    def list_instances(self, request: ListInstancesRequest) -> Page:
        """Return one page of instances for the request."""
        ...


class OperationListAdapter(Protocol):
    """Interface for fetching one page of operations for an instance."""

    def list_operations(
        self, project: str, instance: str, page_token: str | None = None
    ) -> Page:
        """Return one page of operations, most recent first."""
        ...


def paginate(
    fetch_page: Callable[[str | None], Page],
    *,
    cancel: CancelToken | None = None,
) -> Iterator[T]:
    """
    Yield every item across all pages returned by `fetch_page`.

    The first call passes no token. A page with no items ends the sequence,
    even if the server also returned a token. Errors from a page fetch
    propagate; items already yielded are not retracted.

    Args:
        fetch_page: Callable taking the page token and returning a Page.
        cancel: Optional token checked before each page fetch.

    Raises:
        OperationCancelled: If `cancel` is set between pages.
    """
    token: str | None = None
    page_no = 0
    while True:
        if cancel is not None and cancel.cancelled:
            raise OperationCancelled()

        page = fetch_page(token)
        page_no += 1
        log.debug(
            "Fetched page %d (%d items, more=%s)",
            page_no,
            len(page.items or []),
            bool(page.next_page_token),
        )
        if not page.items:
            return

        yield from page.items

        token = page.next_page_token
        if not token:
            return


def fetch_all(
    adapter: InstanceListAdapter,
    request: ListInstancesRequest,
    *,
    cancel: CancelToken | None = None,
) -> Iterator[Instance]:
    """
    Yield all instances matching `request`, following page tokens.

    Any page token already set on `request` is ignored; listing always starts
    from the first page.
    """

    def _fetch(token: str | None) -> Page:
        return adapter.list_instances(replace(request, page_token=token))

    return paginate(_fetch, cancel=cancel)


def fetch_all_operations(
    adapter: OperationListAdapter,
    project: str,
    instance: str,
    *,
    cancel: CancelToken | None = None,
) -> Iterator[Operation]:
    """Yield all operations recorded for an instance, following page tokens."""

    def _fetch(token: str | None) -> Page:
        return adapter.list_operations(project, instance, page_token=token)

    return paginate(_fetch, cancel=cancel)
