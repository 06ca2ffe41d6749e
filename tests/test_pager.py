import pytest

from sqlops.core.cancel import CancelToken
from sqlops.core.errors import OperationCancelled, TransportError
from sqlops.core.models import Instance, ListInstancesRequest, Page
from sqlops.core.pager import fetch_all, fetch_all_operations


def _instances(*names: str) -> list[Instance]:
    return [Instance(name=n, project="p1") for n in names]


class _ListAdapterStub:
    """Serves pre-cut pages keyed by token; records every request."""

    def __init__(self, pages: list[Page]):
        self.pages = pages
        self.requests: list[ListInstancesRequest] = []

    def list_instances(self, request: ListInstancesRequest) -> Page:
        self.requests.append(request)
        index = 0 if request.page_token is None else int(request.page_token)
        return self.pages[index]


def _split(items: list[Instance], sizes: list[int]) -> list[Page]:
    pages: list[Page] = []
    start = 0
    for i, size in enumerate(sizes):
        chunk = items[start : start + size]
        start += size
        token = str(i + 1) if i + 1 < len(sizes) else None
        pages.append(Page(items=chunk, next_page_token=token))
    return pages


@pytest.mark.parametrize("sizes", [[5], [1, 1, 1, 1, 1], [2, 3], [4, 1], [3, 2]])
def test_fetch_all_yields_every_item_in_order_for_any_partition(sizes):
    items = _instances("a", "b", "c", "d", "e")
    adapter = _ListAdapterStub(_split(items, sizes))

    got = list(fetch_all(adapter, ListInstancesRequest(project="p1")))

    assert [i.name for i in got] == ["a", "b", "c", "d", "e"]
    assert len(adapter.requests) == len(sizes)


def test_fetch_all_follows_tokens_and_keeps_request_fields():
    adapter = _ListAdapterStub(_split(_instances("a", "b", "c"), [1, 2]))
    request = ListInstancesRequest(project="p1", filter="state:RUNNABLE", max_results=1)

    list(fetch_all(adapter, request))

    assert [r.page_token for r in adapter.requests] == [None, "1"]
    assert all(r.filter == "state:RUNNABLE" and r.max_results == 1 for r in adapter.requests)
    assert request.page_token is None


def test_fetch_all_ignores_a_stale_token_on_the_request():
    adapter = _ListAdapterStub(_split(_instances("a", "b"), [1, 1]))

    got = list(fetch_all(adapter, ListInstancesRequest(project="p1", page_token="1")))

    assert [i.name for i in got] == ["a", "b"]


def test_fetch_all_stops_on_empty_page_even_with_token():
    adapter = _ListAdapterStub(
        [
            Page(items=_instances("a"), next_page_token="1"),
            Page(items=[], next_page_token="2"),
            Page(items=_instances("never"), next_page_token=None),
        ]
    )

    got = list(fetch_all(adapter, ListInstancesRequest(project="p1")))

    assert [i.name for i in got] == ["a"]
    assert len(adapter.requests) == 2


def test_fetch_all_empty_project_is_not_an_error():
    adapter = _ListAdapterStub([Page(items=[], next_page_token=None)])

    assert list(fetch_all(adapter, ListInstancesRequest(project="p1"))) == []


def test_fetch_all_is_lazy():
    adapter = _ListAdapterStub(_split(_instances("a", "b"), [1, 1]))

    it = fetch_all(adapter, ListInstancesRequest(project="p1"))
    assert adapter.requests == []

    assert next(it).name == "a"
    assert len(adapter.requests) == 1


def test_fetch_all_propagates_errors_after_yielding_earlier_pages():
    class _FailingSecondPage(_ListAdapterStub):
        def list_instances(self, request):
            if request.page_token == "1":
                raise TransportError(503, "backend unavailable")
            return super().list_instances(request)

    adapter = _FailingSecondPage(_split(_instances("a", "b"), [1, 1]))
    seen: list[str] = []

    with pytest.raises(TransportError, match="backend unavailable"):
        for instance in fetch_all(adapter, ListInstancesRequest(project="p1")):
            seen.append(instance.name)

    assert seen == ["a"]


def test_fetch_all_is_not_restartable_but_a_fresh_call_is():
    adapter = _ListAdapterStub(_split(_instances("a", "b"), [2]))
    request = ListInstancesRequest(project="p1")

    it = fetch_all(adapter, request)
    assert [i.name for i in it] == ["a", "b"]
    assert list(it) == []

    assert [i.name for i in fetch_all(adapter, request)] == ["a", "b"]
    assert len(adapter.requests) == 2


def test_fetch_all_cancel_between_pages_stops_fetching():
    adapter = _ListAdapterStub(_split(_instances("a", "b", "c"), [1, 1, 1]))
    cancel = CancelToken()
    seen: list[str] = []

    with pytest.raises(OperationCancelled):
        for instance in fetch_all(adapter, ListInstancesRequest(project="p1"), cancel=cancel):
            seen.append(instance.name)
            cancel.cancel()

    assert seen == ["a"]
    assert len(adapter.requests) == 1


def test_fetch_all_operations_passes_instance_and_token():
    calls: list[tuple[str, str, str | None]] = []

    class _OpsAdapter:
        def list_operations(self, project, instance, page_token=None):
            calls.append((project, instance, page_token))
            if page_token is None:
                return Page(items=["op-2"], next_page_token="t")
            return Page(items=["op-1"], next_page_token=None)

    got = list(fetch_all_operations(_OpsAdapter(), "p1", "db1"))

    assert got == ["op-2", "op-1"]
    assert calls == [("p1", "db1", None), ("p1", "db1", "t")]
