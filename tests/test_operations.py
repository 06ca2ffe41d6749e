import pytest

from sqlops.core.cancel import CancelToken
from sqlops.core.errors import OperationCancelled, OperationFailed, TransportError
from sqlops.core.models import Operation, OperationErrorDetail, OperationStatus
from sqlops.core.operations import PollPolicy, wait_for_operation

NO_JITTER = PollPolicy(initial=1.0, maximum=4.0, multiplier=2.0, jitter=0.0)


def _op(status: OperationStatus, *errors: OperationErrorDetail) -> Operation:
    return Operation(name="op-1", status=status, errors=tuple(errors))


class _OperationsStub:
    """Returns the scripted statuses in order, one per poll."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[tuple[str, str]] = []

    def get_operation(self, project: str, operation_name: str) -> Operation:
        self.calls.append((project, operation_name))
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


def test_wait_returns_after_pending_running_done():
    adapter = _OperationsStub(_op(OperationStatus.RUNNING), _op(OperationStatus.DONE))
    sleeps: list[float] = []
    seen: list[OperationStatus] = []

    final = wait_for_operation(
        adapter,
        "p1",
        _op(OperationStatus.PENDING),
        policy=NO_JITTER,
        sleep=sleeps.append,
        on_poll=lambda op: seen.append(op.status),
    )

    assert final.status == OperationStatus.DONE
    assert adapter.calls == [("p1", "op-1"), ("p1", "op-1")]
    assert seen == [OperationStatus.RUNNING, OperationStatus.DONE]
    assert sleeps == [1.0, 2.0]


def test_wait_raises_operation_failed_with_remote_errors_verbatim():
    error = OperationErrorDetail(code="ERROR_RDBMS", message="instance name already in use")
    adapter = _OperationsStub(_op(OperationStatus.RUNNING), _op(OperationStatus.DONE, error))

    with pytest.raises(OperationFailed) as info:
        wait_for_operation(
            adapter, "p1", _op(OperationStatus.PENDING), policy=NO_JITTER, sleep=lambda _: None
        )

    assert info.value.errors == (error,)
    assert info.value.operation.name == "op-1"
    assert "ERROR_RDBMS: instance name already in use" in str(info.value)


def test_wait_on_already_done_handle_makes_no_call():
    adapter = _OperationsStub()

    final = wait_for_operation(adapter, "p1", _op(OperationStatus.DONE), sleep=lambda _: None)

    assert final.done
    assert adapter.calls == []


def test_wait_propagates_transport_error_without_retry():
    adapter = _OperationsStub(TransportError(500, "internal"), _op(OperationStatus.DONE))

    with pytest.raises(TransportError):
        wait_for_operation(
            adapter, "p1", _op(OperationStatus.PENDING), policy=NO_JITTER, sleep=lambda _: None
        )

    assert len(adapter.calls) == 1


def test_wait_ignores_status_regression():
    adapter = _OperationsStub(
        _op(OperationStatus.RUNNING),
        _op(OperationStatus.PENDING),
        _op(OperationStatus.DONE),
    )
    seen: list[OperationStatus] = []

    wait_for_operation(
        adapter,
        "p1",
        _op(OperationStatus.PENDING),
        policy=NO_JITTER,
        sleep=lambda _: None,
        on_poll=lambda op: seen.append(op.status),
    )

    assert seen == [OperationStatus.RUNNING, OperationStatus.RUNNING, OperationStatus.DONE]


def test_wait_keeps_polling_unknown_status():
    adapter = _OperationsStub(
        Operation(name="op-1", status=OperationStatus.UNKNOWN),
        _op(OperationStatus.DONE),
    )

    final = wait_for_operation(
        adapter, "p1", _op(OperationStatus.PENDING), policy=NO_JITTER, sleep=lambda _: None
    )

    assert final.done
    assert len(adapter.calls) == 2


def test_wait_cancelled_before_poll_makes_no_call():
    adapter = _OperationsStub(_op(OperationStatus.DONE))
    cancel = CancelToken()
    cancel.cancel()

    with pytest.raises(OperationCancelled) as info:
        wait_for_operation(adapter, "p1", _op(OperationStatus.PENDING), cancel=cancel)

    assert info.value.operation_name == "op-1"
    assert adapter.calls == []


def test_wait_cancelled_during_sleep_stops_polling():
    cancel = CancelToken()
    adapter = _OperationsStub(_op(OperationStatus.RUNNING), _op(OperationStatus.DONE))

    def _sleep(_seconds: float) -> None:
        if adapter.calls:
            cancel.cancel()

    with pytest.raises(OperationCancelled):
        wait_for_operation(
            adapter,
            "p1",
            _op(OperationStatus.PENDING),
            policy=NO_JITTER,
            cancel=cancel,
            sleep=_sleep,
        )

    assert len(adapter.calls) == 1


def test_poll_policy_grows_and_is_bounded():
    policy = PollPolicy(initial=1.0, maximum=5.0, multiplier=2.0, jitter=0.0)

    assert [policy.interval(n) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_poll_policy_jitter_stays_within_bounds():
    policy = PollPolicy(initial=2.0, maximum=10.0, multiplier=1.0, jitter=0.5)

    for _ in range(50):
        assert 1.0 <= policy.interval(0) <= 3.0


def test_poll_policy_from_env(monkeypatch):
    monkeypatch.setenv("SQLOPS_POLL_INITIAL", "0.5")
    monkeypatch.setenv("SQLOPS_POLL_MAX", "not-a-number")

    policy = PollPolicy.from_env()

    assert policy.initial == 0.5
    assert policy.maximum == PollPolicy.maximum


def test_wait_survives_thousands_of_polls_at_the_cap():
    adapter = _OperationsStub(*([_op(OperationStatus.RUNNING)] * 2500), _op(OperationStatus.DONE))
    sleeps: list[float] = []

    final = wait_for_operation(
        adapter, "p1", _op(OperationStatus.PENDING), policy=PollPolicy(), sleep=sleeps.append
    )

    assert final.done
    assert len(adapter.calls) == 2501
    assert max(sleeps) <= PollPolicy.maximum


def test_poll_policy_interval_is_capped_for_huge_attempts():
    policy = PollPolicy(initial=0.001, maximum=0.002, multiplier=1.5, jitter=0.0)

    assert policy.interval(100_000) == 0.002
    assert PollPolicy(initial=1.0, maximum=1.0, jitter=0.0).interval(5000) == 1.0
