import pytest

from sqlops.cli.common.progress import watch_operation
from sqlops.core.cancel import CancelToken
from sqlops.core.errors import OperationCancelled
from sqlops.core.models import Operation, OperationStatus


def test_ctrl_c_after_submit_reports_operation_name():
    cancel = CancelToken()

    with pytest.raises(OperationCancelled) as info:
        with watch_operation("create p1/db1", cancel=cancel) as watch:
            watch.submitted(Operation(name="op-7", status=OperationStatus.PENDING))
            raise KeyboardInterrupt

    assert info.value.operation_name == "op-7"
    assert cancel.cancelled


def test_ctrl_c_before_submit_has_no_operation():
    with pytest.raises(OperationCancelled) as info:
        with watch_operation("delete p1/db1", cancel=CancelToken()):
            raise KeyboardInterrupt

    assert info.value.operation_name is None


def test_timeout_is_armed_only_on_submit():
    cancel = CancelToken()

    with watch_operation("create p1/db1", cancel=cancel, timeout=0.01) as watch:
        assert not cancel.wait(0.05)
        watch.submitted(Operation(name="op-7", status=OperationStatus.PENDING))
        assert cancel.wait(2.0)
