"""Waiting for Cloud SQL long-running operations.

Mutating calls (insert, delete) return an operation handle instead of a
finished result. This module polls that handle until it reaches DONE, with a
bounded, jittered exponential backoff between polls. Polling is synchronous
and blocks the caller; cancellation is an external signal checked between
polls and only stops the waiting, never the remote action.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from sqlops.core.cancel import CancelToken
from sqlops.core.config import POLL_INITIAL_ENV, POLL_MAX_ENV, env_seconds
from sqlops.core.errors import OperationCancelled, OperationFailed
from sqlops.core.models import Operation

log = logging.getLogger(__name__)


class OperationsAdapter(Protocol):
    """Interface for querying the status of a long-running operation."""

    def get_operation(self, project: str, operation_name: str) -> Operation:
        """Return the current state of an operation."""
        ...


@dataclass(frozen=True)
class PollPolicy:
    """
    Backoff between operation status polls.

    Attributes:
        initial: Delay in seconds before the first poll.
        maximum: Upper bound for any single delay.
        multiplier: Growth factor applied per poll.
        jitter: Random spread as a fraction of the delay (0.1 = +/-10%).
    """

    initial: float = 1.0
    maximum: float = 10.0
    multiplier: float = 1.5
    jitter: float = 0.1

    @classmethod
    def from_env(cls) -> PollPolicy:
        """Return the default policy, honoring env overrides."""
        initial = env_seconds(POLL_INITIAL_ENV, cls.initial)
        maximum = env_seconds(POLL_MAX_ENV, cls.maximum)
        return cls(initial=initial, maximum=max(maximum, initial))

    def _exponent(self, attempt: int) -> int:
        """Clamp growth at the first exponent that reaches `maximum`."""
        if self.multiplier <= 1:
            return attempt
        if not 0 < self.initial < self.maximum:
            return 0
        cap = math.ceil(math.log(self.maximum / self.initial, self.multiplier))
        return min(attempt, cap)

    def interval(self, attempt: int) -> float:
        """Return the delay before poll number `attempt` (0-based)."""
        base = min(self.maximum, self.initial * (self.multiplier ** self._exponent(attempt)))
        if self.jitter:
            base *= random.uniform(1 - self.jitter, 1 + self.jitter)
        return min(base, self.maximum)


def _pause(seconds: float, cancel: CancelToken | None, sleep: Callable[[float], None] | None) -> bool:
    """Sleep between polls. Return True if cancellation was requested."""
    if sleep is not None:
        sleep(seconds)
    elif cancel is not None:
        return cancel.wait(seconds)
    else:
        time.sleep(seconds)
    return cancel is not None and cancel.cancelled


def wait_for_operation(
    adapter: OperationsAdapter,
    project: str,
    operation: Operation,
    *,
    policy: PollPolicy | None = None,
    cancel: CancelToken | None = None,
    on_poll: Callable[[Operation], None] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> Operation:
    """
    Block until a Cloud SQL operation reaches DONE.

    Intermediate states may be skipped between polls. A status that moves
    backwards (e.g. RUNNING then PENDING) is ignored; the most advanced
    status observed is kept.

    Args:
        adapter: Adapter used to query the operation status.
        project: Project that owns the operation.
        operation: Handle returned by the submit call.
        policy: Backoff between polls (defaults to PollPolicy.from_env()).
        cancel: Optional cancellation token checked between polls.
        on_poll: Callback invoked with every polled snapshot.
        sleep: Sleep function override (tests).

    Returns:
        The final operation snapshot, DONE without errors.

    Raises:
        OperationFailed: The operation finished with an error payload.
        OperationCancelled: `cancel` was set before the operation finished.
        TransportError: A status poll failed; not retried.
    """
    policy = policy or PollPolicy.from_env()
    current = operation
    attempt = 0

    while not current.done:
        if cancel is not None and cancel.cancelled:
            raise OperationCancelled(current.name)

        if _pause(policy.interval(attempt), cancel, sleep):
            raise OperationCancelled(current.name)

        polled = adapter.get_operation(project, current.name)
        attempt += 1
        log.debug("Operation %s poll %d: %s", current.name, attempt, polled.status.value)

        if polled.status.rank < current.status.rank:
            log.debug(
                "Ignoring status regression %s -> %s for %s",
                current.status.value,
                polled.status.value,
                current.name,
            )
        else:
            current = polled

        if on_poll is not None:
            on_poll(current)

    if current.errors:
        raise OperationFailed(current, current.errors)
    return current
