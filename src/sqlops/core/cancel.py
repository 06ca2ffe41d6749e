"""Cooperative cancellation for blocking poll and page loops."""

from __future__ import annotations

import threading


class CancelToken:
    """
    External cancellation signal checked between loop iterations.

    Setting the token never interrupts a request in flight; it only stops
    the loop before the next network call.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; return True early if cancelled."""
        return self._event.wait(max(seconds, 0.0))

    def cancel_after(self, seconds: float) -> threading.Timer:
        """Arm a daemon timer that cancels this token after `seconds`."""
        timer = threading.Timer(seconds, self.cancel)
        timer.daemon = True
        timer.start()
        return timer
