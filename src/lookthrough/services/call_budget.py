"""Per-minute provider call budget shared by every lookup of one provider."""

import bisect
import logging
import threading
import time
from typing import Callable, Optional

from lookthrough.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class CallBudget:
    """
    Sliding one-minute window of provider call slots.

    Callers reserve slots before calling the provider. A reservation that
    does not fit in the current window is scheduled for the moment it will
    fit, and the caller sleeps until then. Reservations are handed out in
    order, so no 60 second window ever holds more than ``calls_per_minute``
    calls, whichever thread or data kind made them.
    """

    def __init__(
        self,
        calls_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if calls_per_minute < 1:
            raise ValidationError("calls_per_minute must be at least 1")
        self.calls_per_minute = calls_per_minute
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._slots: list[float] = []

    def acquire(self, count: int = 1, deadline_at: Optional[float] = None) -> bool:
        """
        Reserve ``count`` call slots, sleeping until they are inside the budget.

        Returns False without reserving anything when the slots would only
        become available after ``deadline_at`` (a clock reading).
        """
        if count < 1:
            return True
        if count > self.calls_per_minute:
            raise ValidationError(
                f"Cannot reserve {count} calls against a budget of {self.calls_per_minute} per minute"
            )

        with self._lock:
            now = self._clock()
            self._slots = [t for t in self._slots if t > now - WINDOW_SECONDS]
            start = now
            if self._slots:
                start = max(start, self._slots[-1])
            overflow = len(self._slots) + count - self.calls_per_minute
            if overflow > 0:
                start = max(start, self._slots[overflow - 1] + WINDOW_SECONDS)
            if deadline_at is not None and start > deadline_at:
                return False
            for _ in range(count):
                bisect.insort(self._slots, start)

        wait = start - now
        if wait > 0:
            logger.debug("Call budget exhausted; waiting %.1fs for %d slot(s)", wait, count)
            self._sleep(wait)
        return True

    def reserved(self) -> int:
        """Slots counted against the current window (including scheduled ones)."""
        with self._lock:
            now = self._clock()
            return sum(1 for t in self._slots if t > now - WINDOW_SECONDS)
