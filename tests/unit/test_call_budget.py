"""
Unit tests for CallBudget.

Tests cover:
- Slots granted immediately while the window has room
- Waiting for the window to free up
- Deadline refusals
- Oversized reservations
"""

import pytest

from lookthrough.core.exceptions import ValidationError
from lookthrough.services import CallBudget


@pytest.fixture
def budget(fake_clock) -> CallBudget:
    return CallBudget(3, clock=fake_clock, sleep=fake_clock.sleep)


class TestCallBudget:
    """Tests for the sliding one-minute window."""

    def test_slots_within_budget_do_not_wait(self, budget, fake_clock):
        assert budget.acquire(2)
        assert budget.acquire()

        assert fake_clock.sleeps == []
        assert budget.reserved() == 3

    def test_full_window_waits_for_oldest_slot(self, budget, fake_clock):
        """
        GIVEN 2 calls made at t=1000 and 1 more at t=1020 against 3 per minute
        WHEN I reserve 2 more at t=1030
        THEN I wait until t=1060, when both t=1000 slots have left the window
        """
        budget.acquire(2)
        fake_clock.advance(20)
        budget.acquire(1)
        fake_clock.advance(10)

        assert budget.acquire(2)

        assert fake_clock.sleeps == [30.0]
        assert fake_clock.now == 1060.0

    def test_expired_slots_are_released(self, budget, fake_clock):
        budget.acquire(3)
        fake_clock.advance(61)

        assert budget.acquire(3)
        assert fake_clock.sleeps == []

    def test_deadline_refusal_reserves_nothing(self, budget, fake_clock):
        budget.acquire(3)

        assert budget.acquire(1, deadline_at=fake_clock.now + 30) is False

        assert fake_clock.sleeps == []
        assert budget.reserved() == 3

    def test_reservation_larger_than_budget_raises(self, budget):
        with pytest.raises(ValidationError):
            budget.acquire(4)

    def test_zero_budget_rejected(self):
        with pytest.raises(ValidationError):
            CallBudget(0)
