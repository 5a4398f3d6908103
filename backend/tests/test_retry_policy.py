from datetime import UTC, datetime, timedelta

import pytest

from publisphere.application.services.retry_policy import compute_retry_delay, decide_failure
from publisphere.domain.errors import InvalidJobTransitionError
from publisphere.domain.job_state import can_transition, ensure_transition
from publisphere.domain.models.job import JobStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("attempts", "minutes"),
    [(1, 2), (2, 4), (3, 8), (5, 32)],
)
def test_retry_delay_doubles_per_attempt(attempts: int, minutes: int) -> None:
    assert compute_retry_delay(attempts, base_minutes=1) == timedelta(minutes=minutes)


def test_retry_delay_exponent_is_capped() -> None:
    assert compute_retry_delay(500, base_minutes=1) == compute_retry_delay(20, base_minutes=1)


def test_failure_below_budget_reschedules() -> None:
    scheduled_for = NOW - timedelta(hours=1)
    decision = decide_failure(attempts=1, max_attempts=3, now=NOW, scheduled_for=scheduled_for, base_minutes=1)
    assert decision.status == JobStatus.PENDING
    assert decision.will_retry is True
    assert decision.scheduled_for == NOW + timedelta(minutes=2)


def test_failure_at_budget_is_permanent_and_keeps_schedule() -> None:
    scheduled_for = NOW - timedelta(hours=1)
    decision = decide_failure(attempts=3, max_attempts=3, now=NOW, scheduled_for=scheduled_for, base_minutes=1)
    assert decision.status == JobStatus.FAILED
    assert decision.will_retry is False
    assert decision.retry_delay is None
    assert decision.scheduled_for == scheduled_for


def test_job_state_transitions() -> None:
    assert can_transition("pending", "running")
    assert can_transition("running", "pending")
    assert can_transition("running", "completed")
    assert can_transition("running", "failed")
    assert not can_transition("pending", "completed")
    assert not can_transition("completed", "running")
    assert not can_transition("failed", "pending")
    assert not can_transition("bogus", "running")

    with pytest.raises(InvalidJobTransitionError):
        ensure_transition("completed", "pending")
