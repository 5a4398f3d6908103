from dataclasses import dataclass
from datetime import datetime, timedelta

from publisphere.core.config import settings
from publisphere.domain.models.job import JobStatus

MAX_BACKOFF_EXPONENT = 20


@dataclass(frozen=True)
class RetryDecision:
    status: JobStatus
    scheduled_for: datetime
    retry_delay: timedelta | None

    @property
    def will_retry(self) -> bool:
        return self.status == JobStatus.PENDING


def compute_retry_delay(attempts: int, *, base_minutes: int | None = None) -> timedelta:
    """
    Exponential backoff keyed on the attempt count recorded at claim time.

    attempts=1 -> 2 minutes, attempts=2 -> 4 minutes, attempts=3 -> 8 minutes
    (with the default one-minute base).
    """
    unit = settings.job_retry_base_minutes if base_minutes is None else base_minutes
    exponent = min(max(0, attempts), MAX_BACKOFF_EXPONENT)
    return timedelta(minutes=unit * (2**exponent))


def decide_failure(
    *,
    attempts: int,
    max_attempts: int,
    now: datetime,
    scheduled_for: datetime,
    base_minutes: int | None = None,
) -> RetryDecision:
    if attempts < max_attempts:
        delay = compute_retry_delay(attempts, base_minutes=base_minutes)
        return RetryDecision(status=JobStatus.PENDING, scheduled_for=now + delay, retry_delay=delay)
    return RetryDecision(status=JobStatus.FAILED, scheduled_for=scheduled_for, retry_delay=None)
