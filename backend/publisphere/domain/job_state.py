from publisphere.domain.errors import InvalidJobTransitionError
from publisphere.domain.models.job import JobStatus

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.PENDING, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    try:
        current_status = JobStatus(current)
        target_status = JobStatus(target)
    except ValueError:
        return False
    return target_status in ALLOWED_TRANSITIONS[current_status]


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidJobTransitionError(current, target)
