from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from publisphere.domain.models.job import Job, JobStatus


def fetch_due_jobs(db: Session, *, now: datetime, limit: int) -> list[Job]:
    """Oldest-due first, so a backlog never starves the earliest jobs."""
    return list(
        db.execute(
            select(Job)
            .where(
                Job.status == JobStatus.PENDING.value,
                Job.scheduled_for <= now,
                Job.attempts < Job.max_attempts,
            )
            .order_by(Job.scheduled_for.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        .scalars()
        .all()
    )


def claim_job(db: Session, *, job_id: UUID, now: datetime) -> bool:
    """
    Compare-and-set claim of a single row.

    Only a row still in ``pending`` is moved to ``running``; a concurrent
    invocation that already claimed it makes this update match zero rows.
    """
    result = db.execute(
        update(Job)
        .where(
            Job.id == job_id,
            Job.status == JobStatus.PENDING.value,
            Job.attempts < Job.max_attempts,
        )
        .values(
            status=JobStatus.RUNNING.value,
            started_at=now,
            attempts=Job.attempts + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def update_job(db: Session, *, job_id: UUID, expected_status: str | None = None, **fields) -> bool:
    conditions = [Job.id == job_id]
    if expected_status is not None:
        conditions.append(Job.status == expected_status)
    result = db.execute(
        update(Job).where(*conditions).values(**fields).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_job(db: Session, job_id: UUID) -> Job | None:
    return db.execute(
        select(Job).where(Job.id == job_id).execution_options(populate_existing=True)
    ).scalar_one_or_none()


def load_jobs(db: Session, job_ids: list[UUID]) -> list[Job]:
    if not job_ids:
        return []
    return list(
        db.execute(
            select(Job)
            .where(Job.id.in_(job_ids))
            .order_by(Job.scheduled_for.asc())
            .execution_options(populate_existing=True)
        )
        .scalars()
        .all()
    )
