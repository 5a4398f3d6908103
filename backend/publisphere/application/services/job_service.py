import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from publisphere.application.services.job_store import get_job, update_job
from publisphere.core.config import settings
from publisphere.domain.errors import InvalidJobTransitionError, JobNotFoundError
from publisphere.domain.models.job import Job, JobStatus

logger = logging.getLogger(__name__)

JOB_LOG_DEFAULT_LIMIT = 100


def enqueue_job(
    db: Session,
    *,
    job_type: str,
    content_item_id: UUID | None = None,
    client_id: UUID | None = None,
    job_data: dict | None = None,
    scheduled_for: datetime | None = None,
    max_attempts: int | None = None,
) -> Job:
    job = Job(
        job_type=job_type,
        content_item_id=content_item_id,
        client_id=client_id,
        job_data=job_data or {},
        status=JobStatus.PENDING.value,
        scheduled_for=scheduled_for or datetime.now(UTC),
        attempts=0,
        max_attempts=max_attempts or settings.job_default_max_attempts,
    )
    db.add(job)
    db.flush()
    logger.info(
        "job_enqueued job_id=%s job_type=%s scheduled_for=%s",
        job.id,
        job.job_type,
        job.scheduled_for.isoformat(),
    )
    return job


def list_jobs(
    db: Session,
    *,
    status: str | None = None,
    job_type: str | None = None,
    client_id: UUID | None = None,
    limit: int = JOB_LOG_DEFAULT_LIMIT,
) -> list[Job]:
    query = select(Job).order_by(Job.created_at.desc()).limit(limit)
    if status:
        query = query.where(Job.status == status)
    if job_type:
        query = query.where(Job.job_type == job_type)
    if client_id:
        query = query.where(Job.client_id == client_id)
    return list(db.execute(query).scalars().all())


def requeue_job(db: Session, *, job_id: UUID, now: datetime | None = None) -> Job:
    """Manual retry from the job logs: a permanently failed job starts over with a fresh attempt budget."""
    job = get_job(db, job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    if job.status != JobStatus.FAILED.value:
        raise InvalidJobTransitionError(job.status, JobStatus.PENDING.value)

    update_job(
        db,
        job_id=job.id,
        expected_status=JobStatus.FAILED.value,
        status=JobStatus.PENDING.value,
        attempts=0,
        error_message=None,
        scheduled_for=now or datetime.now(UTC),
    )
    db.flush()
    logger.info("job_requeued job_id=%s", job.id)
    return get_job(db, job.id)
