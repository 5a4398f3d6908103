import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from publisphere.application.services.job_store import claim_job, fetch_due_jobs, load_jobs
from publisphere.domain.errors import JobStoreUnavailableError
from publisphere.domain.models.job import Job
from publisphere.infrastructure.observability.metrics import JOBS_CLAIMED_TOTAL

logger = logging.getLogger(__name__)


def claim_due_jobs(db: Session, *, now: datetime, limit: int) -> list[Job]:
    """
    Select up to ``limit`` due jobs and claim each of them.

    The selection, the per-row claims and the reload of the claimed rows share
    one transaction: if the store fails anywhere before the commit lands,
    everything is rolled back and no job is left in ``running``.
    """
    try:
        due_jobs = fetch_due_jobs(db, now=now, limit=limit)
        claimed_ids = []
        for job in due_jobs:
            if claim_job(db, job_id=job.id, now=now):
                claimed_ids.append(job.id)
            else:
                logger.info("job_claim_lost job_id=%s", job.id)
        claimed = load_jobs(db, claimed_ids)
        # Detached before the commit so the claimed values are not expired by it.
        for job in claimed:
            db.expunge(job)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("job_claim_batch_failed now=%s", now.isoformat())
        raise JobStoreUnavailableError(f"Job store unavailable: {exc.__class__.__name__}") from exc

    JOBS_CLAIMED_TOTAL.inc(len(claimed))
    logger.info("job_claim_batch due=%s claimed=%s limit=%s", len(due_jobs), len(claimed), limit)
    return claimed
