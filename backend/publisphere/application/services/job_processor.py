import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from time import perf_counter
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from publisphere.application.services.job_claimer import claim_due_jobs
from publisphere.application.services.job_store import update_job
from publisphere.application.services.retry_policy import RetryDecision, decide_failure
from publisphere.core.config import settings
from publisphere.core.security import ensure_encryption_configured
from publisphere.domain.job_state import ensure_transition
from publisphere.domain.models.job import Job, JobStatus
from publisphere.infrastructure.logging.context import reset_job_id, set_job_id
from publisphere.infrastructure.observability.metrics import record_job_outcome
from publisphere.integrations.job_handlers.registry import get_job_handler

logger = logging.getLogger(__name__)

RESULT_SUCCESS = "success"
RESULT_FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class JobResult:
    id: UUID
    status: str
    error: str | None = None

    def to_dict(self) -> dict:
        payload: dict = {"id": str(self.id), "status": self.status}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ProcessSummary:
    results: list[JobResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.status == RESULT_SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if result.status == RESULT_FAILED)

    def to_dict(self) -> dict:
        payload = {
            "success": True,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [result.to_dict() for result in self.results],
        }
        if not self.results:
            payload["message"] = "No jobs to process"
        return payload


def _describe_error(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or exc.__class__.__name__


def _complete_job(db: Session, job: Job, *, now: datetime) -> None:
    ensure_transition(job.status, JobStatus.COMPLETED)
    updated = update_job(
        db,
        job_id=job.id,
        expected_status=JobStatus.RUNNING.value,
        status=JobStatus.COMPLETED.value,
        completed_at=now,
    )
    db.commit()
    if not updated:
        logger.warning("job_state_conflict job_id=%s target=%s", job.id, JobStatus.COMPLETED.value)


def _fail_job(db: Session, job: Job, *, error: str, now: datetime) -> RetryDecision:
    decision = decide_failure(
        attempts=job.attempts,
        max_attempts=job.max_attempts,
        now=now,
        scheduled_for=job.scheduled_for,
    )
    ensure_transition(job.status, decision.status)
    values: dict = {"status": decision.status.value, "error_message": error}
    if decision.will_retry:
        values["scheduled_for"] = decision.scheduled_for
    updated = update_job(db, job_id=job.id, expected_status=JobStatus.RUNNING.value, **values)
    db.commit()
    if not updated:
        logger.warning("job_state_conflict job_id=%s target=%s", job.id, decision.status.value)
    return decision


async def execute_job(
    db: Session,
    job: Job,
    *,
    http_client: httpx.AsyncClient,
    clock: Callable[[], datetime] = utcnow,
) -> JobResult:
    """
    Run one claimed job and write its outcome back.

    Never raises for handler errors: the failure is recorded on the job row
    and reported in the returned result so sibling jobs keep running. A
    handler that succeeded is never sent down the retry path, even when its
    completion cannot be written back.
    """
    log_token = set_job_id(str(job.id))
    started_at = perf_counter()
    try:
        try:
            handler = get_job_handler(job.job_type, db, http_client)
            handler_result = await handler.handle(job)
        except Exception as exc:
            db.rollback()
            error = _describe_error(exc)
            logger.exception(
                "job_failed job_id=%s job_type=%s attempts=%s max_attempts=%s",
                job.id,
                job.job_type,
                job.attempts,
                job.max_attempts,
            )
            try:
                decision = _fail_job(db, job, error=error, now=clock())
            except SQLAlchemyError:
                db.rollback()
                logger.exception("job_failure_writeback_failed job_id=%s", job.id)
                record_job_outcome(
                    job.job_type, outcome="writeback_failed", duration_seconds=perf_counter() - started_at
                )
                return JobResult(id=job.id, status=RESULT_FAILED, error=error)

            outcome = "retry" if decision.will_retry else "final"
            record_job_outcome(job.job_type, outcome=outcome, duration_seconds=perf_counter() - started_at)
            logger.info(
                "job_failure_recorded job_id=%s status=%s next_run=%s",
                job.id,
                decision.status.value,
                decision.scheduled_for.isoformat(),
            )
            return JobResult(id=job.id, status=RESULT_FAILED, error=error)

        try:
            _complete_job(db, job, now=clock())
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(
                "job_completion_writeback_failed job_id=%s job_type=%s metadata=%s",
                job.id,
                job.job_type,
                handler_result.metadata,
            )
            record_job_outcome(job.job_type, outcome="writeback_failed", duration_seconds=perf_counter() - started_at)
            return JobResult(
                id=job.id,
                status=RESULT_FAILED,
                error=f"Job completion could not be recorded: {exc.__class__.__name__}",
            )

        record_job_outcome(job.job_type, outcome="completed", duration_seconds=perf_counter() - started_at)
        logger.info(
            "job_completed job_id=%s job_type=%s attempts=%s metadata=%s",
            job.id,
            job.job_type,
            job.attempts,
            handler_result.metadata,
        )
        return JobResult(id=job.id, status=RESULT_SUCCESS)
    finally:
        reset_job_id(log_token)


async def process_due_jobs(
    db: Session,
    *,
    http_client: httpx.AsyncClient | None = None,
    clock: Callable[[], datetime] = utcnow,
    limit: int | None = None,
) -> ProcessSummary:
    """
    One processor invocation: claim a batch of due jobs and run them one by one.

    Raises ``EncryptionNotConfiguredError`` or ``JobStoreUnavailableError``
    before any job is mutated; per-job failures are folded into the summary.
    """
    ensure_encryption_configured()
    batch_limit = limit if limit is not None else settings.job_batch_limit

    claimed_jobs = claim_due_jobs(db, now=clock(), limit=batch_limit)
    if not claimed_jobs:
        logger.info("job_processor_run processed=0")
        return ProcessSummary()

    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=settings.wordpress_timeout_seconds)
    results: list[JobResult] = []
    try:
        for job in claimed_jobs:
            results.append(await execute_job(db, job, http_client=client, clock=clock))
    finally:
        if owns_client:
            await client.aclose()

    summary = ProcessSummary(results=results)
    logger.info(
        "job_processor_run processed=%s succeeded=%s failed=%s",
        summary.processed,
        summary.succeeded,
        summary.failed,
    )
    return summary
