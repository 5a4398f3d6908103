import logging
from datetime import datetime
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from publisphere.application.services.job_processor import process_due_jobs
from publisphere.application.services.job_service import enqueue_job, list_jobs, requeue_job
from publisphere.core.security import EncryptionNotConfiguredError
from publisphere.domain.errors import JobStoreUnavailableError
from publisphere.domain.models.job import JobStatus, JobType
from publisphere.infrastructure.db.session import get_db
from publisphere.interfaces.api.deps import get_http_client, require_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[Depends(require_cron_secret)])


class JobCreateRequest(BaseModel):
    job_type: JobType
    content_item_id: UUID | None = None
    client_id: UUID | None = None
    job_data: dict = Field(default_factory=dict)
    scheduled_for: datetime | None = None
    max_attempts: int | None = Field(default=None, ge=1, le=10)


class JobRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_type: str
    status: str
    client_id: UUID | None
    content_item_id: UUID | None
    scheduled_for: datetime
    attempts: int
    max_attempts: int
    started_at: datetime | None
    completed_at: datetime | None
    error_message: str | None
    job_data: dict
    created_at: datetime


def _processor_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/process")
async def process_jobs(
    db: Session = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    try:
        summary = await process_due_jobs(db, http_client=http_client)
    except EncryptionNotConfiguredError as exc:
        logger.error("job_processor_aborted reason=encryption_unavailable detail=%s", exc)
        return _processor_error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
    except JobStoreUnavailableError as exc:
        logger.error("job_processor_aborted reason=store_unavailable detail=%s", exc)
        return _processor_error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
    return summary.to_dict()


@router.get("")
def get_jobs(
    status_filter: JobStatus | None = Query(default=None, alias="status"),
    job_type: str | None = Query(default=None, max_length=64),
    client_id: UUID | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> dict:
    jobs = list_jobs(
        db,
        status=status_filter.value if status_filter else None,
        job_type=job_type,
        client_id=client_id,
        limit=limit,
    )
    return {"items": [JobRead.model_validate(job).model_dump(mode="json") for job in jobs]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_job(payload: JobCreateRequest, db: Session = Depends(get_db)) -> JobRead:
    job = enqueue_job(
        db,
        job_type=payload.job_type.value,
        content_item_id=payload.content_item_id,
        client_id=payload.client_id,
        job_data=payload.job_data,
        scheduled_for=payload.scheduled_for,
        max_attempts=payload.max_attempts,
    )
    db.commit()
    db.refresh(job)
    return JobRead.model_validate(job)


@router.post("/{job_id}/retry")
def retry_job(job_id: UUID, db: Session = Depends(get_db)) -> JobRead:
    job = requeue_job(db, job_id=job_id)
    db.commit()
    db.refresh(job)
    return JobRead.model_validate(job)
