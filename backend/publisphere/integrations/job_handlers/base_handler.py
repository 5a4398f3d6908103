from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

import httpx
from sqlalchemy.orm import Session

from publisphere.domain.models.job import Job


class JobHandlerError(RuntimeError):
    error_code: str = "job_handler_error"


class MissingPrerequisiteError(JobHandlerError):
    error_code = "missing_prerequisite"


class PublishTargetError(JobHandlerError):
    error_code = "publish_target_error"


class PublishTargetAuthError(PublishTargetError):
    error_code = "publish_target_auth_error"


class HandlerNotImplementedError(JobHandlerError):
    error_code = "handler_not_implemented"


class UnsupportedJobTypeError(JobHandlerError):
    error_code = "unsupported_job_type"


@dataclass(frozen=True)
class HandlerResult:
    metadata: dict = field(default_factory=dict)


class BaseJobHandler(ABC):
    """
    One handler per job type.

    ``handle`` either returns a ``HandlerResult`` after the external system
    accepted the work and the linked domain record was updated in ``db``,
    or raises. The processor owns commit/rollback and the job row itself.
    """

    job_type: ClassVar[str] = ""

    def __init__(self, db: Session, http_client: httpx.AsyncClient) -> None:
        self.db = db
        self.http_client = http_client

    @abstractmethod
    async def handle(self, job: Job) -> HandlerResult:
        raise NotImplementedError
