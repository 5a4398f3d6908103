import logging

import httpx
from sqlalchemy.orm import Session

from publisphere.domain.models.job import Job, JobType
from publisphere.integrations.job_handlers.article_publish_handler import ArticlePublishHandler
from publisphere.integrations.job_handlers.base_handler import (
    BaseJobHandler,
    HandlerResult,
    UnsupportedJobTypeError,
)
from publisphere.integrations.job_handlers.email_handler import SendEmailHandler
from publisphere.integrations.job_handlers.gmb_publish_handler import GMBPublishHandler

logger = logging.getLogger(__name__)

# generate_content has no handler; such jobs fail as an unknown type and are retried.
JOB_HANDLERS: dict[str, type[BaseJobHandler]] = {
    JobType.PUBLISH_ARTICLE.value: ArticlePublishHandler,
    JobType.PUBLISH_GMB.value: GMBPublishHandler,
    JobType.SEND_EMAIL.value: SendEmailHandler,
}


class UnknownJobTypeHandler(BaseJobHandler):
    def __init__(self, requested_job_type: str, db: Session, http_client: httpx.AsyncClient) -> None:
        super().__init__(db, http_client)
        self.requested_job_type = requested_job_type

    async def handle(self, job: Job) -> HandlerResult:
        raise UnsupportedJobTypeError(f"Unknown job type: {self.requested_job_type}")


def register_job_handler(handler_cls: type[BaseJobHandler]) -> type[BaseJobHandler]:
    """Add or replace the handler for ``handler_cls.job_type``."""
    JOB_HANDLERS[handler_cls.job_type] = handler_cls
    return handler_cls


def unregister_job_handler(job_type: str) -> None:
    JOB_HANDLERS.pop(job_type, None)


def get_job_handler(job_type: str, db: Session, http_client: httpx.AsyncClient) -> BaseJobHandler:
    handler_cls = JOB_HANDLERS.get(job_type)
    if handler_cls is None:
        logger.error("job_handler_missing job_type=%s", job_type)
        return UnknownJobTypeHandler(job_type, db, http_client)
    return handler_cls(db, http_client)
