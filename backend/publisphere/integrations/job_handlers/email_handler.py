import logging

from publisphere.domain.models.job import Job, JobType
from publisphere.integrations.job_handlers.base_handler import (
    BaseJobHandler,
    HandlerNotImplementedError,
    HandlerResult,
)

logger = logging.getLogger(__name__)


class SendEmailHandler(BaseJobHandler):
    job_type = JobType.SEND_EMAIL.value

    async def handle(self, job: Job) -> HandlerResult:
        logger.info("send_email_not_implemented job_id=%s", job.id)
        raise HandlerNotImplementedError("Email sending not yet implemented")
