import logging

from publisphere.domain.models.job import Job, JobType
from publisphere.integrations.job_handlers.base_handler import (
    BaseJobHandler,
    HandlerNotImplementedError,
    HandlerResult,
)

logger = logging.getLogger(__name__)


class GMBPublishHandler(BaseJobHandler):
    job_type = JobType.PUBLISH_GMB.value

    async def handle(self, job: Job) -> HandlerResult:
        # TODO: call the Business Profile localPosts API once GMB account connection is stored per client.
        logger.info("gmb_publish_not_implemented job_id=%s", job.id)
        raise HandlerNotImplementedError("GMB publishing not yet implemented")
