import asyncio
import logging
from datetime import UTC, datetime
from uuid import uuid4

from redis.exceptions import RedisError

from publisphere.application.services.job_processor import process_due_jobs
from publisphere.core.config import settings
from publisphere.core.security import EncryptionNotConfiguredError
from publisphere.domain.errors import JobStoreUnavailableError
from publisphere.infrastructure.cache.redis_client import get_redis_client
from publisphere.infrastructure.db.session import SessionLocal
from publisphere.infrastructure.observability.metrics import measure_redis, record_processor_run
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)

PROCESSOR_LOCK_KEY = "lock:jobs:processor"


def _processor_lock_ttl_seconds() -> int:
    return max(30, int(settings.job_process_interval_seconds * 2))


def _acquire_processor_lock(redis_client) -> str | None:
    token = str(uuid4())
    with measure_redis("processor_lock_acquire"):
        acquired = redis_client.set(PROCESSOR_LOCK_KEY, token, nx=True, ex=_processor_lock_ttl_seconds())
    if not acquired:
        return None
    return token


def _release_processor_lock(redis_client, token: str) -> None:
    try:
        with measure_redis("processor_lock_release"):
            redis_client.eval(
                """
                if redis.call("get", KEYS[1]) == ARGV[1] then
                    return redis.call("del", KEYS[1])
                else
                    return 0
                end
                """,
                1,
                PROCESSOR_LOCK_KEY,
                token,
            )
    except RedisError:
        logger.warning("processor_lock_release_failed")


def _run_processor() -> dict:
    with SessionLocal() as db:
        try:
            summary = asyncio.run(process_due_jobs(db))
        except (EncryptionNotConfiguredError, JobStoreUnavailableError) as exc:
            logger.error("job_processor_aborted reason=%s detail=%s", exc.__class__.__name__, exc)
            return {"success": False, "error": str(exc)}
    return summary.to_dict()


@celery_app.task(name="workers.tasks.worker_heartbeat")
def worker_heartbeat() -> dict:
    redis_client = get_redis_client()
    now = datetime.now(UTC).isoformat()
    with measure_redis("worker_heartbeat_set"):
        redis_client.set(
            settings.worker_heartbeat_key,
            now,
            ex=max(15, settings.worker_heartbeat_ttl_seconds),
        )
    return {"heartbeat_at": now}


@celery_app.task(name="workers.tasks.process_scheduled_jobs")
def process_scheduled_jobs() -> dict:
    redis_client = get_redis_client()
    lock_token = None
    try:
        lock_token = _acquire_processor_lock(redis_client)
    except RedisError:
        # Claims are compare-and-set, so running without the lock is still safe.
        logger.warning("processor_lock_unavailable")
    else:
        if lock_token is None:
            logger.info("job_processor_skipped reason=already_running")
            return {"success": True, "skipped": True}

    try:
        result = _run_processor()
    finally:
        if lock_token is not None:
            _release_processor_lock(redis_client, lock_token)

    try:
        record_processor_run(redis_client, finished_at=datetime.now(UTC))
    except RedisError:
        logger.warning("processor_last_run_not_recorded")

    logger.info(
        "job_processor_task_completed processed=%s succeeded=%s failed=%s",
        result.get("processed", 0),
        result.get("succeeded", 0),
        result.get("failed", 0),
    )
    return result
