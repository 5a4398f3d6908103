from time import perf_counter

from fastapi import APIRouter, Response, status
from redis.exceptions import RedisError
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from publisphere.core.config import settings
from publisphere.domain.models.job import Job, JobStatus
from publisphere.infrastructure.cache.redis_client import get_redis_client
from publisphere.infrastructure.db.session import SessionLocal
from publisphere.infrastructure.observability.metrics import measure_redis, metrics_response

router = APIRouter()


def _elapsed_ms(started_at: float) -> float:
    return round((perf_counter() - started_at) * 1000, 2)


def _database_status() -> dict:
    started_at = perf_counter()
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            queue_depth = dict(
                db.execute(
                    select(Job.status, func.count())
                    .where(Job.status.in_([JobStatus.PENDING.value, JobStatus.RUNNING.value]))
                    .group_by(Job.status)
                ).all()
            )
    except SQLAlchemyError:
        return {"database": "down", "db_latency_ms": None, "jobs_pending": None, "jobs_running": None}
    return {
        "database": "up",
        "db_latency_ms": _elapsed_ms(started_at),
        "jobs_pending": queue_depth.get(JobStatus.PENDING.value, 0),
        "jobs_running": queue_depth.get(JobStatus.RUNNING.value, 0),
    }


def _redis_status() -> dict:
    started_at = perf_counter()
    try:
        redis_client = get_redis_client()
        with measure_redis("health_ping"):
            redis_client.ping()
        latency_ms = _elapsed_ms(started_at)
        with measure_redis("health_worker_state"):
            worker_alive, last_run = redis_client.mget(
                [settings.worker_heartbeat_key, settings.processor_last_run_key]
            )
    except RedisError:
        return {"redis": "down", "redis_latency_ms": None, "worker_alive": False, "processor_last_run": None}
    return {
        "redis": "up",
        "redis_latency_ms": latency_ms,
        "worker_alive": worker_alive is not None,
        "processor_last_run": last_run,
    }


@router.get("/health", status_code=status.HTTP_200_OK)
def health_check() -> dict:
    services = {"api": "up", **_database_status(), **_redis_status()}
    healthy = services["database"] == "up" and services["redis"] == "up" and services["worker_alive"]
    return {"status": "ok" if healthy else "degraded", "services": services}


@router.get("/ready", status_code=status.HTTP_200_OK)
def readiness_check(response: Response) -> dict:
    # Worker liveness is reported but does not gate readiness.
    services = health_check()["services"]
    if services["database"] != "up" or services["redis"] != "up":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "services": services}
    return {"status": "ready", "services": services}


@router.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_response()
