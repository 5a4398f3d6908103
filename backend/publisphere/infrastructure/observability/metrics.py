from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from time import perf_counter

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from redis.exceptions import RedisError
from starlette.responses import Response

from publisphere.core.config import settings

REQUESTS_TOTAL = Counter(
    "total_requests",
    "Total HTTP requests",
    labelnames=("method", "path", "status"),
)
REQUEST_LATENCY_SECONDS = Histogram(
    "request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path"),
)
DB_QUERY_DURATION_SECONDS = Histogram(
    "db_query_duration_seconds",
    "Database query duration in seconds",
    labelnames=("operation",),
)
REDIS_LATENCY_SECONDS = Histogram(
    "redis_latency_seconds",
    "Redis command latency in seconds",
    labelnames=("operation",),
)
JOBS_CLAIMED_TOTAL = Counter(
    "jobs_claimed_total",
    "Number of jobs claimed by the scheduled job processor",
)
JOBS_COMPLETED_TOTAL = Counter(
    "jobs_completed_total",
    "Number of jobs completed successfully",
    labelnames=("job_type",),
)
JOBS_FAILED_TOTAL = Counter(
    "jobs_failed_total",
    "Number of failed job attempts",
    labelnames=("job_type", "outcome"),
)
JOB_DURATION_SECONDS = Histogram(
    "job_duration_seconds",
    "Handler execution time per job in seconds",
    labelnames=("job_type",),
)
PROCESSOR_RUNS_TOTAL = Counter(
    "processor_runs_total",
    "Number of processor invocations executed by workers",
)

PROCESSOR_LAST_RUN_TIMESTAMP = Gauge(
    "processor_last_run_timestamp_seconds",
    "Unix time of the last processor run finished by a worker",
)

PROCESSOR_RUNS_REDIS_KEY = "metrics:processor_runs_total"
_last_processor_runs_value = 0.0


def record_request(method: str, path: str, status_code: int, duration_seconds: float) -> None:
    REQUESTS_TOTAL.labels(method=method, path=path, status=str(status_code)).inc()
    REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(duration_seconds)


def observe_db_query(duration_seconds: float, operation: str = "sql") -> None:
    DB_QUERY_DURATION_SECONDS.labels(operation=operation).observe(duration_seconds)


def observe_redis_latency(duration_seconds: float, operation: str) -> None:
    REDIS_LATENCY_SECONDS.labels(operation=operation).observe(duration_seconds)


def record_job_outcome(job_type: str, *, outcome: str, duration_seconds: float) -> None:
    JOB_DURATION_SECONDS.labels(job_type=job_type).observe(duration_seconds)
    if outcome == "completed":
        JOBS_COMPLETED_TOTAL.labels(job_type=job_type).inc()
    else:
        JOBS_FAILED_TOTAL.labels(job_type=job_type, outcome=outcome).inc()


@contextmanager
def measure_redis(operation: str):
    started_at = perf_counter()
    try:
        yield
    finally:
        observe_redis_latency(perf_counter() - started_at, operation=operation)


def record_processor_run(redis_client, *, finished_at: datetime) -> None:
    """
    Publish a worker-side processor run to Redis.

    Worker processes are not scraped; the API process mirrors these keys
    into its own registry on every ``/metrics`` request.
    """
    PROCESSOR_RUNS_TOTAL.inc()
    with measure_redis("processor_run_record"):
        pipeline = redis_client.pipeline()
        pipeline.incrby(PROCESSOR_RUNS_REDIS_KEY, 1)
        pipeline.set(settings.processor_last_run_key, finished_at.isoformat())
        pipeline.execute()


def _sync_processor_state_from_redis() -> None:
    global _last_processor_runs_value
    try:
        from publisphere.infrastructure.cache.redis_client import get_redis_client

        redis_client = get_redis_client()
        with measure_redis("metrics_processor_state_sync"):
            raw_runs, raw_last_run = redis_client.mget([PROCESSOR_RUNS_REDIS_KEY, settings.processor_last_run_key])
    except RedisError:
        return

    current_runs = float(raw_runs or 0.0)
    delta = current_runs - _last_processor_runs_value
    if delta > 0:
        PROCESSOR_RUNS_TOTAL.inc(delta)
    _last_processor_runs_value = current_runs

    if raw_last_run:
        try:
            PROCESSOR_LAST_RUN_TIMESTAMP.set(datetime.fromisoformat(raw_last_run).timestamp())
        except ValueError:
            pass


def metrics_response() -> Response:
    _sync_processor_state_from_redis()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
