from celery import Celery
from celery.schedules import schedule
from kombu import Queue

from publisphere.core.config import settings

celery_app = Celery(
    "publisphere_jobs",
    broker=settings.cache_redis_url,
    backend=settings.cache_redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_default_queue="scheduler",
    task_queues=(Queue("scheduler"),),
    task_routes={
        "workers.tasks.process_scheduled_jobs": {"queue": "scheduler"},
        "workers.tasks.worker_heartbeat": {"queue": "scheduler"},
    },
    beat_schedule={
        "process-scheduled-jobs": {
            "task": "workers.tasks.process_scheduled_jobs",
            "schedule": schedule(settings.job_process_interval_seconds),
            "options": {"queue": "scheduler"},
        },
        "worker-heartbeat-every-15s": {
            "task": "workers.tasks.worker_heartbeat",
            "schedule": schedule(15.0),
            "options": {"queue": "scheduler"},
        },
    },
)

celery_app.autodiscover_tasks(["workers"])
