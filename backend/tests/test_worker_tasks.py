import os
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from publisphere.application.services.job_store import get_job
from publisphere.core.config import settings
from publisphere.domain import models  # noqa: F401
from publisphere.domain.models.job import Job
from publisphere.infrastructure.db.base import Base
from publisphere.infrastructure.observability.metrics import PROCESSOR_RUNS_REDIS_KEY
from workers import tasks

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")


class RecordingRedis:
    def __init__(self) -> None:
        self.values: dict[str, object] = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def incrby(self, key, amount):
        self.values[key] = int(self.values.get(key, 0)) + amount
        return self.values[key]

    def pipeline(self):
        return self

    def execute(self):
        return []

    def eval(self, script, numkeys, key, token):
        if self.values.get(key) == token:
            del self.values[key]
            return 1
        return 0


@pytest.fixture
def session_factory(monkeypatch):
    engine_kwargs = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    engine = create_engine(TEST_DATABASE_URL, **engine_kwargs)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(tasks, "SessionLocal", factory)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def redis_client(monkeypatch):
    client = RecordingRedis()
    monkeypatch.setattr(tasks, "get_redis_client", lambda: client)
    return client


def test_process_scheduled_jobs_runs_a_batch(session_factory, redis_client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "encryption_secret", "33" * 32)
    with session_factory() as db:
        job = Job(
            job_type="send_email",
            status="pending",
            scheduled_for=datetime.now(UTC) - timedelta(minutes=1),
            attempts=0,
            max_attempts=3,
            job_data={},
        )
        db.add(job)
        db.commit()
        job_id = job.id

    result = tasks.process_scheduled_jobs()

    assert result["processed"] == 1
    assert result["failed"] == 1
    assert settings.processor_last_run_key in redis_client.values
    assert tasks.PROCESSOR_LOCK_KEY not in redis_client.values
    assert redis_client.values[PROCESSOR_RUNS_REDIS_KEY] == 1
    with session_factory() as db:
        assert get_job(db, job_id).attempts == 1


def test_process_scheduled_jobs_skips_when_locked(session_factory, redis_client) -> None:
    redis_client.values[tasks.PROCESSOR_LOCK_KEY] = "other-worker"

    result = tasks.process_scheduled_jobs()

    assert result == {"success": True, "skipped": True}
    assert redis_client.values[tasks.PROCESSOR_LOCK_KEY] == "other-worker"


def test_process_scheduled_jobs_reports_missing_encryption_key(session_factory, redis_client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "encryption_secret", None)

    result = tasks.process_scheduled_jobs()

    assert result["success"] is False
    assert "ENCRYPTION_SECRET" in result["error"]
    assert tasks.PROCESSOR_LOCK_KEY not in redis_client.values


def test_worker_heartbeat_sets_key(redis_client) -> None:
    result = tasks.worker_heartbeat()

    assert redis_client.values[settings.worker_heartbeat_key] == result["heartbeat_at"]
