import os
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from publisphere.application.services.job_store import get_job
from publisphere.core.config import settings
from publisphere.domain.models.job import Job
from publisphere.infrastructure.db.base import Base
from publisphere.infrastructure.db.session import get_db
from publisphere.interfaces.api.deps import get_http_client
from main import app

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
CRON_SECRET = "cron-secret-for-tests"
AUTH_HEADERS = {"Authorization": f"Bearer {CRON_SECRET}"}


@pytest.fixture(autouse=True)
def secrets(monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", CRON_SECRET)
    monkeypatch.setattr(settings, "encryption_secret", "22" * 32)


@pytest.fixture
def db_session():
    engine_kwargs = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    engine = create_engine(TEST_DATABASE_URL, **engine_kwargs)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    async def override_get_http_client():
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("outbound requests disabled in tests", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(unreachable)) as http_client:
            yield http_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _add_job(db, job_type: str = "send_email", *, status: str = "pending", attempts: int = 0) -> UUID:
    job = Job(
        job_type=job_type,
        status=status,
        scheduled_for=datetime.now(UTC) - timedelta(minutes=5),
        attempts=attempts,
        max_attempts=3,
        job_data={},
    )
    db.add(job)
    db.commit()
    return job.id


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": CRON_SECRET}])
def test_process_requires_cron_secret(client: TestClient, db_session, headers: dict) -> None:
    job_id = _add_job(db_session)

    response = client.post("/jobs/process", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}
    job = get_job(db_session, job_id)
    assert job.status == "pending"
    assert job.attempts == 0


def test_process_without_due_jobs(client: TestClient) -> None:
    response = client.post("/jobs/process", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "processed": 0,
        "succeeded": 0,
        "failed": 0,
        "results": [],
        "message": "No jobs to process",
    }


def test_process_reports_per_job_results(client: TestClient, db_session) -> None:
    job_id = _add_job(db_session, "send_email")

    response = client.post("/jobs/process", headers=AUTH_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["processed"] == 1
    assert body["succeeded"] == 0
    assert body["failed"] == 1
    assert body["results"] == [
        {"id": str(job_id), "status": "failed", "error": "Email sending not yet implemented"}
    ]
    assert get_job(db_session, job_id).status == "pending"


def test_process_without_encryption_key_is_unavailable(client: TestClient, db_session, monkeypatch) -> None:
    job_id = _add_job(db_session)
    monkeypatch.setattr(settings, "encryption_secret", None)

    response = client.post("/jobs/process", headers=AUTH_HEADERS)

    assert response.status_code == 503
    assert response.json()["success"] is False
    assert "ENCRYPTION_SECRET" in response.json()["error"]
    job = get_job(db_session, job_id)
    assert job.status == "pending"
    assert job.attempts == 0


def test_cron_secret_unset_allows_trigger(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(settings, "cron_secret", None)

    response = client.post("/jobs/process")

    assert response.status_code == 200
    assert response.json()["processed"] == 0


def test_enqueue_and_list_jobs(client: TestClient) -> None:
    client_id = str(uuid4())
    created = client.post(
        "/jobs",
        headers=AUTH_HEADERS,
        json={"job_type": "send_email", "client_id": client_id, "job_data": {"to": "owner@example.com"}},
    )
    assert created.status_code == 201
    job = created.json()
    assert job["status"] == "pending"
    assert job["attempts"] == 0
    assert job["max_attempts"] == settings.job_default_max_attempts
    assert job["job_data"] == {"to": "owner@example.com"}

    listed = client.get("/jobs", headers=AUTH_HEADERS, params={"status": "pending"})
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()["items"]] == [job["id"]]

    filtered = client.get("/jobs", headers=AUTH_HEADERS, params={"status": "failed"})
    assert filtered.json()["items"] == []

    by_client = client.get("/jobs", headers=AUTH_HEADERS, params={"client_id": client_id})
    assert len(by_client.json()["items"]) == 1


def test_enqueue_rejects_unknown_job_type(client: TestClient) -> None:
    response = client.post("/jobs", headers=AUTH_HEADERS, json={"job_type": "fax_document"})

    assert response.status_code == 422
    assert response.json()["error_code"] == "validation_error"


def test_retry_failed_job(client: TestClient, db_session) -> None:
    failed_id = _add_job(db_session, status="failed", attempts=3)
    pending_id = _add_job(db_session)

    retried = client.post(f"/jobs/{failed_id}/retry", headers=AUTH_HEADERS)
    assert retried.status_code == 200
    assert retried.json()["status"] == "pending"
    assert retried.json()["attempts"] == 0
    assert retried.json()["error_message"] is None

    conflict = client.post(f"/jobs/{pending_id}/retry", headers=AUTH_HEADERS)
    assert conflict.status_code == 409
    assert conflict.json()["error_code"] == "invalid_job_transition"

    missing = client.post(f"/jobs/{uuid4()}/retry", headers=AUTH_HEADERS)
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "job_not_found"


def test_job_routes_require_cron_secret(client: TestClient) -> None:
    assert client.get("/jobs").status_code == 401
    assert client.post("/jobs", json={"job_type": "send_email"}).status_code == 401


def test_responses_carry_request_id(client: TestClient) -> None:
    response = client.post("/jobs/process", headers={**AUTH_HEADERS, "X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
