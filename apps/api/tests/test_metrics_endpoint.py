from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import AuthUser, get_current_actor, get_current_user as auth_get_current_user
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.main import app
from app.platform.security.context import ActorUser


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_actor() -> ActorUser:
        return ActorUser(user_id="metrics-user", roles=["user"])

    def override_auth_user() -> AuthUser:
        return AuthUser(sub="metrics-admin", roles=["system.metrics.read"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_actor
    app.dependency_overrides[auth_get_current_user] = override_auth_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def test_metrics_endpoint_exposes_http_and_history_metrics(client: TestClient) -> None:
    health = client.get("/health")
    assert health.status_code == 200

    brief = client.post("/api/briefs", json={"name": "Metrics Brief", "brief_status": "new"})
    assert brief.status_code == 201
    updated = client.patch(f"/api/briefs/{brief.json()['id']}", json={"brief_status": "review"})
    assert updated.status_code == 200

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "workflow_history_writes_total" in body
    assert "workflow_history_write_duration_seconds" in body
    assert "activity_log_writes_total" in body

    assert 'path="/health"' in body
    assert 'path="/api/briefs/{id}"' in body
    assert 'entity_kind="brief",outcome="recorded"' in body


def test_metrics_require_permission(client: TestClient) -> None:
    app.dependency_overrides[auth_get_current_user] = lambda: AuthUser(sub="someone", roles=["user"])

    assert client.get("/metrics").status_code == 403


def test_metrics_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    assert client.get("/metrics").status_code == 404
