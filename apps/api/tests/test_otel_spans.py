from __future__ import annotations

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("OTEL_ENABLED", "true")

from app.core.auth import get_current_actor
from app.core.database import Base, get_db
from app.history.repository import HistoryRepository
from app.main import app
from app.otel import setup_inmemory_otel
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


@pytest.fixture()
def span_exporter() -> InMemorySpanExporter:
    exporter = setup_inmemory_otel("api")
    exporter.clear()
    return exporter


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_actor() -> ActorUser:
        return ActorUser(user_id="U2", roles=["user"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_brief(client: TestClient) -> str:
    response = client.post("/api/briefs", json={"name": "Traced brief", "assign_user_id": "U1"})
    assert response.status_code == 201
    return response.json()["id"]


def test_request_span_contains_correlation_id(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    response = client.post(
        "/api/leads",
        json={"name": "Span lead"},
        headers={"X-Correlation-Id": "otel-corr-1"},
    )
    assert response.status_code == 201

    spans = span_exporter.get_finished_spans()
    assert spans
    assert any(span.attributes.get("correlation_id") == "otel-corr-1" for span in spans)


def test_history_span_contains_entity_and_changed_fields(
    client: TestClient,
    span_exporter: InMemorySpanExporter,
) -> None:
    brief_id = _create_brief(client)

    response = client.patch(
        f"/api/briefs/{brief_id}",
        json={"assign_user_id": "U5", "brief_status": "review"},
        headers={"X-Correlation-Id": "otel-hist-1"},
    )
    assert response.status_code == 200

    history_spans = [span for span in span_exporter.get_finished_spans() if span.name == "history.record"]
    assert len(history_spans) == 1
    span = history_spans[0]
    assert span.attributes.get("entity_kind") == "brief"
    assert span.attributes.get("entity_id") == brief_id
    assert set(span.attributes.get("changed_fields")) == {"assign_user_id", "brief_status"}
    assert span.attributes.get("correlation_id") == "otel-hist-1"
    assert span.status.status_code is not StatusCode.ERROR


def test_failed_history_write_marks_span_as_error(
    client: TestClient,
    span_exporter: InMemorySpanExporter,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    brief_id = _create_brief(client)

    def failing_add(self: HistoryRepository, session: Session, entry: object) -> object:
        raise RuntimeError("history table unavailable")

    monkeypatch.setattr(HistoryRepository, "add", failing_add)
    response = client.patch(f"/api/briefs/{brief_id}", json={"assign_user_id": "U5"})
    assert response.status_code == 200

    history_spans = [span for span in span_exporter.get_finished_spans() if span.name == "history.record"]
    assert len(history_spans) == 1
    span = history_spans[0]
    assert span.status.status_code is StatusCode.ERROR
    assert any(event.name == "exception" for event in span.events)
