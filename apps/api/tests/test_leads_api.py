from __future__ import annotations

import uuid
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import get_current_actor
from app.core.database import Base, get_db
from app.main import app
from app.platform.security.context import ActorUser
from app.workflow.models import Brief


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
def client(db_session: Session) -> Generator[tuple[TestClient, Callable[[str | None], None]], None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    actors = {
        "owner": ActorUser(user_id="sales-1", roles=["sales"]),
        "caller": ActorUser(user_id="caller-7", roles=["sales"]),
        "other": ActorUser(user_id="sales-9", roles=["sales"]),
    }
    state: dict[str, str | None] = {"current": "owner"}

    def override_get_current_actor() -> ActorUser | None:
        name = state["current"]
        return actors[name] if name is not None else None

    def set_actor(name: str | None) -> None:
        state["current"] = name

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor
    with TestClient(app) as test_client:
        yield test_client, set_actor
    app.dependency_overrides.clear()


def _create_lead(client: TestClient, **overrides: object) -> dict:
    payload = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "mobile_numbers": ["98450 00001"],
        "lead_status": "new",
        "call_status": "not_called",
        "priority": "medium",
    }
    payload.update(overrides)
    response = client.post("/api/leads", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_lead_normalizes_mobile_numbers(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    lead = _create_lead(test_client, mobile_numbers=[" 98450 00001 ", "98450 00001", "", "98450 00002"])

    assert lead["mobile_numbers"] == ["98450 00001", "98450 00002"]
    assert lead["created_by"] == "sales-1"
    assert lead["call_attempt"] == 0


def test_create_lead_rejects_invalid_email(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    response = test_client.post("/api/leads", json={"name": "Broken", "email": "not-an-email"})

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"
    assert any(item["field"].endswith("email") for item in response.json()["details"])


def test_lead_update_records_call_outcome(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    lead = _create_lead(test_client)

    response = test_client.patch(
        f"/api/leads/{lead['id']}",
        json={"call_status": "connected", "priority": "high", "call_attempt": 1, "note": "asked for deck"},
    )
    assert response.status_code == 200

    history = test_client.get(f"/api/leads/{lead['id']}/assign-histories").json()
    assert history["meta"]["pagination"]["total"] == 1
    entry = history["data"][0]
    assert entry["changes"] == {
        "call_status": {"old": "not_called", "new": "connected"},
        "priority": {"old": "medium", "new": "high"},
    }
    assert entry["call_status"] == "connected"
    assert entry["priority"] == "high"
    assert entry["status"] == "new"
    assert entry["status_changed_at"] is None
    assert entry["note"] == "asked for deck"


def test_call_attempt_alone_is_not_tracked(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    lead = _create_lead(test_client)

    assert test_client.patch(f"/api/leads/{lead['id']}", json={"call_attempt": 3}).status_code == 200

    listing = test_client.get("/api/lead-assign-histories", params={"lead_id": lead["id"]}).json()
    assert listing["data"] == []


def test_reassignment_grants_and_keeps_visibility(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, set_actor = client
    lead = _create_lead(test_client)

    set_actor("caller")
    assert test_client.get(f"/api/leads/{lead['id']}").status_code == 404

    set_actor("owner")
    assert test_client.patch(f"/api/leads/{lead['id']}", json={"current_assign_user": "caller-7"}).status_code == 200

    set_actor("caller")
    assert test_client.get(f"/api/leads/{lead['id']}").status_code == 200
    assigned = test_client.get("/api/users/caller-7/lead-assign-histories/assigned-to").json()
    assert assigned["meta"]["pagination"]["total"] == 1
    assert assigned["data"][0]["actor_id"] == "sales-1"

    set_actor("other")
    assert test_client.get("/api/leads").json()["data"] == []
    assert test_client.get("/api/lead-assign-histories").json()["data"] == []


def test_list_filters_and_search(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    _create_lead(test_client, name="Asha Rao", lead_status="new")
    _create_lead(test_client, name="Vikram Shah", email="vikram@example.com", lead_status="qualified")

    qualified = test_client.get("/api/leads", params={"lead_status": "qualified"}).json()
    assert [item["name"] for item in qualified["data"]] == ["Vikram Shah"]

    searched = test_client.get("/api/leads", params={"q": "asha"}).json()
    assert [item["name"] for item in searched["data"]] == ["Asha Rao"]


def test_purging_lead_clears_brief_contact(
    client: tuple[TestClient, Callable[[str | None], None]],
    db_session: Session,
) -> None:
    test_client, _ = client
    lead = _create_lead(test_client)
    brief = test_client.post("/api/briefs", json={"name": "Diwali push", "contact_person_id": lead["id"]})
    assert brief.status_code == 201
    test_client.patch(f"/api/leads/{lead['id']}", json={"lead_status": "won"})

    assert test_client.delete(f"/api/leads/{lead['id']}/force").json() == {"status": "purged"}
    assert test_client.get(f"/api/leads/{lead['id']}", params={"with_trashed": True}).status_code == 404
    assert test_client.get("/api/lead-assign-histories").json()["data"] == []

    db_session.expire_all()
    stored = db_session.get(Brief, uuid.UUID(brief.json()["id"]))
    assert stored.contact_person_id is None


def test_brief_rejects_unknown_contact(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    response = test_client.post("/api/briefs", json={"name": "Orphan", "contact_person_id": str(uuid.uuid4())})

    assert response.status_code == 422
    assert response.json()["code"] == "brief_create_failed"
    assert response.json()["message"] == "contact person not found"
