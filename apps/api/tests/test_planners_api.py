from __future__ import annotations

import uuid
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import get_current_actor
from app.core.database import Base, get_db
from app.history.models import PlannerHistory
from app.main import app
from app.platform.security.context import ActorUser
from app.workflow.models import Planner


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
        "manager": ActorUser(user_id="mgr-1", roles=["manager"]),
        "planner": ActorUser(user_id="plan-3", roles=["planner"]),
        "outsider": ActorUser(user_id="sales-9", roles=["sales"]),
        "admin": ActorUser(user_id="admin-1", roles=["super_admin"], is_super_admin=True),
    }
    state: dict[str, str | None] = {"current": "manager"}

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


def _create_brief_for_planner(client: TestClient) -> str:
    response = client.post("/api/briefs", json={"name": "Q4 outdoor", "assign_user_id": "plan-3"})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _create_planner(client: TestClient, brief_id: str) -> dict:
    response = client.post(
        "/api/planners",
        json={"brief_id": brief_id, "planner_status": "draft", "submitted_plan": ["plan-v1.pdf", "plan-v1.pdf"]},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_planner_requires_visible_brief(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, set_actor = client
    brief_id = _create_brief_for_planner(test_client)

    set_actor("outsider")
    hidden = test_client.post("/api/planners", json={"brief_id": brief_id})
    assert hidden.status_code == 404
    assert hidden.json()["code"] == "planner_create_failed"

    missing = test_client.post("/api/planners", json={"brief_id": str(uuid.uuid4())})
    assert missing.status_code == 404

    set_actor("planner")
    planner = _create_planner(test_client, brief_id)
    assert planner["submitted_plan"] == ["plan-v1.pdf"]
    assert planner["created_by"] == "plan-3"


def test_planner_cannot_target_deleted_brief(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, _ = client
    brief_id = _create_brief_for_planner(test_client)
    assert test_client.delete(f"/api/briefs/{brief_id}").status_code == 200

    response = test_client.post("/api/planners", json={"brief_id": brief_id})
    assert response.status_code == 404
    assert response.json()["message"] == "brief not found"


def test_planner_history_tracks_plan_revisions(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, set_actor = client
    brief_id = _create_brief_for_planner(test_client)
    set_actor("planner")
    planner = _create_planner(test_client, brief_id)

    revised = test_client.put(
        f"/api/planners/{planner['id']}",
        json={"submitted_plan": ["plan-v2.pdf"], "backup_plan": "plan-v1.pdf", "planner_status": "submitted"},
    )
    assert revised.status_code == 200

    history = test_client.get(f"/api/planners/{planner['id']}/histories").json()
    assert history["meta"]["pagination"]["total"] == 1
    entry = history["data"][0]
    assert entry["assign_to_id"] is None
    assert entry["status"] == "submitted"
    assert entry["status_changed_at"] is not None
    assert entry["submitted_plan"] == ["plan-v2.pdf"]
    assert entry["backup_plan"] == "plan-v1.pdf"
    assert entry["changes"]["submitted_plan"] == {"old": ["plan-v1.pdf"], "new": ["plan-v2.pdf"]}

    comment_only = test_client.patch(f"/api/planners/{planner['id']}", json={"comment": "client prefers v2"})
    assert comment_only.status_code == 200
    assert test_client.get("/api/planner-histories").json()["meta"]["pagination"]["total"] == 1


def test_planners_are_visible_to_creator_only(client: tuple[TestClient, Callable[[str | None], None]]) -> None:
    test_client, set_actor = client
    brief_id = _create_brief_for_planner(test_client)
    set_actor("planner")
    planner = _create_planner(test_client, brief_id)
    test_client.patch(f"/api/planners/{planner['id']}", json={"planner_status": "submitted"})

    set_actor("manager")
    assert test_client.get(f"/api/planners/{planner['id']}").status_code == 404
    assert test_client.get("/api/planner-histories").json()["data"] == []

    set_actor("admin")
    assert test_client.get(f"/api/planners/{planner['id']}").status_code == 200
    listing = test_client.get("/api/planners", params={"brief_id": brief_id}).json()
    assert listing["meta"]["pagination"]["total"] == 1


def test_purging_brief_removes_planners_and_their_history(
    client: tuple[TestClient, Callable[[str | None], None]],
    db_session: Session,
) -> None:
    test_client, set_actor = client
    brief_id = _create_brief_for_planner(test_client)
    set_actor("planner")
    planner = _create_planner(test_client, brief_id)
    test_client.patch(f"/api/planners/{planner['id']}", json={"planner_status": "submitted"})

    set_actor("manager")
    assert test_client.delete(f"/api/briefs/{brief_id}/force").json() == {"status": "purged"}

    db_session.expire_all()
    assert db_session.get(Planner, uuid.UUID(planner["id"])) is None
    assert db_session.scalar(select(func.count()).select_from(PlannerHistory)) == 0
