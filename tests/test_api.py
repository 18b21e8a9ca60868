"""
HTTP API tests through FastAPI's TestClient.

The responder and the async database session are replaced through
dependency overrides; both point at the same SQLite file so rows written by
the pipeline are visible to the read endpoints.
"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from autoresponder.api import admin as admin_api
from autoresponder.api import auth as auth_api
from autoresponder.api import events as events_api
from autoresponder.api.deps import get_db_session, get_responder_dep
from autoresponder.db.session import Base
from autoresponder.main import app
from autoresponder.models import ResponseStatus


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "api.db"


@pytest.fixture
def session_factory(db_path):
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def client(responder, db_path):
    async_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)

    async def override_db():
        async with AsyncSession(async_engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_responder_dep] = lambda: responder
    app.dependency_overrides[get_db_session] = override_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeTask:
    def __init__(self):
        self.calls = []

    def delay(self, *args):
        self.calls.append(args)
        return SimpleNamespace(id="task-123")


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAuth:
    def test_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(auth_api.settings, "api_key", "secret")
        assert client.get("/api/v1/status").status_code == 401
        assert client.get("/api/v1/status", headers={"X-API-Key": "secret"}).status_code == 200
        assert client.get("/api/v1/status", headers={"Authorization": "Bearer secret"}).status_code == 200


class TestEvents:
    def test_event_dispatched_to_worker(self, client, monkeypatch):
        task = FakeTask()
        monkeypatch.setattr(events_api, "handle_review_event_task", task)

        response = client.post("/api/v1/events/reviews", json={"review_id": 5, "event": "held"})

        assert response.status_code == 202
        assert response.json()["task_id"] == "task-123"
        assert task.calls == [(5, "held")]

    def test_unknown_event_rejected(self, client):
        response = client.post("/api/v1/events/reviews", json={"review_id": 5, "event": "deleted"})
        assert response.status_code == 422


class TestResponses:
    def test_generate_and_read_back(self, client, storefront, responder):
        storefront.add_review(1, "Great product", rating=5)

        body = client.post("/api/v1/responses/generate", json={"review_id": 1}).json()
        assert body["success"] is True
        assert body["response_text"] == "Thank you so much for your review."

        pending = client.get("/api/v1/responses/pending").json()
        assert pending["total"] == 1
        response_id = pending["responses"][0]["id"]

        detail = client.get(f"/api/v1/responses/{response_id}").json()
        assert detail["status"] == "pending"
        assert detail["ai_provider"] == "openai"

    def test_generate_reports_publish_failure(self, client, storefront, responder):
        storefront.add_review(1, "Great product", rating=5)
        storefront.fail_writes = True
        responder.options.workflow_mode = "auto"

        body = client.post("/api/v1/responses/generate", json={"review_id": 1}).json()

        assert body["success"] is True
        assert body["response_text"] == "Thank you so much for your review."
        assert body["message"] == (
            "Response generated, but the reply could not be published: Reply could not be published"
        )

    def test_generate_reports_fallback(self, client, storefront, providers):
        storefront.add_review(1, "Great product", rating=5)
        providers["openai"].available = False

        body = client.post("/api/v1/responses/generate", json={"review_id": 1}).json()

        assert body["provider"] == "gemini"
        assert body["used_fallback"] is True
        assert body["message"] == "Response generated successfully"

    def test_generate_failure(self, client):
        body = client.post("/api/v1/responses/generate", json={"review_id": 404}).json()
        assert body["success"] is False
        assert body["response_text"] is None

    def test_get_unknown_response(self, client):
        assert client.get("/api/v1/responses/999").status_code == 404

    def test_approve_requires_target(self, client):
        response = client.post("/api/v1/responses/approve", json={"actor_id": "admin-1"})
        assert response.status_code == 422

    def test_approve_and_reject(self, client, storefront, responder):
        storefront.add_review(1, "Great product", rating=5)
        responder.generate(1)

        approved = client.post(
            "/api/v1/responses/approve",
            json={"review_id": 1, "actor_id": "admin-1"},
        ).json()
        assert approved["success"] is True

        response_id = responder.store.latest_for_review(1).id
        rejected = client.post(
            "/api/v1/responses/reject",
            json={"response_id": response_id, "reason": "Changed my mind"},
        ).json()
        assert rejected["success"] is True
        assert responder.store.get(response_id).status == ResponseStatus.REJECTED

    def test_feedback(self, client, responder):
        response_id = responder.store.save(1, 10, "Thanks.", "openai", "gpt-3.5-turbo", 0.5)

        ok = client.post(
            f"/api/v1/responses/{response_id}/feedback",
            json={"user_id": "u1", "feedback_type": "positive"},
        )
        assert ok.json()["success"] is True

        missing = client.post(
            "/api/v1/responses/999/feedback",
            json={"user_id": "u1", "feedback_type": "positive"},
        )
        assert missing.status_code == 404

        invalid = client.post(
            f"/api/v1/responses/{response_id}/feedback",
            json={"user_id": "u1", "feedback_type": "meh"},
        )
        assert invalid.status_code == 422


class TestAdmin:
    def test_status(self, client):
        body = client.get("/api/v1/status").json()
        assert body["workflow_mode"] == "semi_auto"
        assert body["providers"]["openai"]["available"] is True
        assert body["queue_size"] == 0

    def test_provider_test(self, client):
        assert client.post("/api/v1/providers/openai/test").json()["success"] is True
        assert client.post("/api/v1/providers/nope/test").json() == {
            "success": False,
            "message": "Provider not found.",
            "response": None,
        }

    def test_queue_drain(self, client, storefront, responder):
        storefront.add_review(1, "Great product")
        responder.queue.enqueue(1)

        body = client.post("/api/v1/queue/drain").json()

        assert body["processed_reviews"] == [1]
        assert body["skipped"] is False

    def test_process_pending_dispatched(self, client, monkeypatch):
        task = FakeTask()
        monkeypatch.setattr(admin_api, "process_pending_reviews_task", task)
        response = client.post("/api/v1/reviews/process-pending", params={"limit": 10})
        assert response.status_code == 202
        assert task.calls == [(10,)]

    def test_logs(self, client, responder):
        responder.store.log("data_cleanup", details={"retention_days": 30})
        entries = client.get("/api/v1/logs").json()
        assert entries[0]["action"] == "data_cleanup"

    def test_options_hide_api_keys(self, client):
        body = client.get("/api/v1/options").json()
        assert "api_keys" not in body
        assert body["ai_provider"] == "openai"

    def test_update_option(self, client, responder):
        response = client.patch("/api/v1/options", json={"path": "tone_style", "value": "friendly"})
        assert response.json() == {"path": "tone_style", "value": "friendly"}
        assert responder.options.tone_style == "friendly"

    @pytest.mark.parametrize("payload", [
        {"path": "review_filters.colour", "value": "blue"},
        {"path": "review_filters.min_rating", "value": 9},
        {"path": "review_filters.max_rating", "value": 0},
    ])
    def test_update_option_rejected(self, client, payload):
        assert client.patch("/api/v1/options", json=payload).status_code == 400
