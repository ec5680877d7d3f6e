from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from smart_bookmarks.dependencies import get_auth_service, get_controller, get_current_user
from smart_bookmarks.main import app
from smart_bookmarks.services.store import RemoteRequestFailed
from smart_bookmarks.services.sync import SyncController

WEBHOOK_SECRET = "hook-secret"
AUTH_HEADERS = {"Authorization": "Bearer user-token"}


@pytest.mark.unit
class TestBookmarkApi:
    @pytest.fixture
    def auth_service(self) -> MagicMock:
        service = MagicMock()
        service.sign_out = AsyncMock()
        return service

    @pytest.fixture
    def client(self, monkeypatch, tmp_path, store, test_user, bookmark_factory, auth_service):
        monkeypatch.setenv("PREFERENCES_PATH", str(tmp_path / "preferences.json"))
        monkeypatch.setenv("SUPABASE_WEBHOOK_SECRET", WEBHOOK_SECRET)
        store.select.return_value = [
            bookmark_factory("a", visit_count=2, url="https://github.com/org/repo"),
            bookmark_factory("b", visit_count=1, url="https://www.youtube.com/watch"),
        ]
        controller = SyncController(store)

        async def override_controller() -> SyncController:
            await controller.set_user(test_user)
            return controller

        app.dependency_overrides[get_controller] = override_controller
        app.dependency_overrides[get_current_user] = lambda: test_user
        app.dependency_overrides[get_auth_service] = lambda: auth_service
        with TestClient(app) as client:
            yield client
        app.dependency_overrides.clear()

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_me(self, client, test_user):
        response = client.get("/api/me")

        assert response.status_code == 200
        assert response.json()["id"] == test_user.id

    def test_list_bookmarks(self, client):
        response = client.get("/api/bookmarks")

        assert response.status_code == 200
        body = response.json()
        assert [b["id"] for b in body["bookmarks"]] == ["a", "b"]
        assert body["recommended"]["id"] == "a"
        assert body["categories"] == ["All", "Dev Tools", "Entertainment"]
        assert body["category"] == "All"

    def test_list_bookmarks_by_category(self, client):
        response = client.get("/api/bookmarks", params={"category": "Entertainment"})

        assert [b["id"] for b in response.json()["bookmarks"]] == ["b"]

    def test_add_bookmark(self, client, store, bookmark_factory, test_user):
        # Arrange
        store.insert.return_value = bookmark_factory(
            "new", title="example.com", url="https://www.example.com/x"
        )

        # Act
        response = client.post(
            "/api/bookmarks", json={"title": "ab", "url": "https://www.example.com/x"}
        )

        # Assert
        assert response.status_code == 201
        assert response.json()["id"] == "new"
        store.insert.assert_awaited_once_with(
            "example.com", "https://www.example.com/x", test_user.id
        )

    def test_add_bookmark_failure(self, client, store):
        store.insert.side_effect = RemoteRequestFailed("rejected", 403)

        response = client.post(
            "/api/bookmarks", json={"title": "Title", "url": "https://example.org"}
        )

        assert response.status_code == 400

    def test_add_bookmark_requires_url(self, client):
        response = client.post("/api/bookmarks", json={"title": "Title", "url": ""})

        assert response.status_code == 422

    def test_delete_bookmark(self, client, store):
        response = client.delete("/api/bookmarks/a")

        assert response.status_code == 204
        store.delete.assert_awaited_once_with("a")
        remaining = client.get("/api/bookmarks").json()["bookmarks"]
        assert [b["id"] for b in remaining] == ["b"]

    def test_delete_bookmark_failure(self, client, store):
        store.delete.side_effect = RemoteRequestFailed("network down")

        response = client.delete("/api/bookmarks/a")

        assert response.status_code == 400

    def test_visit_bookmark(self, client):
        response = client.post("/api/bookmarks/b/visit")

        assert response.status_code == 200
        assert response.json()["visit_count"] == 2

    def test_visit_unknown_bookmark(self, client):
        response = client.post("/api/bookmarks/missing/visit")

        assert response.status_code == 404

    def test_visit_recommended(self, client):
        response = client.post("/api/bookmarks/recommended/visit")

        assert response.status_code == 200
        assert response.json()["id"] == "a"
        assert response.json()["visit_count"] == 3

    def test_refresh_on_focus(self, client, store):
        client.get("/api/bookmarks")
        store.select.reset_mock()

        response = client.post("/api/bookmarks/refresh", json={"trigger": "focus"})

        assert response.status_code == 200
        assert response.json()["refetched"] is True
        store.select.assert_awaited_once()

    def test_refresh_visible_after_hidden(self, client):
        hidden = client.post("/api/bookmarks/refresh", json={"trigger": "hidden"})
        visible = client.post("/api/bookmarks/refresh", json={"trigger": "visible"})

        assert hidden.json()["refetched"] is False
        assert visible.json()["refetched"] is True

    def test_refresh_rejects_unknown_trigger(self, client):
        response = client.post("/api/bookmarks/refresh", json={"trigger": "scroll"})

        assert response.status_code == 422

    def test_sign_out(self, client, auth_service):
        response = client.post("/api/auth/sign-out", headers=AUTH_HEADERS)

        assert response.status_code == 204
        auth_service.sign_out.assert_awaited_once_with("user-token")

    def test_sign_out_requires_token(self, client):
        response = client.post("/api/auth/sign-out")

        assert response.status_code in (401, 403)

    def test_preferences_toggle(self, client):
        assert client.get("/api/preferences").json() == {"dark_mode": False}

        response = client.post("/api/preferences/dark-mode/toggle")

        assert response.json() == {"dark_mode": True}
        assert client.get("/api/preferences").json() == {"dark_mode": True}


@pytest.mark.unit
class TestChangeWebhook:
    @pytest.fixture
    def client(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PREFERENCES_PATH", str(tmp_path / "preferences.json"))
        monkeypatch.setenv("SUPABASE_WEBHOOK_SECRET", WEBHOOK_SECRET)
        with TestClient(app) as client:
            yield client

    @pytest.fixture
    def payload(self, test_user) -> dict:
        return {
            "type": "INSERT",
            "table": "bookmarks",
            "record": {
                "id": "b1",
                "user_id": test_user.id,
                "title": "Example",
                "url": "https://example.com",
                "created_at": "2024-01-01T00:00:00+00:00",
            },
            "old_record": None,
        }

    def test_accepts_change_with_secret(self, client, payload):
        response = client.post(
            "/api/changes", json=payload, headers={"X-Webhook-Secret": WEBHOOK_SECRET}
        )

        assert response.status_code == 202
        assert response.json() == {"delivered": 0}

    def test_rejects_wrong_secret(self, client, payload):
        response = client.post(
            "/api/changes", json=payload, headers={"X-Webhook-Secret": "nope"}
        )

        assert response.status_code == 401

    def test_rejects_missing_secret(self, client, payload):
        response = client.post("/api/changes", json=payload)

        assert response.status_code == 401

    def test_rejects_malformed_payload(self, client):
        response = client.post(
            "/api/changes",
            json={"type": "INSERT", "table": "bookmarks", "record": None},
            headers={"X-Webhook-Secret": WEBHOOK_SECRET},
        )

        assert response.status_code == 422

    def test_ignores_other_tables(self, client, payload):
        payload["table"] = "profiles"

        response = client.post(
            "/api/changes", json=payload, headers={"X-Webhook-Secret": WEBHOOK_SECRET}
        )

        assert response.json() == {"delivered": 0}

    def test_rejects_non_mapping_record(self, client, payload):
        payload["record"] = [payload["record"]]

        response = client.post(
            "/api/changes", json=payload, headers={"X-Webhook-Secret": WEBHOOK_SECRET}
        )

        assert response.status_code == 422
