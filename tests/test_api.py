"""Tests for the FastAPI routes.

Covers:
- GET /health: liveness check
- POST /users, POST /entities/objects, GET /entities/{guid}
- /notifications: methods, subscriptions and delivery preferences
- GET /cron/{period}
- /install/{step}: describe and submit installer steps
"""
from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient


def _user(client: TestClient, username: str, email: str | None = None) -> dict:
    response = client.post(
        "/users",
        json={"username": username, "password": "pw1234", "name": username.title(), "email": email},
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# health
# ---------------------------------------------------------------------------


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# entities
# ---------------------------------------------------------------------------


class TestEntities:
    def test_create_and_get_user(self, client):
        user = _user(client, "alice")
        assert user["type"] == "user"
        assert user["username"] == "alice"
        assert "password" not in user

        response = client.get(f"/entities/{user['guid']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Alice"

    def test_duplicate_username(self, client):
        _user(client, "alice")
        response = client.post("/users", json={"username": "alice", "password": "x", "name": "Again"})
        assert response.status_code == 400

    def test_create_object(self, client):
        owner = _user(client, "alice")
        response = client.post(
            "/entities/objects", json={"subtype": "blog", "owner_guid": owner["guid"], "title": "Hello"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["subtype"] == "blog"
        assert body["container_guid"] == owner["guid"]

    def test_create_object_unknown_owner(self, client):
        response = client.post("/entities/objects", json={"subtype": "blog", "owner_guid": 9999})
        assert response.status_code == 404

    def test_get_missing_entity(self, client):
        assert client.get("/entities/9999").status_code == 404


# ---------------------------------------------------------------------------
# notifications
# ---------------------------------------------------------------------------


class TestNotifications:
    def test_methods(self, client):
        assert client.get("/notifications/methods").json() == {"methods": ["email"]}

    def test_subscribe_list_unsubscribe(self, client):
        author = _user(client, "author")
        reader = _user(client, "reader")
        body = {"user_guid": reader["guid"], "method": "email", "target_guid": author["guid"]}

        response = client.post("/notifications/subscriptions", json=body)
        assert response.status_code == 201
        assert response.json() == {"created": True}
        assert client.post("/notifications/subscriptions", json=body).json() == {"created": False}

        listing = client.get(f"/notifications/subscriptions/{reader['guid']}").json()
        assert listing == {str(author["guid"]): ["email"]}

        assert client.request("DELETE", "/notifications/subscriptions", json=body).status_code == 200
        assert client.request("DELETE", "/notifications/subscriptions", json=body).status_code == 404

    def test_subscribe_unknown_method(self, client):
        author = _user(client, "author")
        reader = _user(client, "reader")
        response = client.post(
            "/notifications/subscriptions",
            json={"user_guid": reader["guid"], "method": "sms", "target_guid": author["guid"]},
        )
        assert response.status_code == 400

    def test_subscribe_unknown_user(self, client):
        author = _user(client, "author")
        response = client.post(
            "/notifications/subscriptions",
            json={"user_guid": 9999, "method": "email", "target_guid": author["guid"]},
        )
        assert response.status_code == 404

    def test_settings(self, client):
        user = _user(client, "alice")
        assert client.get(f"/notifications/settings/{user['guid']}").json() == {}

        response = client.put(f"/notifications/settings/{user['guid']}", json={"methods": {"email": True}})
        assert response.status_code == 200
        assert response.json() == {"email": True}

    def test_settings_unknown_user(self, client):
        assert client.get("/notifications/settings/9999").status_code == 404
        assert client.put("/notifications/settings/9999", json={"methods": {"email": True}}).status_code == 404
        assert client.put("/notifications/settings/9999", json={"methods": {}}).status_code == 404


# ---------------------------------------------------------------------------
# cron
# ---------------------------------------------------------------------------


class TestCron:
    def test_unknown_period(self, client):
        assert client.get("/cron/fortnightly").status_code == 404

    @patch("elgg.notification.email_sender.smtplib.SMTP")
    def test_minute_cron_delivers_queued_notifications(self, mock_smtp_cls, client, elgg):
        mock_server = mock_smtp_cls.return_value.__enter__.return_value
        elgg.notifications.register_event("object", "blog")
        author = _user(client, "author", "author@example.org")
        reader = _user(client, "reader", "reader@example.org")
        client.post(
            "/notifications/subscriptions",
            json={"user_guid": reader["guid"], "method": "email", "target_guid": author["guid"]},
        )
        client.post("/entities/objects", json={"subtype": "blog", "owner_guid": author["guid"]})

        response = client.get("/cron/minute")
        assert response.status_code == 200
        assert response.json()["period"] == "minute"
        assert mock_server.sendmail.call_count == 1
        assert mock_server.sendmail.call_args[0][1] == ["reader@example.org"]

    @patch("elgg.notification.email_sender.smtplib.SMTP")
    def test_failing_event_does_not_block_later_runs(self, mock_smtp_cls, client, elgg):
        mock_server = mock_smtp_cls.return_value.__enter__.return_value

        def subscriptions(hook, type_, value, params):
            if params["object"].title == "broken":
                raise RuntimeError("boom")
            return value

        elgg.hooks.register("get", "subscriptions", subscriptions)
        elgg.notifications.register_event("object", "blog")
        author = _user(client, "author", "author@example.org")
        reader = _user(client, "reader", "reader@example.org")
        client.post(
            "/notifications/subscriptions",
            json={"user_guid": reader["guid"], "method": "email", "target_guid": author["guid"]},
        )
        client.post("/entities/objects", json={"subtype": "blog", "owner_guid": author["guid"], "title": "broken"})
        client.post("/entities/objects", json={"subtype": "blog", "owner_guid": author["guid"], "title": "fine"})

        assert client.get("/cron/minute").status_code == 200
        assert client.get("/cron/minute").status_code == 200
        assert mock_server.sendmail.call_count == 1


# ---------------------------------------------------------------------------
# install
# ---------------------------------------------------------------------------


class TestInstall:
    def test_unknown_step(self, client):
        assert client.get("/install/bogus").status_code == 404

    def test_describe_welcome(self, client):
        body = client.get("/install/welcome").json()
        assert body["step"] == "welcome"
        assert body["next_step"] == "requirements"

    def test_submit_database_with_missing_fields(self, client):
        response = client.post("/install/database", json={"dbdriver": "sqlite+pysqlite"})
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["errors"] == ["Database name is required"]

    def test_submit_database_with_wrong_types(self, client):
        response = client.post("/install/database", json={"dbdriver": 5, "dbname": "elgg", "dbport": "x"})
        assert response.status_code == 200
        assert response.json()["ok"] is False
