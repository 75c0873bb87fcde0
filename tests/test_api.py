"""Tests for the HTTP API."""

from datetime import datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from notifier.config import Settings
from notifier.context import NotificationContext
from notifier.main import create_app
from notifier.models.permission import PermissionStatus
from notifier.platform.headless import HeadlessPlatform
from notifier.senders.onesignal import OneSignalSender
from notifier.storage.memory import MemoryStore

SECRET = "test-secret"


def make_settings() -> Settings:
    settings = Settings()
    settings.DATABASE_URL = ""
    settings.NOTIFIER_API_SECRET = SECRET
    settings.ONESIGNAL_APP_ID = ""
    settings.ONESIGNAL_REST_API_KEY = ""
    settings.ENABLE_BACKGROUND_WORKER = False
    settings.SWEEP_INTERVAL_SECONDS = 3600
    return settings


@pytest.fixture
def context() -> NotificationContext:
    return NotificationContext.build(
        make_settings(),
        storage=MemoryStore(),
        platform=HeadlessPlatform(PermissionStatus.GRANTED),
    )


@pytest.fixture
def client(context):
    with TestClient(create_app(context)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = jwt.encode({"sub": "user-1"}, SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def future(minutes: int = 30) -> str:
    return (datetime.now() + timedelta(minutes=minutes)).isoformat()


class TestAuth:
    """Authentication on API routes."""

    def test_health_is_public(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_missing_token(self, client):
        response = client.get("/api/notifications")

        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        token = jwt.encode({"sub": "user-1"}, "wrong-secret", algorithm="HS256")

        response = client.get(
            "/api/notifications", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_empty_secret_rejects_unsigned_tokens(self, client, context):
        context.settings.NOTIFIER_API_SECRET = ""
        token = jwt.encode({"sub": "attacker"}, "", algorithm="HS256")

        response = client.get("/api/settings", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_startup_requires_secret(self):
        settings = make_settings()
        settings.NOTIFIER_API_SECRET = ""
        context = NotificationContext.build(settings, storage=MemoryStore())

        with pytest.raises(ValueError):
            with TestClient(create_app(context)):
                pass

    def test_token_without_subject(self, client):
        token = jwt.encode({"role": "student"}, SECRET, algorithm="HS256")

        response = client.get(
            "/api/notifications", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestNotificationsApi:
    """Scheduling, listing and cancelling over HTTP."""

    def test_schedule_and_list(self, client, auth_headers):
        response = client.post(
            "/api/notifications",
            json={"title": "Flashcards", "body": "Biology set", "scheduled_time": future()},
            headers=auth_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["accepted"] is True

        listed = client.get("/api/notifications", headers=auth_headers).json()
        assert listed["total"] == 1
        assert listed["notifications"][0]["id"] == body["notification_id"]

    def test_rejected_schedule_returns_200(self, client, auth_headers):
        client.patch("/api/settings", json={"enabled": False}, headers=auth_headers)

        response = client.post(
            "/api/notifications",
            json={"title": "Flashcards", "scheduled_time": future()},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["accepted"] is False

    def test_invalid_notification(self, client, auth_headers):
        response = client.post(
            "/api/notifications",
            json={"title": "", "scheduled_time": future()},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_cancel(self, client, auth_headers):
        created = client.post(
            "/api/notifications",
            json={"id": "n-1", "title": "Flashcards", "scheduled_time": future()},
            headers=auth_headers,
        )
        assert created.json()["notification_id"] == "n-1"

        assert client.delete("/api/notifications/n-1", headers=auth_headers).status_code == 204
        assert client.delete("/api/notifications/n-1", headers=auth_headers).status_code == 404

    def test_cancel_all(self, client, auth_headers):
        for minutes in (10, 20):
            client.post(
                "/api/notifications",
                json={"title": "Flashcards", "scheduled_time": future(minutes)},
                headers=auth_headers,
            )

        assert client.delete("/api/notifications", headers=auth_headers).status_code == 204
        assert client.get("/api/notifications", headers=auth_headers).json()["total"] == 0

    def test_click_and_dismiss_counted(self, client, auth_headers):
        client.post("/api/notifications/n-1/click", headers=auth_headers)
        client.post("/api/notifications/n-2/dismiss", headers=auth_headers)

        stats = client.get("/api/stats", headers=auth_headers).json()
        assert stats["total_clicked"] == 1
        assert stats["total_dismissed"] == 1


    def test_task_reminder_series(self, client, auth_headers):
        response = client.post(
            "/api/notifications/tasks/task-1/reminders",
            json={"task_title": "Lab report", "due_at": future(120)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"scheduled": [True, True, True]}
        listed = client.get("/api/notifications", headers=auth_headers).json()
        assert {n["related_task_id"] for n in listed["notifications"]} == {"task-1"}

        cancelled = client.delete(
            "/api/notifications/tasks/task-1/reminders", headers=auth_headers
        )

        assert cancelled.json() == {"cancelled": 3}
        assert client.get("/api/notifications", headers=auth_headers).json()["total"] == 0

    def test_task_reminders_reject_negative_offset(self, client, auth_headers):
        response = client.post(
            "/api/notifications/tasks/task-1/reminders",
            json={"task_title": "Lab report", "due_at": future(120), "offsets": [-5]},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_daily_summary(self, client, auth_headers):
        response = client.post(
            "/api/notifications/daily-summary",
            json={"preferred_time": "18:00"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["notification_id"].startswith("daily_summary_")

    def test_daily_summary_invalid_time(self, client, auth_headers):
        response = client.post(
            "/api/notifications/daily-summary",
            json={"preferred_time": "6pm"},
            headers=auth_headers,
        )

        assert response.status_code == 422


class TestSettingsApi:
    """Settings, stats and permission over HTTP."""

    def test_get_defaults(self, client, auth_headers):
        settings = client.get("/api/settings", headers=auth_headers).json()

        assert settings["enabled"] is True
        assert settings["max_daily_notifications"] == 20
        assert settings["types"]["task_due"]["advance_time"] == 15

    def test_patch_merges(self, client, auth_headers):
        response = client.patch(
            "/api/settings",
            json={"quiet_hours": {"enabled": True, "start_time": "23:00"}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        quiet_hours = response.json()["quiet_hours"]
        assert quiet_hours == {"enabled": True, "start_time": "23:00", "end_time": "07:00"}

    def test_patch_invalid_time(self, client, auth_headers):
        response = client.patch(
            "/api/settings",
            json={"quiet_hours": {"start_time": "late"}},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_preferences(self, client, auth_headers):
        response = client.put(
            "/api/settings/preferences",
            json={"enable_study_reminders": False, "reminder_advance_time": 10},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["types"]["study_reminder"]["enabled"] is False

    def test_stats_reset(self, client, auth_headers):
        client.post("/api/notifications/n-1/click", headers=auth_headers)

        stats = client.post("/api/stats/reset", headers=auth_headers).json()

        assert stats["total_clicked"] == 0

    def test_permission(self, client, auth_headers):
        state = client.get("/api/permission", headers=auth_headers).json()

        assert state["permission"] == "granted"
        assert state["is_supported"] is True

        requested = client.post("/api/permission/request", headers=auth_headers).json()
        assert requested["permission"] == "granted"


class TestPushApi:
    """Vendor push routes."""

    def test_push_not_configured(self, client, auth_headers):
        response = client.post("/api/push/send", json={"title": "Hi"}, headers=auth_headers)

        assert response.status_code == 503

    def test_push_send(self, client, context, auth_headers):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.read())
            return httpx.Response(200, json={"id": "os-1", "recipients": 1})

        context.push = OneSignalSender(
            "app-1", "key-1", transport=httpx.MockTransport(handler)
        )

        response = client.post(
            "/api/push/send",
            json={"title": "Streak at risk", "body": "Study 10 minutes today"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "notification_id": "os-1", "recipients": 1}
        assert b'"include_external_user_ids":["user-1"]' in bodies[0].replace(b" ", b"")

    def test_webhook_click(self, client, auth_headers):
        response = client.post(
            "/api/onesignal/webhook",
            json={
                "event": "notification.clicked",
                "notification": {"id": "os-1", "custom_data": {"notificationId": "n-1"}},
                "player": {"id": "player-1"},
            },
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        stats = client.get("/api/stats", headers=auth_headers).json()
        assert stats["total_clicked"] == 1

    def test_webhook_other_events_ignored(self, client, auth_headers):
        client.post("/api/onesignal/webhook", json={"event": "notification.delivered"})

        stats = client.get("/api/stats", headers=auth_headers).json()
        assert stats["total_clicked"] == 0
        assert stats["total_dismissed"] == 0


class TestSubscriptionsApi:
    """Push device registration."""

    def test_subscribe_status_unsubscribe(self, client, auth_headers):
        created = client.post(
            "/api/push/subscriptions", json={"player_id": "player-1"}, headers=auth_headers
        )

        assert created.status_code == 201
        assert created.json()["external_user_id"] == "user-1"
        status = client.get("/api/push/subscriptions/me", headers=auth_headers).json()
        assert status == {"active": True, "player_id": "player-1"}

        removed = client.delete("/api/push/subscriptions/player-1", headers=auth_headers)

        assert removed.status_code == 204
        status = client.get("/api/push/subscriptions/me", headers=auth_headers).json()
        assert status == {"active": False, "player_id": None}

    def test_unsubscribe_unknown_device(self, client, auth_headers):
        response = client.delete("/api/push/subscriptions/player-9", headers=auth_headers)

        assert response.status_code == 404

    def test_push_send_includes_registered_device(self, client, context, auth_headers):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.read())
            return httpx.Response(200, json={"id": "os-1", "recipients": 1})

        context.push = OneSignalSender(
            "app-1", "key-1", transport=httpx.MockTransport(handler)
        )
        client.post("/api/push/subscriptions", json={"player_id": "player-1"}, headers=auth_headers)

        response = client.post("/api/push/send", json={"title": "Hi"}, headers=auth_headers)

        assert response.json()["success"] is True
        assert b'"include_player_ids":["player-1"]' in bodies[0].replace(b" ", b"")
