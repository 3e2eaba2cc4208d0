# web_api/tests/test_notifications_api.py
"""Tests for the /api/notifications endpoints.

Tests cover:
- Push token registration (validation and upsert call)
- Listing, reading and deleting in-app notifications (404 on unknown IDs)
- Manual feedback reminder sweep (running scheduler or throwaway instance)
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from core.enums import DevicePlatform, Transition

from main import app


class TestRegisterPushToken:
    """POST /api/notifications/fcm-token"""

    def test_saves_token(self, client, mock_conn):
        mock_save = AsyncMock()
        with patch("web_api.routes.notifications.save_push_token", mock_save):
            response = client.post(
                "/api/notifications/fcm-token",
                json={
                    "user_id": 5,
                    "fcm_token": "fcm-abc",
                    "device_id": "pixel-7",
                    "device_type": "ios",
                    "app_version": "1.4.0",
                },
            )

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        mock_save.assert_awaited_once_with(
            mock_conn,
            user_id=5,
            push_token="fcm-abc",
            device_id="pixel-7",
            platform=DevicePlatform.ios,
            app_version="1.4.0",
        )

    def test_rejects_empty_token(self, client):
        mock_save = AsyncMock()
        with patch("web_api.routes.notifications.save_push_token", mock_save):
            response = client.post(
                "/api/notifications/fcm-token", json={"user_id": 5, "fcm_token": ""}
            )

        assert response.status_code == 422
        mock_save.assert_not_called()

    def test_rejects_unknown_platform(self, client):
        response = client.post(
            "/api/notifications/fcm-token",
            json={"user_id": 5, "fcm_token": "fcm-abc", "device_type": "symbian"},
        )

        assert response.status_code == 422


class TestListNotifications:
    """GET /api/notifications/user/{user_id}"""

    def test_returns_page_with_unread_count(self, client, mock_conn):
        rows = [
            {
                "notification_id": 2,
                "title": "Event Selesai! 🎉",
                "body": "Berikan feedbackmu",
                "type": "feedback_reminder",
                "related_id": 42,
                "is_read": False,
                "created_at": datetime(2026, 10, 19, 5, 0, tzinfo=timezone.utc),
                "notification_data": {"action": "add_feedback"},
            }
        ]
        mock_list = AsyncMock(return_value=rows)
        with (
            patch("web_api.routes.notifications.get_notifications_for_user", mock_list),
            patch(
                "web_api.routes.notifications.count_unread", AsyncMock(return_value=3)
            ),
        ):
            response = client.get("/api/notifications/user/5?limit=10&offset=20")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["unread_count"] == 3
        assert data["total"] == 1
        assert data["notifications"][0]["type"] == "feedback_reminder"
        mock_list.assert_awaited_once_with(mock_conn, 5, 10, 20)

    def test_limit_is_bounded(self, client):
        response = client.get("/api/notifications/user/5?limit=0")
        assert response.status_code == 422


class TestReadAndDelete:
    def test_mark_as_read(self, client):
        with patch(
            "web_api.routes.notifications.mark_as_read", AsyncMock(return_value=True)
        ):
            response = client.put("/api/notifications/7/read")

        assert response.status_code == 200

    def test_mark_unknown_as_read_is_404(self, client):
        with patch(
            "web_api.routes.notifications.mark_as_read", AsyncMock(return_value=False)
        ):
            response = client.put("/api/notifications/404/read")

        assert response.status_code == 404

    def test_mark_all_as_read(self, client):
        with patch(
            "web_api.routes.notifications.mark_all_as_read", AsyncMock(return_value=4)
        ):
            response = client.put("/api/notifications/user/5/read-all")

        assert response.status_code == 200
        assert response.json()["updated"] == 4

    def test_delete_unknown_is_404(self, client):
        with patch(
            "web_api.routes.notifications.delete_notification",
            AsyncMock(return_value=False),
        ):
            response = client.delete("/api/notifications/404")

        assert response.status_code == 404

    def test_delete(self, client):
        with patch(
            "web_api.routes.notifications.delete_notification",
            AsyncMock(return_value=True),
        ):
            response = client.delete("/api/notifications/7")

        assert response.status_code == 200


class TestSendFeedbackReminders:
    """POST /api/notifications/send-feedback-reminders"""

    def test_uses_running_scheduler(self, client):
        scheduler = MagicMock()
        scheduler.sweep = AsyncMock(return_value={"end": {"due": 2, "sent": 5}})
        app.state.lifecycle_scheduler = scheduler

        response = client.post("/api/notifications/send-feedback-reminders")

        assert response.status_code == 200
        assert response.json()["data"] == {"due": 2, "sent": 5}
        scheduler.sweep.assert_awaited_once_with([Transition.end])

    def test_without_scheduler_uses_throwaway_instance(self, client):
        mock_sweep = AsyncMock(return_value={"end": {"due": 0, "sent": 0}})
        with patch(
            "web_api.routes.notifications.LifecycleScheduler.sweep", mock_sweep
        ):
            response = client.post("/api/notifications/send-feedback-reminders")

        assert response.status_code == 200
        mock_sweep.assert_awaited_once()

    def test_sweep_error_is_500(self, client):
        scheduler = MagicMock()
        scheduler.sweep = AsyncMock(
            return_value={"end": {"error": "db down", "due": 0, "sent": 0}}
        )
        app.state.lifecycle_scheduler = scheduler

        response = client.post("/api/notifications/send-feedback-reminders")

        assert response.status_code == 500


class TestHealth:
    """GET /health"""

    def test_reports_armed_timers(self, client):
        scheduler = MagicMock()
        scheduler.running = True
        scheduler.timers.side_effect = lambda t: [1, 2] if t == Transition.end else []
        app.state.lifecycle_scheduler = scheduler

        with (
            patch("main.is_configured", return_value=True),
            patch("main.ping", AsyncMock(return_value=True)),
        ):
            response = client.get("/health")

        body = response.json()
        assert body["armed_timers"] == {"start": 0, "end": 2}
        assert body["database"] == "ok"

    def test_unreachable_database_is_degraded(self, client):
        with (
            patch("main.is_configured", return_value=True),
            patch("main.ping", AsyncMock(return_value=False)),
        ):
            response = client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_without_scheduler(self, client):
        with patch("main.is_configured", return_value=False):
            response = client.get("/health")

        body = response.json()
        assert body["scheduler_running"] is False
        assert body["armed_timers"] is None
