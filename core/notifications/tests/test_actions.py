"""Tests for notification actions."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.enums import NotificationKind


def _organizer(created_by=1):
    return {"event_id": 42, "title": "Workshop Flutter", "created_by": created_by}


class TestNotifyEventRegistration:
    @pytest.mark.asyncio
    async def test_notifies_organizer(self):
        from core.notifications.actions import notify_event_registration
        from core.notifications.dispatcher import DeliveryResult

        mock_send = AsyncMock(return_value=DeliveryResult(in_app=True))
        with patch("core.notifications.actions.get_connection") as mock_get_conn:
            mock_get_conn.return_value.__aenter__.return_value = AsyncMock()
            with patch(
                "core.notifications.actions.get_event_organizer",
                AsyncMock(return_value=_organizer()),
            ):
                with patch("core.notifications.actions.send_notification", mock_send):
                    result = await notify_event_registration(42, "Budi", 7)

        assert result.in_app is True
        kwargs = mock_send.call_args.kwargs
        assert kwargs["user_id"] == 1
        assert kwargs["kind"] == NotificationKind.registration
        assert kwargs["related_id"] == 42
        assert kwargs["title"] == "Pendaftaran Event 🎉"
        assert "Budi" in kwargs["body"]
        assert "Workshop Flutter" in kwargs["body"]
        assert kwargs["data"]["participant_name"] == "Budi"

    @pytest.mark.asyncio
    async def test_skips_self_registration(self):
        from core.notifications.actions import notify_event_registration

        mock_send = AsyncMock()
        with patch("core.notifications.actions.get_connection") as mock_get_conn:
            mock_get_conn.return_value.__aenter__.return_value = AsyncMock()
            with patch(
                "core.notifications.actions.get_event_organizer",
                AsyncMock(return_value=_organizer(created_by=7)),
            ):
                with patch("core.notifications.actions.send_notification", mock_send):
                    result = await notify_event_registration(42, "Budi", 7)

        assert result is None
        mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_event_without_organizer(self):
        from core.notifications.actions import notify_event_registration

        mock_send = AsyncMock()
        with patch("core.notifications.actions.get_connection") as mock_get_conn:
            mock_get_conn.return_value.__aenter__.return_value = AsyncMock()
            with patch(
                "core.notifications.actions.get_event_organizer",
                AsyncMock(return_value=_organizer(created_by=None)),
            ):
                with patch("core.notifications.actions.send_notification", mock_send):
                    result = await notify_event_registration(42, "Budi")

        assert result is None
        mock_send.assert_not_called()


class TestOnEventChanged:
    def test_requests_refresh_when_running(self):
        from core.notifications.actions import on_event_changed

        scheduler = MagicMock()
        scheduler.running = True

        on_event_changed(scheduler, 42)

        scheduler.request_refresh.assert_called_once()

    def test_ignores_stopped_or_missing_scheduler(self):
        from core.notifications.actions import on_event_changed

        scheduler = MagicMock()
        scheduler.running = False

        on_event_changed(scheduler, 42)
        on_event_changed(None, 42)

        scheduler.request_refresh.assert_not_called()
