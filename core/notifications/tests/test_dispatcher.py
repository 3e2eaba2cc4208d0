"""Tests for notification dispatcher."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.enums import NotificationKind
from core.notifications.channels.push import PushOutcome


@pytest.fixture
def mock_storage():
    """Patch the dispatcher's DB access and push channel.

    Yields a dict of the mocks so tests can tweak return values.
    """
    mock_conn = AsyncMock()
    with (
        patch("core.notifications.dispatcher.get_transaction") as mock_txn,
        patch(
            "core.notifications.dispatcher.insert_notification",
            AsyncMock(return_value=101),
        ) as mock_insert,
        patch(
            "core.notifications.dispatcher.get_active_push_tokens",
            AsyncMock(return_value=["token-a"]),
        ) as mock_tokens,
        patch(
            "core.notifications.dispatcher.deactivate_push_tokens",
            AsyncMock(return_value=1),
        ) as mock_deactivate,
        patch(
            "core.notifications.dispatcher.is_push_configured", return_value=True
        ) as mock_configured,
        patch(
            "core.notifications.dispatcher.send_push_multicast",
            AsyncMock(return_value=PushOutcome(success_count=1)),
        ) as mock_push,
    ):
        mock_txn.return_value.__aenter__.return_value = mock_conn
        yield {
            "conn": mock_conn,
            "insert": mock_insert,
            "tokens": mock_tokens,
            "deactivate": mock_deactivate,
            "configured": mock_configured,
            "push": mock_push,
        }


class TestSendNotification:
    @pytest.mark.asyncio
    async def test_writes_in_app_then_pushes(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        result = await send_notification(
            user_id=5,
            title="Event Selesai! 🎉",
            body="Berikan feedbackmu",
            kind=NotificationKind.feedback_reminder,
            related_id=42,
            data={"action": "add_feedback"},
        )

        assert result.in_app is True
        assert result.push is True
        assert result.delivered is True
        assert result.errors == []

        insert_kwargs = mock_storage["insert"].call_args.kwargs
        assert insert_kwargs["user_id"] == 5
        assert insert_kwargs["kind"] == "feedback_reminder"
        assert insert_kwargs["related_id"] == 42

        tokens, title, body, data = mock_storage["push"].call_args.args
        assert tokens == ["token-a"]
        assert data["type"] == "feedback_reminder"
        assert data["related_id"] == "42"
        assert data["action"] == "add_feedback"

    @pytest.mark.asyncio
    async def test_duplicate_reminder_skips_push(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["insert"].return_value = None

        result = await send_notification(
            5, "t", "b", kind=NotificationKind.feedback_reminder, related_id=42
        )

        assert result.duplicate is True
        assert result.delivered is False
        mock_storage["push"].assert_not_called()

    @pytest.mark.asyncio
    async def test_push_attempted_when_in_app_write_fails(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["insert"].side_effect = RuntimeError("db down")

        result = await send_notification(5, "t", "b")

        assert result.in_app is False
        assert result.push is True
        assert result.delivered is True
        assert any(e.startswith("In-app failed") for e in result.errors)

    @pytest.mark.asyncio
    async def test_push_skipped_silently_when_not_configured(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["configured"].return_value = False

        result = await send_notification(5, "t", "b")

        assert result.in_app is True
        assert result.push is False
        assert result.errors == []
        mock_storage["push"].assert_not_called()

    @pytest.mark.asyncio
    async def test_push_skipped_silently_without_tokens(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["tokens"].return_value = []

        result = await send_notification(5, "t", "b")

        assert result.push is False
        assert result.errors == []
        mock_storage["push"].assert_not_called()

    @pytest.mark.asyncio
    async def test_push_error_is_recorded(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["push"].side_effect = RuntimeError("fcm unavailable")

        result = await send_notification(5, "t", "b")

        assert result.in_app is True
        assert result.push is False
        assert any(e.startswith("Push failed") for e in result.errors)

    @pytest.mark.asyncio
    async def test_per_device_push_errors_are_reported(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["tokens"].return_value = ["good", "flaky"]
        mock_storage["push"].return_value = PushOutcome(
            success_count=1,
            failure_count=1,
            errors=["flaky... (UNAVAILABLE): try later"],
        )

        result = await send_notification(5, "t", "b")

        assert result.push is True
        assert result.errors == ["Push failed: flaky... (UNAVAILABLE): try later"]
        mock_storage["deactivate"].assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_tokens_are_deactivated(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["tokens"].return_value = ["good", "stale"]
        mock_storage["push"].return_value = PushOutcome(
            success_count=1, failure_count=1, invalid_tokens=["stale"]
        )

        result = await send_notification(5, "t", "b")

        assert result.push is True
        mock_storage["deactivate"].assert_awaited_once_with(
            mock_storage["conn"], ["stale"]
        )

    @pytest.mark.asyncio
    async def test_both_channels_failing_is_not_delivered(self, mock_storage):
        from core.notifications.dispatcher import send_notification

        mock_storage["insert"].side_effect = RuntimeError("db down")
        mock_storage["push"].return_value = PushOutcome(failure_count=1)

        result = await send_notification(5, "t", "b")

        assert result.delivered is False


class TestSendBulkNotification:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_batch(self):
        """Five recipients, the third one's send blows up."""
        from core.notifications.dispatcher import DeliveryResult, send_bulk_notification

        calls = []

        async def fake_send(user_id, title, body, **kwargs):
            calls.append(user_id)
            if user_id == 3:
                raise RuntimeError("boom")
            return DeliveryResult(in_app=True)

        with patch("core.notifications.dispatcher.send_notification", side_effect=fake_send):
            result = await send_bulk_notification(
                [1, 2, 3, 4, 5], "t", "b", kind=NotificationKind.feedback_reminder
            )

        assert calls == [1, 2, 3, 4, 5]
        assert result.success == 4
        assert result.failed == 1
        assert result.skipped == 0

    @pytest.mark.asyncio
    async def test_counts_duplicates_and_undelivered(self):
        from core.notifications.dispatcher import DeliveryResult, send_bulk_notification

        results = {
            1: DeliveryResult(in_app=True),
            2: DeliveryResult(duplicate=True),
            3: DeliveryResult(errors=["In-app failed: x"]),
        }
        mock_send = AsyncMock(side_effect=lambda user_id, *a, **k: results[user_id])

        with patch("core.notifications.dispatcher.send_notification", mock_send):
            result = await send_bulk_notification([1, 2, 3], "t", "b")

        assert (result.success, result.failed, result.skipped) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_empty_recipient_list(self):
        from core.notifications.dispatcher import send_bulk_notification

        mock_send = MagicMock()
        with patch("core.notifications.dispatcher.send_notification", mock_send):
            result = await send_bulk_notification([], "t", "b")

        assert (result.success, result.failed, result.skipped) == (0, 0, 0)
        mock_send.assert_not_called()
