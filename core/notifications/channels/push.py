"""Firebase Cloud Messaging push delivery channel."""

import asyncio
import logging
import os
from dataclasses import dataclass, field

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from core.config import get_push_android_channel_id

logger = logging.getLogger(__name__)

_app: firebase_admin.App | None = None

# Errors that mean the token will never work again
_INVALID_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
)


@dataclass
class PushOutcome:
    """Per-multicast result summary."""

    success_count: int = 0
    failure_count: int = 0
    invalid_tokens: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def init_push(credentials_path: str | None = None) -> bool:
    """
    Initialize the Firebase Admin app from a service account file.

    Falls back to FIREBASE_CREDENTIALS. Returns False (push disabled) when
    no credentials are configured or they can't be loaded; in-app
    notifications keep working either way.
    """
    global _app
    if _app is not None:
        return True

    path = credentials_path or os.environ.get("FIREBASE_CREDENTIALS")
    if not path:
        logger.warning("FIREBASE_CREDENTIALS not set, push notifications disabled")
        return False

    try:
        _app = firebase_admin.initialize_app(credentials.Certificate(path))
    except (ValueError, OSError) as e:
        logger.error(f"Firebase initialization failed, push disabled: {e}")
        return False

    logger.info("Firebase Admin SDK initialized")
    return True


def shutdown_push() -> None:
    global _app
    if _app is not None:
        firebase_admin.delete_app(_app)
        _app = None


def is_push_configured() -> bool:
    return _app is not None


def is_invalid_token_error(error: Exception | None) -> bool:
    """
    True when FCM rejected the device token itself.

    INVALID_ARGUMENT also covers malformed payloads, which say nothing
    about the token, so it only counts when the message names the
    registration token.
    """
    if isinstance(error, _INVALID_TOKEN_ERRORS):
        return True
    return (
        isinstance(error, exceptions.InvalidArgumentError)
        and "registration token" in str(error).lower()
    )


def build_push_data(kind: str, related_id: int | None, data: dict | None) -> dict:
    """FCM data payloads only carry strings."""
    payload = {
        "type": kind,
        "related_id": str(related_id) if related_id else "0",
        "click_action": "FLUTTER_NOTIFICATION_CLICK",
    }
    for key, value in (data or {}).items():
        payload[key] = str(value)
    return payload


def _build_message(
    tokens: list[str], title: str, body: str, data: dict
) -> messaging.MulticastMessage:
    return messaging.MulticastMessage(
        tokens=tokens,
        notification=messaging.Notification(title=title, body=body),
        data=data,
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                channel_id=get_push_android_channel_id(),
                priority="high",
                default_sound=True,
                default_vibrate_timings=True,
            ),
        ),
    )


async def send_push_multicast(
    tokens: list[str],
    title: str,
    body: str,
    data: dict,
) -> PushOutcome:
    """
    Send one push message to several device tokens.

    The Firebase SDK call is blocking, so it runs in a worker thread.
    Tokens FCM rejects as unregistered/invalid are returned in
    `invalid_tokens` for the caller to deactivate.

    Raises:
        firebase_admin.exceptions.FirebaseError: if the whole request fails
    """
    outcome = PushOutcome()
    if not tokens or _app is None:
        return outcome

    message = _build_message(tokens, title, body, data)
    response = await asyncio.to_thread(
        messaging.send_each_for_multicast, message, app=_app
    )

    outcome.success_count = response.success_count
    outcome.failure_count = response.failure_count
    for token, resp in zip(tokens, response.responses):
        if resp.success:
            continue
        error = resp.exception
        code = getattr(error, "code", "UNKNOWN")
        outcome.errors.append(f"{token[:20]}... ({code}): {error}")
        if is_invalid_token_error(error):
            outcome.invalid_tokens.append(token)

    return outcome
