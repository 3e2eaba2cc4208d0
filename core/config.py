"""
Centralized configuration for the campus events backend.

All settings come from environment variables (loaded from .env/.env.local
by the entry points), read at call time so tests can patch os.environ.
"""

import os
from dataclasses import dataclass
from datetime import timedelta

DEFAULT_EVENT_TIMEZONE = "Asia/Jakarta"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("true", "1", "yes")


def is_dev_mode() -> bool:
    """Check if running in development mode (--dev flag or DEV_MODE env)."""
    return _env_flag("DEV_MODE")


def is_production() -> bool:
    """Check if running in the production environment."""
    return os.getenv("APP_ENV", "").lower() == "production"


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_event_timezone_name() -> str:
    """Timezone in which event dates and times are entered by organizers."""
    return os.getenv("EVENT_TIMEZONE", DEFAULT_EVENT_TIMEZONE)


def is_scheduler_disabled() -> bool:
    return _env_flag("DISABLE_SCHEDULER")


@dataclass(frozen=True)
class SchedulerSettings:
    """Timing knobs for the event lifecycle scheduler."""

    timezone: str = DEFAULT_EVENT_TIMEZONE
    horizon: timedelta = timedelta(hours=24)
    recompute_interval: timedelta = timedelta(minutes=15)
    sweep_interval: timedelta = timedelta(minutes=5)
    startup_delay: timedelta = timedelta(seconds=5)


def get_scheduler_settings() -> SchedulerSettings:
    """Build scheduler settings from the environment."""
    return SchedulerSettings(
        timezone=get_event_timezone_name(),
        horizon=timedelta(hours=float(os.getenv("NOTIFICATION_HORIZON_HOURS", "24"))),
        recompute_interval=timedelta(
            minutes=float(os.getenv("SCHEDULER_RECOMPUTE_MINUTES", "15"))
        ),
        sweep_interval=timedelta(
            minutes=float(os.getenv("SCHEDULER_SWEEP_MINUTES", "5"))
        ),
        startup_delay=timedelta(
            seconds=float(os.getenv("SCHEDULER_STARTUP_DELAY_SECONDS", "5"))
        ),
    )


def get_push_android_channel_id() -> str:
    return os.getenv("PUSH_ANDROID_CHANNEL_ID", "uvent_notifications")


# Required environment variables for production
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    (
        "FIREBASE_CREDENTIALS",
        "Path to Firebase service account JSON (push notifications)",
        False,
    ),
    ("SENTRY_DSN", "Sentry DSN for error reporting", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production() and required_in_dev:
                errors.append(f"  ✗ {name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
