"""
Core business logic - platform-agnostic.
Used by the web API and the background lifecycle scheduler.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured

# Timezone utilities
from .timezone import local_now, event_start, event_end, is_running

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured',
    # Timezone
    'local_now', 'event_start', 'event_end', 'is_running',
]
