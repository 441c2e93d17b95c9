"""
Core business logic for the TalkTime notification service.
Used by the web API and the background notification workers.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured

# Timezone utilities
from .timezone import format_meeting_datetime, get_safe_timezone, utc_now

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured',
    # Timezone
    'format_meeting_datetime', 'get_safe_timezone', 'utc_now',
]
