"""Core package exports."""

from .config import (
    BASE_DIR,
    DATABASE_URL,
    HABIT_OPTIONS,
    PROXY_PREFIX,
    get_fonnte_token,
    get_jwt_secret,
    get_notification_timeout,
    get_validated_log_score,
)
from .db import Session, create_session, engine, get_db

__all__ = [
    "BASE_DIR",
    "DATABASE_URL",
    "HABIT_OPTIONS",
    "PROXY_PREFIX",
    "get_fonnte_token",
    "get_jwt_secret",
    "get_notification_timeout",
    "get_validated_log_score",
    "engine",
    "Session",
    "create_session",
    "get_db",
]
