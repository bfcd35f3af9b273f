"""SQLModel exports for Character Journal."""

from .directory_models import AppUser, SchoolClass, UserRole
from .journal_models import STATUS_LABELS, BehaviorRecord, CharacterLog, LogStatus, Mission, utc_now

__all__ = [
    "AppUser",
    "SchoolClass",
    "UserRole",
    "CharacterLog",
    "BehaviorRecord",
    "Mission",
    "LogStatus",
    "STATUS_LABELS",
    "utc_now",
]
