"""Seven-habit activity record parsing and serialization."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from character_journal.services.errors import ValidationError

ACTIVITY_FIELDS = (
    "wake_up_time",
    "worship_activities",
    "worship_detail",
    "sport_activity",
    "sport_detail",
    "meal_description",
    "study_activities",
    "study_detail",
    "social_activities",
    "social_detail",
    "sleep_time",
)

_TIME_FIELDS = ("wake_up_time", "sleep_time")
_TAG_SET_FIELDS = ("worship_activities", "study_activities", "social_activities")
_TEXT_FIELDS = (
    "worship_detail",
    "sport_activity",
    "sport_detail",
    "meal_description",
    "study_detail",
    "social_detail",
)


@dataclass(frozen=True)
class ActivityRecord:
    wake_up_time: datetime.time
    worship_activities: Tuple[str, ...]
    worship_detail: str
    sport_activity: str
    sport_detail: str
    meal_description: str
    study_activities: Tuple[str, ...]
    study_detail: str
    social_activities: Tuple[str, ...]
    social_detail: str
    sleep_time: datetime.time

    @classmethod
    def from_payload(cls, payload: Any) -> "ActivityRecord":
        """Parse a submitted record, reporting every missing or malformed field at once."""
        if not isinstance(payload, dict):
            raise ValidationError(ACTIVITY_FIELDS)

        values: Dict[str, Any] = {}
        invalid: List[str] = []

        for name in _TIME_FIELDS:
            parsed = _parse_time(payload.get(name))
            if parsed is None:
                invalid.append(name)
            values[name] = parsed

        for name in _TAG_SET_FIELDS:
            tags = _parse_tags(payload.get(name))
            if not tags:
                invalid.append(name)
            values[name] = tags

        for name in _TEXT_FIELDS:
            text = _parse_text(payload.get(name))
            if not text:
                invalid.append(name)
            values[name] = text

        if invalid:
            raise ValidationError(field for field in ACTIVITY_FIELDS if field in invalid)
        return cls(**values)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ActivityRecord":
        values = dict(document)
        for name in _TIME_FIELDS:
            values[name] = datetime.time.fromisoformat(values[name])
        for name in _TAG_SET_FIELDS:
            values[name] = tuple(values.get(name) or ())
        return cls(**{name: values[name] for name in ACTIVITY_FIELDS})

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for name in ACTIVITY_FIELDS:
            value = getattr(self, name)
            if name in _TIME_FIELDS:
                value = value.isoformat(timespec="minutes")
            elif name in _TAG_SET_FIELDS:
                value = list(value)
            document[name] = value
        return document


def _parse_time(value: Any) -> datetime.time | None:
    if isinstance(value, datetime.time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.time.fromisoformat(value.strip())
    except ValueError:
        return None
    return parsed.replace(second=0, microsecond=0, tzinfo=None)


def _parse_tags(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return ()
    tags: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        cleaned = item.strip()
        if cleaned and cleaned not in tags:
            tags.append(cleaned)
    return tuple(tags)


def _parse_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()
