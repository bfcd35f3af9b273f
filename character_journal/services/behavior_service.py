"""Contributor behavior scores and the homeroom score recorded on validation."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, List

from sqlmodel import Session, select

from character_journal.core.config import CONTRIBUTOR_HISTORY_LIMIT, get_validated_log_score
from character_journal.core.security import Actor
from character_journal.models import BehaviorRecord, CharacterLog, UserRole
from character_journal.services.directory_service import get_student
from character_journal.services.errors import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

HOMEROOM_CONTRIBUTOR_ROLE = "homeroom_teacher"
CHARACTER_LOG_CATEGORY = "character_log"


def parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def parse_optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def submit_behavior_score(
    db: Session,
    actor: Actor,
    payload: Any,
    *,
    today_fn=datetime.date.today,
) -> BehaviorRecord:
    if not actor.has_role(UserRole.CONTRIBUTOR):
        raise ForbiddenError("Only contributors can submit behavior scores.")
    if not isinstance(payload, dict):
        raise ValidationError(["student_id", "contributor_role", "score"])

    invalid: List[str] = []
    student_id = parse_int(payload.get("student_id"))
    if student_id is None:
        invalid.append("student_id")

    contributor_role = parse_optional_text(payload.get("contributor_role"))
    if contributor_role is None or len(contributor_role) > 50:
        invalid.append("contributor_role")

    score = parse_int(payload.get("score"))
    if score is None or not 0 <= score <= 100:
        invalid.append("score")

    record_date = today_fn()
    raw_date = payload.get("record_date")
    if raw_date not in (None, ""):
        try:
            record_date = datetime.date.fromisoformat(str(raw_date))
        except ValueError:
            invalid.append("record_date")

    if invalid:
        raise ValidationError(invalid)

    if get_student(db, student_id) is None:
        raise NotFoundError("Student not found.")

    record = BehaviorRecord(
        student_id=student_id,
        contributor_id=actor.id,
        contributor_role=contributor_role,
        behavior_category=parse_optional_text(payload.get("behavior_category")),
        score=score,
        notes=parse_optional_text(payload.get("notes")),
        record_date=record_date,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Behavior score %s recorded for student %s by %s", score, student_id, actor.id)
    return record


def list_contributor_history(
    db: Session, actor: Actor, limit: int = CONTRIBUTOR_HISTORY_LIMIT
) -> List[BehaviorRecord]:
    if not actor.has_role(UserRole.CONTRIBUTOR):
        raise ForbiddenError()
    statement = (
        select(BehaviorRecord)
        .where(BehaviorRecord.contributor_id == actor.id)
        .order_by(BehaviorRecord.created_at.desc(), BehaviorRecord.id.desc())
        .limit(limit)
    )
    return list(db.exec(statement).all())


def attribute_validated_log(db: Session, log: CharacterLog, teacher_id: int) -> BehaviorRecord:
    """Record the homeroom teacher's score for a freshly validated log."""
    record = BehaviorRecord(
        student_id=log.student_id,
        contributor_id=teacher_id,
        contributor_role=HOMEROOM_CONTRIBUTOR_ROLE,
        behavior_category=CHARACTER_LOG_CATEGORY,
        score=get_validated_log_score(),
        notes=f"Validated character log {log.log_date.isoformat()}",
        record_date=log.log_date,
    )
    db.add(record)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    return record


def serialize_behavior_record(record: BehaviorRecord, student_name: str | None = None) -> Dict[str, Any]:
    return {
        "id": record.id,
        "student_id": record.student_id,
        "student_name": student_name,
        "contributor_id": record.contributor_id,
        "contributor_role": record.contributor_role,
        "behavior_category": record.behavior_category,
        "score": record.score,
        "notes": record.notes,
        "record_date": record.record_date.isoformat(),
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }
