"""Homeroom character reports generated from a student's journal entries."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Callable, Dict, List

from sqlmodel import Session, select

from llm_client import generate_report_narrative

from character_journal.core.security import Actor
from character_journal.models import CharacterLog, UserRole
from character_journal.services.directory_service import get_student, is_homeroom_teacher_of
from character_journal.services.errors import (
    ForbiddenError,
    NarrativeUnavailableError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GenerateFn = Callable[[str, List[Dict[str, Any]]], Dict[str, str]]


def summarize_log(log: CharacterLog) -> Dict[str, Any]:
    """Compact per-day view sent to the generator: the execution when present, else the plan."""
    execution = log.execution_record
    record = execution or log.plan_record
    summary = {
        "tgl": log.log_date.isoformat(),
        "sumber": "pelaksanaan" if execution else "rencana",
        "status": log.status,
    }
    if record is None:
        return summary
    summary.update(
        {
            "bangun": record.wake_up_time.isoformat(timespec="minutes"),
            "ibadah": list(record.worship_activities),
            "olahraga": record.sport_activity,
            "makan": record.meal_description,
            "belajar": list(record.study_activities),
            "sosial": list(record.social_activities),
            "tidur": record.sleep_time.isoformat(timespec="minutes"),
        }
    )
    return summary


def generate_student_report(
    db: Session,
    actor: Actor,
    student_id: int,
    start_date: datetime.date,
    end_date: datetime.date,
    *,
    generate_fn: GenerateFn | None = None,
) -> Dict[str, Any]:
    if not actor.has_role(UserRole.TEACHER) or not is_homeroom_teacher_of(db, actor.id, student_id):
        raise ForbiddenError()
    if start_date > end_date:
        raise ValidationError(["end_date"], "end_date must not be before start_date")

    logs = list(
        db.exec(
            select(CharacterLog)
            .where(
                CharacterLog.student_id == student_id,
                CharacterLog.log_date >= start_date,
                CharacterLog.log_date <= end_date,
            )
            .order_by(CharacterLog.log_date.asc())
        ).all()
    )
    if not logs:
        raise NotFoundError("No journal entries in this period.")

    student = get_student(db, student_id)
    student_name = student.full_name if student else "Siswa"
    generate = generate_fn or generate_report_narrative
    try:
        report = generate(student_name, [summarize_log(log) for log in logs])
    except Exception as exc:
        logger.warning("Narrative generation failed for student %s: %s", student_id, exc)
        raise NarrativeUnavailableError() from exc

    return {
        "student_id": student_id,
        "student_name": student_name,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "log_count": len(logs),
        **report,
    }
