"""Habit missions that contributors assign to a student or a whole class."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, List

from sqlmodel import Session, select

from character_journal.core.config import CONTRIBUTOR_HISTORY_LIMIT, MISSION_HABIT_CATEGORIES
from character_journal.core.security import Actor
from character_journal.models import AppUser, Mission, SchoolClass, UserRole
from character_journal.services.behavior_service import parse_int, parse_optional_text
from character_journal.services.directory_service import get_student, get_user_names
from character_journal.services.errors import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MISSION_TITLE_MAX_LENGTH = 200


def _require_contributor(actor: Actor) -> None:
    if not actor.has_role(UserRole.CONTRIBUTOR):
        raise ForbiddenError("Only contributors can manage missions.")


def get_contributor_data(db: Session, actor: Actor) -> Dict[str, List[Dict[str, Any]]]:
    """Student and class pickers for the contributor forms."""
    _require_contributor(actor)

    rows = db.exec(
        select(AppUser, SchoolClass)
        .join(SchoolClass, SchoolClass.id == AppUser.class_id, isouter=True)
        .where(AppUser.role == UserRole.STUDENT.value)
        .order_by(SchoolClass.name.asc(), AppUser.full_name.asc())
    ).all()
    teacher_names = get_user_names(db, (school_class.teacher_id for _, school_class in rows if school_class))

    students = [
        {
            "id": student.id,
            "full_name": student.full_name,
            "nisn": student.nisn,
            "class_id": student.class_id,
            "class_name": school_class.name if school_class else None,
            "teacher_name": teacher_names.get(school_class.teacher_id) if school_class else None,
        }
        for student, school_class in rows
    ]
    classes = [
        {"id": school_class.id, "name": school_class.name}
        for school_class in db.exec(select(SchoolClass).order_by(SchoolClass.name.asc())).all()
    ]
    return {"students": students, "classes": classes}


def assign_mission(
    db: Session,
    actor: Actor,
    payload: Any,
    *,
    today_fn=datetime.date.today,
) -> List[Mission]:
    """Create one mission row per targeted student.

    A class assignment fans out to every student currently in the class and keeps
    ``class_id`` on each row.
    """
    _require_contributor(actor)
    if not isinstance(payload, dict):
        raise ValidationError(["title", "habit_category", "due_date"])

    invalid: List[str] = []
    title = parse_optional_text(payload.get("title"))
    if title is None or len(title) > MISSION_TITLE_MAX_LENGTH:
        invalid.append("title")

    habit_category = parse_optional_text(payload.get("habit_category"))
    if habit_category not in MISSION_HABIT_CATEGORIES:
        invalid.append("habit_category")

    due_date = None
    try:
        due_date = datetime.date.fromisoformat(str(payload.get("due_date") or ""))
    except ValueError:
        invalid.append("due_date")
    if due_date is not None and due_date < today_fn():
        invalid.append("due_date")

    student_id = parse_int(payload.get("student_id"))
    class_id = parse_int(payload.get("class_id"))
    # exactly one target
    if (student_id is None) == (class_id is None):
        invalid.extend(["student_id", "class_id"])

    if invalid:
        raise ValidationError(invalid)

    if student_id is not None:
        if get_student(db, student_id) is None:
            raise NotFoundError("Student not found.")
        student_ids = [student_id]
    else:
        if db.get(SchoolClass, class_id) is None:
            raise NotFoundError("Class not found.")
        student_ids = list(
            db.exec(
                select(AppUser.id)
                .where(AppUser.class_id == class_id, AppUser.role == UserRole.STUDENT.value)
                .order_by(AppUser.id.asc())
            ).all()
        )
        if not student_ids:
            raise NotFoundError("No students in this class.")

    missions = [
        Mission(
            contributor_id=actor.id,
            student_id=target_id,
            class_id=class_id,
            habit_category=habit_category,
            title=title,
            description=parse_optional_text(payload.get("description")),
            due_date=due_date,
        )
        for target_id in student_ids
    ]
    db.add_all(missions)
    db.commit()
    for mission in missions:
        db.refresh(mission)

    logger.info("Mission '%s' assigned by %s to %d student(s)", title, actor.id, len(missions))
    return missions


def list_contributor_missions(
    db: Session, actor: Actor, limit: int = CONTRIBUTOR_HISTORY_LIMIT
) -> List[Mission]:
    _require_contributor(actor)
    statement = (
        select(Mission)
        .where(Mission.contributor_id == actor.id)
        .order_by(Mission.due_date.desc(), Mission.id.desc())
        .limit(limit)
    )
    return list(db.exec(statement).all())


def list_student_missions(db: Session, actor: Actor) -> List[Mission]:
    if not actor.has_role(UserRole.STUDENT):
        raise ForbiddenError()
    statement = (
        select(Mission)
        .where(Mission.student_id == actor.id)
        .order_by(Mission.due_date.asc(), Mission.id.asc())
    )
    return list(db.exec(statement).all())


def serialize_mission(mission: Mission, student_name: str | None = None) -> Dict[str, Any]:
    return {
        "id": mission.id,
        "contributor_id": mission.contributor_id,
        "student_id": mission.student_id,
        "student_name": student_name,
        "class_id": mission.class_id,
        "habit_category": mission.habit_category,
        "title": mission.title,
        "description": mission.description,
        "due_date": mission.due_date.isoformat(),
        "created_at": mission.created_at.isoformat() if mission.created_at else None,
    }
