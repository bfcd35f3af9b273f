"""Student, parent and homeroom views over past journal entries."""

from __future__ import annotations

from typing import List

from sqlmodel import Session, select

from character_journal.core.config import CLASS_HISTORY_LIMIT
from character_journal.core.security import Actor
from character_journal.models import AppUser, CharacterLog, UserRole
from character_journal.services.directory_service import get_homeroom_class_ids, get_linked_student_ids
from character_journal.services.errors import ForbiddenError


def _newest_first(statement):
    return statement.order_by(CharacterLog.log_date.desc(), CharacterLog.id.desc())


def student_history(db: Session, actor: Actor) -> List[CharacterLog]:
    if not actor.has_role(UserRole.STUDENT):
        raise ForbiddenError()
    statement = _newest_first(select(CharacterLog).where(CharacterLog.student_id == actor.id))
    return list(db.exec(statement).all())


def parent_history(db: Session, actor: Actor) -> List[CharacterLog]:
    if not actor.has_role(UserRole.PARENT):
        raise ForbiddenError()
    student_ids = get_linked_student_ids(db, actor.id)
    if not student_ids:
        return []
    statement = _newest_first(select(CharacterLog).where(CharacterLog.student_id.in_(student_ids)))
    return list(db.exec(statement).all())


def class_history(
    db: Session,
    actor: Actor,
    student_id: int | None = None,
    limit: int = CLASS_HISTORY_LIMIT,
) -> List[CharacterLog]:
    if not actor.has_role(UserRole.TEACHER):
        raise ForbiddenError()
    class_ids = get_homeroom_class_ids(db, actor.id)
    if not class_ids:
        raise ForbiddenError("You are not assigned as a homeroom teacher.")

    statement = (
        select(CharacterLog)
        .join(AppUser, AppUser.id == CharacterLog.student_id)
        .where(AppUser.class_id.in_(class_ids))
    )
    if student_id is not None:
        statement = statement.where(CharacterLog.student_id == student_id)
    statement = _newest_first(statement).limit(limit)
    return list(db.exec(statement).all())
