"""Lookups for the student/parent/teacher relationships."""

from __future__ import annotations

from typing import Dict, Iterable, List

from sqlmodel import Session, select

from character_journal.models import AppUser, SchoolClass, UserRole


def get_student(db: Session, student_id: int) -> AppUser | None:
    user = db.get(AppUser, student_id)
    if user is None or user.role != UserRole.STUDENT.value:
        return None
    return user


def is_guardian_of(db: Session, parent_id: int, student_id: int) -> bool:
    student = get_student(db, student_id)
    return bool(student and student.parent_id is not None and student.parent_id == parent_id)


def get_homeroom_teacher_id(db: Session, student_id: int) -> int | None:
    student = get_student(db, student_id)
    if student is None or student.class_id is None:
        return None
    school_class = db.get(SchoolClass, student.class_id)
    return school_class.teacher_id if school_class else None


def is_homeroom_teacher_of(db: Session, teacher_id: int, student_id: int) -> bool:
    homeroom_id = get_homeroom_teacher_id(db, student_id)
    return homeroom_id is not None and homeroom_id == teacher_id


def get_homeroom_class_ids(db: Session, teacher_id: int) -> List[int]:
    return list(db.exec(select(SchoolClass.id).where(SchoolClass.teacher_id == teacher_id)).all())


def get_linked_student_ids(db: Session, parent_id: int) -> List[int]:
    return list(
        db.exec(
            select(AppUser.id).where(
                AppUser.parent_id == parent_id,
                AppUser.role == UserRole.STUDENT.value,
            )
        ).all()
    )


def get_user_names(db: Session, user_ids: Iterable[int]) -> Dict[int, str]:
    ids = sorted({user_id for user_id in user_ids if user_id is not None})
    if not ids:
        return {}
    rows = db.exec(select(AppUser.id, AppUser.full_name).where(AppUser.id.in_(ids))).all()
    return {row[0]: row[1] for row in rows}
