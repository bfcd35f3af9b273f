"""HTTP handler implementations used by the API routers."""

from __future__ import annotations

import datetime
from typing import Any, Dict, Iterable, List

from fastapi import HTTPException, Request
from sqlmodel import Session

from character_journal.core.config import HABIT_OPTIONS
from character_journal.core.security import Actor
from character_journal.models import CharacterLog, LogStatus
from character_journal.services.activity_record import ActivityRecord
from character_journal.services.behavior_service import serialize_behavior_record
from character_journal.services.directory_service import get_user_names
from character_journal.services.mission_service import serialize_mission
from character_journal.services.errors import ValidationError


def _parse_date(date_str: Any) -> datetime.date:
    try:
        return datetime.datetime.strptime(str(date_str), "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format")


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except Exception:
        return None


def _isoformat(value: datetime.date | datetime.datetime | None) -> str | None:
    return value.isoformat() if value else None


def _status_label(status: str) -> str:
    try:
        return LogStatus(status).label
    except ValueError:
        return status


def _record_document(record: ActivityRecord | None) -> Dict[str, Any] | None:
    return record.to_document() if record is not None else None


def serialize_log(log: CharacterLog, student_name: str | None = None) -> Dict[str, Any]:
    return {
        "id": log.id,
        "student_id": log.student_id,
        "student_name": student_name,
        "log_date": log.log_date.isoformat(),
        "status": log.status,
        "status_label": _status_label(log.status),
        "plan": _record_document(log.plan_record),
        "execution": _record_document(log.execution_record),
        "plan_submitted_at": _isoformat(log.plan_submitted_at),
        "execution_submitted_at": _isoformat(log.execution_submitted_at),
        "approved_at": _isoformat(log.approved_at),
        "approved_by": log.approved_by,
        "validated_at": _isoformat(log.validated_at),
        "validated_by": log.validated_by,
        "created_at": _isoformat(log.created_at),
    }


def serialize_logs(db: Session, logs: Iterable[CharacterLog]) -> List[Dict[str, Any]]:
    logs = list(logs)
    names = get_user_names(db, (log.student_id for log in logs))
    return [serialize_log(log, names.get(log.student_id)) for log in logs]


def _serialize_one(db: Session, log: CharacterLog) -> Dict[str, Any]:
    return serialize_logs(db, [log])[0]


def character_options():
    return {key: list(values) for key, values in HABIT_OPTIONS.items()}


def get_log(student_id: int, date_str: str, actor: Actor, db: Session, *, create_workflow_fn):
    log_date = _parse_date(date_str)
    log = create_workflow_fn(db).get_by_date(actor, student_id, log_date)
    return _serialize_one(db, log)


async def submit_plan(
    request: Request,
    student_id: int,
    date_str: str,
    actor: Actor,
    db: Session,
    *,
    create_workflow_fn,
):
    log_date = _parse_date(date_str)
    payload = await _read_json(request)
    log = create_workflow_fn(db).submit_plan(actor, student_id, log_date, payload)
    return _serialize_one(db, log)


async def submit_execution(
    request: Request,
    student_id: int,
    date_str: str,
    actor: Actor,
    db: Session,
    *,
    create_workflow_fn,
):
    log_date = _parse_date(date_str)
    payload = await _read_json(request)
    log = create_workflow_fn(db).submit_execution(actor, student_id, log_date, payload)
    return _serialize_one(db, log)


def character_history(actor: Actor, db: Session, *, student_history_fn):
    return serialize_logs(db, student_history_fn(db, actor))


def parent_pending(actor: Actor, db: Session, *, create_workflow_fn):
    return serialize_logs(db, create_workflow_fn(db).list_pending_approval(actor))


def parent_approve(log_id: int, actor: Actor, db: Session, *, create_workflow_fn):
    log = create_workflow_fn(db).approve(actor, log_id)
    return _serialize_one(db, log)


def parent_log_history(actor: Actor, db: Session, *, parent_history_fn):
    return serialize_logs(db, parent_history_fn(db, actor))


def teacher_pending(actor: Actor, db: Session, *, create_workflow_fn):
    return serialize_logs(db, create_workflow_fn(db).list_pending_validation(actor))


def teacher_validate(log_id: int, actor: Actor, db: Session, *, create_workflow_fn):
    log = create_workflow_fn(db).validate(actor, log_id)
    return _serialize_one(db, log)


def teacher_history(student_id: int | None, actor: Actor, db: Session, *, class_history_fn):
    return serialize_logs(db, class_history_fn(db, actor, student_id=student_id))


async def generate_report(request: Request, actor: Actor, db: Session, *, generate_student_report_fn):
    payload = await _read_json(request)
    if not isinstance(payload, dict):
        payload = {}

    # 日本語: 旧クライアントの camelCase キーも受け付ける / English: Accept legacy camelCase keys as well
    raw_student_id = payload.get("student_id", payload.get("studentId"))
    raw_start = payload.get("start_date", payload.get("startDate"))
    raw_end = payload.get("end_date", payload.get("endDate"))

    missing = []
    try:
        student_id = int(raw_student_id)
    except (TypeError, ValueError):
        missing.append("student_id")
    if not raw_start:
        missing.append("start_date")
    if not raw_end:
        missing.append("end_date")
    if missing:
        raise ValidationError(missing)

    return generate_student_report_fn(db, actor, student_id, _parse_date(raw_start), _parse_date(raw_end))


async def contributor_score(request: Request, actor: Actor, db: Session, *, submit_behavior_score_fn):
    payload = await _read_json(request)
    record = submit_behavior_score_fn(db, actor, payload)
    names = get_user_names(db, [record.student_id])
    return serialize_behavior_record(record, names.get(record.student_id))


def contributor_history(actor: Actor, db: Session, *, list_contributor_history_fn):
    records = list_contributor_history_fn(db, actor)
    names = get_user_names(db, (record.student_id for record in records))
    return [serialize_behavior_record(record, names.get(record.student_id)) for record in records]


def _serialize_missions(db: Session, missions) -> List[Dict[str, Any]]:
    names = get_user_names(db, (mission.student_id for mission in missions))
    return [serialize_mission(mission, names.get(mission.student_id)) for mission in missions]


def contributor_data(actor: Actor, db: Session, *, get_contributor_data_fn):
    return get_contributor_data_fn(db, actor)


async def contributor_mission(request: Request, actor: Actor, db: Session, *, assign_mission_fn):
    payload = await _read_json(request)
    if isinstance(payload, dict):
        # 日本語: 旧クライアントの camelCase キーも受け付ける / English: Accept legacy camelCase keys as well
        payload = {
            **payload,
            "student_id": payload.get("student_id", payload.get("studentId")),
            "class_id": payload.get("class_id", payload.get("classId")),
            "habit_category": payload.get("habit_category", payload.get("habit")),
            "due_date": payload.get("due_date", payload.get("dueDate")),
        }
    missions = assign_mission_fn(db, actor, payload)
    return _serialize_missions(db, missions)


def contributor_missions(actor: Actor, db: Session, *, list_contributor_missions_fn):
    return _serialize_missions(db, list_contributor_missions_fn(db, actor))


def character_missions(actor: Actor, db: Session, *, list_student_missions_fn):
    return _serialize_missions(db, list_student_missions_fn(db, actor))
