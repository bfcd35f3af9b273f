"""Daily character log approval workflow."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Callable, List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from character_journal.core.security import Actor
from character_journal.models import AppUser, CharacterLog, LogStatus, SchoolClass, UserRole, utc_now
from character_journal.services.activity_record import ActivityRecord
from character_journal.services.behavior_service import attribute_validated_log
from character_journal.services.directory_service import is_guardian_of, is_homeroom_teacher_of
from character_journal.services.errors import ConflictError, ForbiddenError, NotFoundError
from character_journal.services.notification_service import WhatsAppNotifier

logger = logging.getLogger(__name__)

NotifyFn = Callable[[str, int, datetime.date, str], Any]
AttributeScoreFn = Callable[[CharacterLog, int], Any]


class DailyLogWorkflow:
    """Owns plan/execution submission and the Draft -> ParentApproved -> TeacherValidated pipeline.

    Every state change is a single conditional write against one ``character_log`` row.
    Notification and score attribution run after the commit and never affect the result.
    """

    def __init__(
        self,
        db: Session,
        *,
        notify_fn: NotifyFn | None = None,
        attribute_score_fn: AttributeScoreFn | None = None,
        now_fn: Callable[[], datetime.datetime] = utc_now,
    ):
        self.db = db
        self.notify_fn = notify_fn
        self.attribute_score_fn = attribute_score_fn
        self.now_fn = now_fn

    # Mutations

    def submit_plan(self, actor: Actor, student_id: int, log_date: datetime.date, payload: Any) -> CharacterLog:
        self._require_owner(actor, student_id)
        record = ActivityRecord.from_payload(payload)
        now = self.now_fn()

        log = self._find(student_id, log_date)
        if log is None:
            log = CharacterLog(
                student_id=student_id,
                log_date=log_date,
                plan=record.to_document(),
                plan_submitted_at=now,
                status=LogStatus.DRAFT.value,
                created_at=now,
            )
            self.db.add(log)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise ConflictError(
                    "Plan has already been submitted for this date.",
                    self._status_of(self._find(student_id, log_date)),
                )
            self.db.refresh(log)
        else:
            if log.plan_submitted_at is not None:
                raise ConflictError("Plan has already been submitted for this date.", log.status)
            applied = self._compare_and_set(
                log.id,
                [CharacterLog.plan_submitted_at.is_(None)],
                {"plan": record.to_document(), "plan_submitted_at": now},
            )
            if not applied:
                raise ConflictError("Plan has already been submitted for this date.", self._status_of(log))
            self.db.refresh(log)

        logger.info("Plan submitted: student=%s date=%s log=%s", student_id, log_date, log.id)
        return log

    def submit_execution(
        self, actor: Actor, student_id: int, log_date: datetime.date, payload: Any
    ) -> CharacterLog:
        self._require_owner(actor, student_id)
        record = ActivityRecord.from_payload(payload)

        log = self._find(student_id, log_date)
        if log is None or log.plan_submitted_at is None:
            raise NotFoundError("Plan must be submitted before the execution report.")
        if log.execution_submitted_at is not None:
            raise ConflictError("Execution has already been submitted for this date.", log.status)

        applied = self._compare_and_set(
            log.id,
            [
                CharacterLog.plan_submitted_at.is_not(None),
                CharacterLog.execution_submitted_at.is_(None),
                CharacterLog.status == LogStatus.DRAFT.value,
            ],
            {"execution": record.to_document(), "execution_submitted_at": self.now_fn()},
        )
        if not applied:
            raise ConflictError("Execution has already been submitted for this date.", self._status_of(log))
        self.db.refresh(log)

        logger.info("Execution submitted: student=%s date=%s log=%s", student_id, log_date, log.id)
        self._notify("parent", log)
        return log

    def approve(self, actor: Actor, log_id: int) -> CharacterLog:
        log = self.db.get(CharacterLog, log_id)
        if (
            log is None
            or not actor.has_role(UserRole.PARENT)
            or not is_guardian_of(self.db, actor.id, log.student_id)
        ):
            raise ForbiddenError()
        if log.status != LogStatus.DRAFT.value:
            raise ConflictError("Log is no longer awaiting parent approval.", log.status)
        if log.execution_submitted_at is None:
            raise ConflictError("Execution has not been submitted yet.", log.status)

        applied = self._compare_and_set(
            log.id,
            [
                CharacterLog.status == LogStatus.DRAFT.value,
                CharacterLog.execution_submitted_at.is_not(None),
            ],
            {
                "status": LogStatus.PARENT_APPROVED.value,
                "approved_at": self.now_fn(),
                "approved_by": actor.id,
            },
        )
        if not applied:
            raise ConflictError("Log is no longer awaiting parent approval.", self._status_of(log))
        self.db.refresh(log)

        logger.info("Log %s approved by parent %s", log.id, actor.id)
        self._notify("teacher", log)
        return log

    def validate(self, actor: Actor, log_id: int) -> CharacterLog:
        log = self.db.get(CharacterLog, log_id)
        if (
            log is None
            or not actor.has_role(UserRole.TEACHER)
            or not is_homeroom_teacher_of(self.db, actor.id, log.student_id)
        ):
            raise ForbiddenError()
        if log.status != LogStatus.PARENT_APPROVED.value:
            raise ConflictError("Log must be approved by a parent before validation.", log.status)

        applied = self._compare_and_set(
            log.id,
            [CharacterLog.status == LogStatus.PARENT_APPROVED.value],
            {
                "status": LogStatus.TEACHER_VALIDATED.value,
                "validated_at": self.now_fn(),
                "validated_by": actor.id,
            },
        )
        if not applied:
            raise ConflictError("Log must be approved by a parent before validation.", self._status_of(log))
        self.db.refresh(log)

        logger.info("Log %s validated by teacher %s", log.id, actor.id)
        if self.attribute_score_fn is not None:
            self._run_side_effect("score attribution", self.attribute_score_fn, log, actor.id)
        self._notify("parent", log)
        return log

    # Reads

    def get_by_date(self, actor: Actor, student_id: int, log_date: datetime.date) -> CharacterLog:
        if not self._can_view(actor, student_id):
            raise ForbiddenError()
        log = self._find(student_id, log_date)
        if log is None:
            raise NotFoundError("No journal for this date.")
        return log

    def list_pending_approval(self, actor: Actor) -> List[CharacterLog]:
        if not actor.has_role(UserRole.PARENT):
            raise ForbiddenError()
        statement = (
            select(CharacterLog)
            .join(AppUser, AppUser.id == CharacterLog.student_id)
            .where(
                AppUser.parent_id == actor.id,
                CharacterLog.status == LogStatus.DRAFT.value,
                CharacterLog.execution_submitted_at.is_not(None),
            )
            .order_by(CharacterLog.log_date.desc(), CharacterLog.id.desc())
        )
        return list(self.db.exec(statement).all())

    def list_pending_validation(self, actor: Actor) -> List[CharacterLog]:
        if not actor.has_role(UserRole.TEACHER):
            raise ForbiddenError()
        statement = (
            select(CharacterLog)
            .join(AppUser, AppUser.id == CharacterLog.student_id)
            .join(SchoolClass, SchoolClass.id == AppUser.class_id)
            .where(
                SchoolClass.teacher_id == actor.id,
                CharacterLog.status == LogStatus.PARENT_APPROVED.value,
            )
            .order_by(CharacterLog.log_date.asc(), CharacterLog.id.asc())
        )
        return list(self.db.exec(statement).all())

    # Helpers

    def _require_owner(self, actor: Actor, student_id: int) -> None:
        if not actor.has_role(UserRole.STUDENT) or actor.id != student_id:
            raise ForbiddenError()

    def _can_view(self, actor: Actor, student_id: int) -> bool:
        if actor.has_role(UserRole.ADMIN):
            return True
        if actor.has_role(UserRole.STUDENT):
            return actor.id == student_id
        if actor.has_role(UserRole.PARENT):
            return is_guardian_of(self.db, actor.id, student_id)
        if actor.has_role(UserRole.TEACHER):
            return is_homeroom_teacher_of(self.db, actor.id, student_id)
        return False

    def _find(self, student_id: int, log_date: datetime.date) -> CharacterLog | None:
        return self.db.exec(
            select(CharacterLog).where(
                CharacterLog.student_id == student_id,
                CharacterLog.log_date == log_date,
            )
        ).first()

    def _status_of(self, log: CharacterLog | None) -> str | None:
        if log is None:
            return None
        self.db.refresh(log)
        return log.status

    def _compare_and_set(self, log_id: int, conditions: list, values: dict) -> bool:
        result = self.db.exec(
            update(CharacterLog).where(CharacterLog.id == log_id, *conditions).values(**values)
        )
        if result.rowcount != 1:
            self.db.rollback()
            return False
        self.db.commit()
        return True

    def _notify(self, recipient_role: str, log: CharacterLog) -> None:
        if self.notify_fn is None:
            return
        self._run_side_effect(
            f"{recipient_role} notification",
            self.notify_fn,
            recipient_role,
            log.student_id,
            log.log_date,
            log.status,
        )

    def _run_side_effect(self, name: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.warning("%s failed; transition already committed", name, exc_info=True)


def create_workflow(db: Session) -> DailyLogWorkflow:
    """Workflow wired to WhatsApp delivery and homeroom score attribution."""
    return DailyLogWorkflow(
        db,
        notify_fn=WhatsAppNotifier(db),
        attribute_score_fn=lambda log, teacher_id: attribute_validated_log(db, log, teacher_id),
    )
