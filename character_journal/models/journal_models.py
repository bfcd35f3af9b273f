"""Character journal SQLModel models."""

from __future__ import annotations

import datetime
import enum

from sqlalchemy import JSON, Column, DateTime, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _timestamp_column(nullable: bool = True) -> Column:
    # 日本語: タイムゾーン付きで保存 / English: Timestamps are stored timezone-aware
    return Column(DateTime(timezone=True), nullable=nullable)


class LogStatus(str, enum.Enum):
    DRAFT = "Draft"
    PARENT_APPROVED = "ParentApproved"
    TEACHER_VALIDATED = "TeacherValidated"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


# 日本語: 画面表示用ラベル / English: Display labels used by the school UI
STATUS_LABELS = {
    LogStatus.DRAFT: "Tersimpan",
    LogStatus.PARENT_APPROVED: "Disetujui",
    LogStatus.TEACHER_VALIDATED: "Disahkan",
}


# 日本語: 生徒ごと・日付ごとの習慣ログ / English: One habit journal per student per day
class CharacterLog(SQLModel, table=True):
    __tablename__ = "character_log"
    __table_args__ = (UniqueConstraint("student_id", "log_date", name="uq_character_log_student_date"),)

    id: int | None = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="app_user.id", index=True)
    log_date: datetime.date
    # 日本語: 計画と実施はJSON文書として保存 / English: Plan and execution are stored as JSON documents
    plan: dict | None = Field(default=None, sa_column=Column(JSON))
    execution: dict | None = Field(default=None, sa_column=Column(JSON))
    status: str = Field(default=LogStatus.DRAFT.value, max_length=20, index=True)
    plan_submitted_at: datetime.datetime | None = Field(default=None, sa_column=_timestamp_column())
    execution_submitted_at: datetime.datetime | None = Field(default=None, sa_column=_timestamp_column())
    approved_at: datetime.datetime | None = Field(default=None, sa_column=_timestamp_column())
    approved_by: int | None = Field(default=None)
    validated_at: datetime.datetime | None = Field(default=None, sa_column=_timestamp_column())
    validated_by: int | None = Field(default=None)
    created_at: datetime.datetime = Field(default_factory=utc_now, sa_column=_timestamp_column(nullable=False))

    @property
    def plan_record(self):
        """Typed view of the stored plan, or None before the plan is submitted."""
        return _to_record(self.plan)

    @property
    def execution_record(self):
        return _to_record(self.execution)


def _to_record(document: dict | None):
    if not document:
        return None
    # 日本語: services パッケージとの循環 import を避ける / English: Imported lazily, the services package imports models
    from character_journal.services.activity_record import ActivityRecord

    return ActivityRecord.from_document(document)


# 日本語: 貢献者が付ける態度評価 (ログの状態とは独立) / English: Behavior score, independent from log status
class BehaviorRecord(SQLModel, table=True):
    __tablename__ = "behavior_record"

    id: int | None = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="app_user.id", index=True)
    contributor_id: int = Field(foreign_key="app_user.id", index=True)
    contributor_role: str = Field(max_length=50)
    behavior_category: str | None = Field(default=None, max_length=50)
    score: int
    notes: str | None = Field(default=None, sa_column=Column(Text))
    record_date: datetime.date
    created_at: datetime.datetime = Field(default_factory=utc_now, sa_column=_timestamp_column(nullable=False))


# 日本語: 貢献者が生徒に割り当てる習慣ミッション (ログの状態とは独立) / English: Habit mission assigned by a contributor, independent from log status
class Mission(SQLModel, table=True):
    __tablename__ = "mission"

    id: int | None = Field(default=None, primary_key=True)
    contributor_id: int = Field(foreign_key="app_user.id", index=True)
    student_id: int = Field(foreign_key="app_user.id", index=True)
    # 日本語: クラス単位で割り当てた場合のみ設定 / English: Set only when the mission was assigned to a whole class
    class_id: int | None = Field(default=None, foreign_key="school_class.id", index=True)
    habit_category: str = Field(max_length=20)
    title: str = Field(max_length=200)
    description: str | None = Field(default=None, sa_column=Column(Text))
    due_date: datetime.date
    created_at: datetime.datetime = Field(default_factory=utc_now, sa_column=_timestamp_column(nullable=False))
