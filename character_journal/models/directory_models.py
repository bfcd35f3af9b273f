"""School directory SQLModel models."""

from __future__ import annotations

import enum

from sqlmodel import Field, SQLModel


class UserRole(str, enum.Enum):
    STUDENT = "student"
    PARENT = "parent"
    TEACHER = "teacher"
    CONTRIBUTOR = "contributor"
    ADMIN = "admin"


# 日本語: 全ロール共通のユーザー台帳 / English: Shared user registry for every role
class AppUser(SQLModel, table=True):
    __tablename__ = "app_user"

    id: int | None = Field(default=None, primary_key=True)
    full_name: str = Field(max_length=150)
    role: str = Field(max_length=20, index=True)
    # 日本語: 生徒の NISN (全国生徒番号) / English: Student national number (NISN)
    nisn: str | None = Field(default=None, max_length=20, unique=True)
    # 日本語: WhatsApp 通知先の電話番号 / English: Phone number used for WhatsApp notifications
    phone: str | None = Field(default=None, max_length=30)
    class_id: int | None = Field(default=None, foreign_key="school_class.id", index=True)
    # 日本語: 生徒に紐づく保護者 / English: Guardian linked to this student
    parent_id: int | None = Field(default=None, foreign_key="app_user.id", index=True)


# 日本語: クラスと担任 / English: Class with its homeroom teacher
class SchoolClass(SQLModel, table=True):
    __tablename__ = "school_class"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=50, unique=True)
    teacher_id: int | None = Field(default=None, index=True)
