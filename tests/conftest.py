import datetime
import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("JWT_SECRET", "test-journal-secret-key-for-pytest-runs")

from character_journal.core.security import Actor  # noqa: E402
from character_journal.models import AppUser, SchoolClass, UserRole  # noqa: E402

LOG_DATE = datetime.date(2026, 10, 19)


def make_activity(**overrides):
    payload = {
        "wake_up_time": "04:30",
        "worship_activities": ["Shubuh", "Baca Al-Qur'an"],
        "worship_detail": "Shalat berjamaah di masjid",
        "sport_activity": "Jogging",
        "sport_detail": "Keliling kompleks 20 menit",
        "meal_description": "Nasi, sayur bayam, telur",
        "study_activities": ["Matematika"],
        "study_detail": "Latihan soal pecahan",
        "social_activities": ["Kerja Bakti"],
        "social_detail": "Membersihkan selokan bersama warga",
        "sleep_time": "21:00",
    }
    payload.update(overrides)
    return payload


def build_memory_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


def seed_directory(db: Session) -> SimpleNamespace:
    """Two classes with one student each, their parents, and the unaffiliated roles."""
    teacher_1 = AppUser(full_name="Bu Sari", role=UserRole.TEACHER.value, phone="0812-1111-0001")
    teacher_2 = AppUser(full_name="Pak Budi", role=UserRole.TEACHER.value, phone="0812-1111-0002")
    teacher_without_class = AppUser(full_name="Bu Rina", role=UserRole.TEACHER.value)
    parent_1 = AppUser(full_name="Ibu Ani", role=UserRole.PARENT.value, phone="+62 812 2222 0001")
    parent_2 = AppUser(full_name="Bapak Dedi", role=UserRole.PARENT.value, phone="081222220002")
    contributor = AppUser(full_name="Guru Mapel", role=UserRole.CONTRIBUTOR.value)
    admin = AppUser(full_name="Admin Sekolah", role=UserRole.ADMIN.value)
    db.add_all([teacher_1, teacher_2, teacher_without_class, parent_1, parent_2, contributor, admin])
    db.commit()

    class_1 = SchoolClass(name="7A", teacher_id=teacher_1.id)
    class_2 = SchoolClass(name="7B", teacher_id=teacher_2.id)
    db.add_all([class_1, class_2])
    db.commit()

    student_1 = AppUser(
        full_name="Ahmad",
        role=UserRole.STUDENT.value,
        nisn="0012345671",
        class_id=class_1.id,
        parent_id=parent_1.id,
    )
    student_2 = AppUser(
        full_name="Bunga",
        role=UserRole.STUDENT.value,
        nisn="0012345672",
        class_id=class_2.id,
        parent_id=parent_2.id,
    )
    db.add_all([student_1, student_2])
    db.commit()

    users = {
        "S1": student_1,
        "S2": student_2,
        "P1": parent_1,
        "P2": parent_2,
        "T1": teacher_1,
        "T2": teacher_2,
        "T3": teacher_without_class,
        "C1": contributor,
        "A1": admin,
    }
    actors = {key: Actor(id=user.id, role=UserRole(user.role)) for key, user in users.items()}
    return SimpleNamespace(
        ids={key: user.id for key, user in users.items()},
        actors=SimpleNamespace(**actors),
        class_ids={"7A": class_1.id, "7B": class_2.id},
    )


class RecordingNotifier:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def __call__(self, recipient_role, student_id, log_date, new_status):
        self.calls.append((recipient_role, student_id, log_date, new_status))
        if self.fail:
            raise RuntimeError("gateway down")
        return True


class FixedClock:
    def __init__(self, start=datetime.datetime(2026, 10, 19, 6, 0, 0, tzinfo=datetime.timezone.utc)):
        self.current = start

    def __call__(self):
        self.current = self.current + datetime.timedelta(minutes=1)
        return self.current


@pytest.fixture()
def engine():
    engine = build_memory_engine()
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def directory(db):
    return seed_directory(db)
