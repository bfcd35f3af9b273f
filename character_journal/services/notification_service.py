"""WhatsApp notifications sent to parents and homeroom teachers as a log moves through review."""

from __future__ import annotations

import datetime
import logging
import re

import requests
from sqlmodel import Session

from character_journal.core.config import FONNTE_API_URL, get_fonnte_token, get_notification_timeout
from character_journal.models import AppUser, LogStatus
from character_journal.services.directory_service import get_homeroom_teacher_id, get_student

logger = logging.getLogger(__name__)


def _format_target(phone: str | None) -> str:
    return re.sub(r"\D", "", phone or "")


def _status_label(status: str) -> str:
    try:
        return LogStatus(status).label
    except ValueError:
        return status


def build_message(recipient_role: str, student_name: str, log_date: datetime.date, status: str) -> str:
    date_text = log_date.strftime("%d-%m-%Y")
    label = _status_label(status)
    if recipient_role == "teacher":
        return (
            f"Jurnal karakter {student_name} tanggal {date_text} telah disetujui orang tua "
            f"(status: {label}) dan menunggu pengesahan wali kelas."
        )
    if status == LogStatus.TEACHER_VALIDATED.value:
        return (
            f"Jurnal karakter Ananda {student_name} tanggal {date_text} telah disahkan "
            f"oleh wali kelas (status: {label})."
        )
    return (
        f"Ananda {student_name} telah mengisi laporan kebiasaan tanggal {date_text} "
        f"(status: {label}). Mohon periksa dan berikan persetujuan."
    )


class WhatsAppNotifier:
    """Sends workflow notifications over WhatsApp through the Fonnte gateway."""

    def __init__(self, db: Session, *, post_fn=requests.post):
        self.db = db
        self.post_fn = post_fn

    def __call__(self, recipient_role: str, student_id: int, log_date: datetime.date, new_status: str) -> bool:
        return self.notify(recipient_role, student_id, log_date, new_status)

    def notify(self, recipient_role: str, student_id: int, log_date: datetime.date, new_status: str) -> bool:
        token = get_fonnte_token()
        if not token:
            logger.info("FONNTE_TOKEN is not set; skipping %s notification", recipient_role)
            return False

        student = get_student(self.db, student_id)
        if student is None:
            logger.warning("Notification skipped: student %s not found", student_id)
            return False

        recipient = self._resolve_recipient(recipient_role, student)
        target = _format_target(recipient.phone if recipient else None)
        if not target:
            logger.warning("Notification skipped: no %s phone for student %s", recipient_role, student_id)
            return False

        message = build_message(recipient_role, student.full_name, log_date, new_status)
        try:
            response = self.post_fn(
                FONNTE_API_URL,
                headers={"Authorization": token},
                json={"target": target, "message": message},
                timeout=get_notification_timeout(),
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("WhatsApp delivery to %s failed: %s", recipient_role, exc)
            return False

        logger.info("WhatsApp notification sent to %s for student %s", recipient_role, student_id)
        return True

    def _resolve_recipient(self, recipient_role: str, student: AppUser) -> AppUser | None:
        if recipient_role == "parent":
            return self.db.get(AppUser, student.parent_id) if student.parent_id else None
        if recipient_role == "teacher":
            teacher_id = get_homeroom_teacher_id(self.db, student.id)
            return self.db.get(AppUser, teacher_id) if teacher_id else None
        return None
