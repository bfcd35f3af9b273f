"""Homeroom teacher API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from character_journal.core.db import get_db
from character_journal.core.security import Actor, get_current_actor
from character_journal.services.history_service import class_history
from character_journal.services.narrative_service import generate_student_report
from character_journal.services.workflow_service import create_workflow
from character_journal.web import handlers as web_handlers

# 日本語: 担任の検証・レポートAPI群 / English: Homeroom validation and report router
router = APIRouter(prefix="/api/teacher")


@router.get("/pending", name="teacher_pending")
def teacher_pending(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.teacher_pending(actor, db, create_workflow_fn=create_workflow)


@router.patch("/validate/{log_id}", name="teacher_validate")
def teacher_validate(log_id: int, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.teacher_validate(log_id, actor, db, create_workflow_fn=create_workflow)


@router.get("/history", name="teacher_history")
def teacher_history(
    student_id: int | None = None,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return web_handlers.teacher_history(student_id, actor, db, class_history_fn=class_history)


@router.post("/generate-report", name="teacher_generate_report")
async def teacher_generate_report(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    # 日本語: 期間内ログからの所見生成を handler に委譲 / English: Delegate period narrative generation to handler
    return await web_handlers.generate_report(
        request, actor, db, generate_student_report_fn=generate_student_report
    )
