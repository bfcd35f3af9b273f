"""Student journal API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from character_journal.core.db import get_db
from character_journal.core.security import Actor, get_current_actor
from character_journal.services.history_service import student_history
from character_journal.services.mission_service import list_student_missions
from character_journal.services.workflow_service import create_workflow
from character_journal.web import handlers as web_handlers

# 日本語: 生徒の日次ジャーナルAPI群 / English: Student daily journal router
router = APIRouter()


@router.get("/api/character/options", name="character_options")
def character_options():
    return web_handlers.character_options()


@router.get("/api/character/history", name="character_history")
def character_history(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.character_history(actor, db, student_history_fn=student_history)


@router.get("/api/character/missions", name="character_missions")
def character_missions(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.character_missions(actor, db, list_student_missions_fn=list_student_missions)


@router.get("/api/students/{student_id}/logs/{date_str}", name="get_log")
def get_log(
    student_id: int,
    date_str: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return web_handlers.get_log(student_id, date_str, actor, db, create_workflow_fn=create_workflow)


@router.post(
    "/api/students/{student_id}/logs/{date_str}/plan",
    name="submit_plan",
    status_code=status.HTTP_201_CREATED,
)
async def submit_plan(
    request: Request,
    student_id: int,
    date_str: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    # 日本語: 計画の登録 (1日1回) を handler に委譲 / English: Delegate once-per-day plan submission to handler
    return await web_handlers.submit_plan(
        request, student_id, date_str, actor, db, create_workflow_fn=create_workflow
    )


@router.post("/api/students/{student_id}/logs/{date_str}/execution", name="submit_execution")
async def submit_execution(
    request: Request,
    student_id: int,
    date_str: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return await web_handlers.submit_execution(
        request, student_id, date_str, actor, db, create_workflow_fn=create_workflow
    )
