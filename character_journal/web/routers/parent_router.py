"""Parent approval API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from character_journal.core.db import get_db
from character_journal.core.security import Actor, get_current_actor
from character_journal.services.history_service import parent_history
from character_journal.services.workflow_service import create_workflow
from character_journal.web import handlers as web_handlers

# 日本語: 保護者の承認API群 / English: Parent approval router
router = APIRouter(prefix="/api/parent")


@router.get("/pending", name="parent_pending")
def parent_pending(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.parent_pending(actor, db, create_workflow_fn=create_workflow)


@router.patch("/approve/{log_id}", name="parent_approve")
def parent_approve(log_id: int, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.parent_approve(log_id, actor, db, create_workflow_fn=create_workflow)


@router.get("/log-history", name="parent_log_history")
def parent_log_history(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.parent_log_history(actor, db, parent_history_fn=parent_history)
