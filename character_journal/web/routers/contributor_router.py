"""Contributor behavior score and mission API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from character_journal.core.db import get_db
from character_journal.core.security import Actor, get_current_actor
from character_journal.services.behavior_service import list_contributor_history, submit_behavior_score
from character_journal.services.mission_service import (
    assign_mission,
    get_contributor_data,
    list_contributor_missions,
)
from character_journal.web import handlers as web_handlers

router = APIRouter(prefix="/api/contributor")


@router.get("/data", name="contributor_data")
def contributor_data(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    # 日本語: 生徒・クラス選択肢を返す / English: Student and class pickers for contributor forms
    return web_handlers.contributor_data(actor, db, get_contributor_data_fn=get_contributor_data)


@router.post("/score", name="contributor_score", status_code=status.HTTP_201_CREATED)
async def contributor_score(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return await web_handlers.contributor_score(
        request, actor, db, submit_behavior_score_fn=submit_behavior_score
    )


@router.get("/history", name="contributor_history")
def contributor_history(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.contributor_history(
        actor, db, list_contributor_history_fn=list_contributor_history
    )


@router.post("/mission", name="contributor_mission", status_code=status.HTTP_201_CREATED)
async def contributor_mission(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return await web_handlers.contributor_mission(request, actor, db, assign_mission_fn=assign_mission)


@router.get("/missions", name="contributor_missions")
def contributor_missions(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return web_handlers.contributor_missions(
        actor, db, list_contributor_missions_fn=list_contributor_missions
    )
