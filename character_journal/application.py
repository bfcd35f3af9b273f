"""FastAPI application assembly."""

from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from character_journal.core.config import PROXY_PREFIX, get_jwt_secret
from character_journal.core.db import _init_db
from character_journal.services.errors import (
    ConflictError,
    ForbiddenError,
    NarrativeUnavailableError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from character_journal.web.routers import (
    character_router,
    contributor_router,
    parent_router,
    teacher_router,
)

# 日本語: ドメイン例外とHTTPステータスの対応 / English: Domain error to HTTP status mapping
ERROR_STATUS_CODES = (
    (ValidationError, 422),
    (ForbiddenError, 403),
    (ConflictError, 409),
    (NotFoundError, 404),
)


def _status_for(exc: WorkflowError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app() -> FastAPI:
    # 日本語: 逆プロキシ配下運用を想定して root_path を環境変数から解決 / English: Resolve root_path from env for reverse-proxy deployments
    proxy_prefix = os.getenv("PROXY_PREFIX", PROXY_PREFIX)

    # 日本語: FastAPI アプリ本体を作成 / English: Create root FastAPI application
    app = FastAPI(root_path=proxy_prefix)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    if not get_jwt_secret():
        raise ValueError("JWT_SECRET environment variable is not set. Please set it in secrets.env.")

    @app.exception_handler(WorkflowError)
    async def _handle_workflow_error(request: Request, exc: WorkflowError) -> JSONResponse:
        return JSONResponse(status_code=_status_for(exc), content=exc.to_payload())

    @app.exception_handler(NarrativeUnavailableError)
    async def _handle_narrative_error(request: Request, exc: NarrativeUnavailableError) -> JSONResponse:
        return JSONResponse(status_code=502, content=exc.to_payload())

    # 日本語: ロール別ルーターを順次登録 / English: Register role routers
    app.include_router(character_router)
    app.include_router(parent_router)
    app.include_router(teacher_router)
    app.include_router(contributor_router)

    @app.on_event("startup")
    def _startup_init_db() -> None:
        # 日本語: 起動時にマイグレーション適用を保証 / English: Ensure migrations are applied on startup
        _init_db()

    return app


# 日本語: import 時点で既定アプリを構築 / English: Build default app instance at import time
app = create_app()
