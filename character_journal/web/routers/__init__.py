"""Router exports."""

# 日本語: ロール別ルーターを集約して application.py から一括 import 可能にする / English: Re-export role routers for centralized app wiring
from .character_router import router as character_router
from .contributor_router import router as contributor_router
from .parent_router import router as parent_router
from .teacher_router import router as teacher_router

__all__ = [
    "character_router",
    "parent_router",
    "teacher_router",
    "contributor_router",
]
