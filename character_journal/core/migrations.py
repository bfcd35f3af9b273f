"""Alembic migration helpers."""

from __future__ import annotations

import logging

from alembic import command
from alembic.config import Config

from character_journal.core.config import BASE_DIR

logger = logging.getLogger(__name__)


def build_alembic_config(database_url: str) -> Config:
    # 日本語: alembic.ini を基準に接続先とスクリプト位置を上書き / English: Start from alembic.ini, override URL and script location
    config = Config(str(BASE_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BASE_DIR / "migrations"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def upgrade_to_head(database_url: str) -> None:
    """Apply migrations to the latest revision."""
    logger.info("Applying database migrations")
    command.upgrade(build_alembic_config(database_url), "head")
