import logging

from character_journal.application import app

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("character_journal_asgi")

__all__ = ["app"]
