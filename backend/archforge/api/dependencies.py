import logging
import time
from typing import Optional

from sqlalchemy.exc import OperationalError

from archforge import config
from archforge.inference.base import LLMClient
from archforge.inference.config import get_llm_client
from archforge.pipeline.controller import BusyRegistry
from archforge.store.session_store import (
    InMemorySessionStore,
    SessionStore,
    SqlSessionStore,
)

logger = logging.getLogger(__name__)

_store: Optional[SessionStore] = None
busy_registry = BusyRegistry()

DB_RETRIES = 5
DB_RETRY_DELAY = 2


def build_session_store() -> SessionStore:
    if config.SESSION_STORE == "memory":
        return InMemorySessionStore()

    from archforge.db.session import engine

    for attempt in range(DB_RETRIES):
        try:
            store = SqlSessionStore(engine)
            logger.info("Database connected")
            return store
        except OperationalError:
            logger.info("Waiting for database... (%d/%d)", attempt + 1, DB_RETRIES)
            time.sleep(DB_RETRY_DELAY)

    # do not crash the app
    logger.warning("Database not ready, running with in-memory sessions")
    return InMemorySessionStore()


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = build_session_store()
    return _store


def get_model_client() -> Optional[LLMClient]:
    return get_llm_client()


def get_busy_registry() -> BusyRegistry:
    return busy_registry
