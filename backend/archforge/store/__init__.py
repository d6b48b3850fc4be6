from archforge.store.session_store import (
    InMemorySessionStore,
    SessionStore,
    SqlSessionStore,
)

__all__ = ["SessionStore", "InMemorySessionStore", "SqlSessionStore"]
