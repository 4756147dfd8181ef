"""Database package: engine, session factory and schema lifecycle."""

from .session import (
    engine,
    AsyncSessionLocal,
    Base,
    get_db,
    init_db,
    close_db,
)

__all__ = [
    "engine",
    "AsyncSessionLocal",
    "Base",
    "get_db",
    "init_db",
    "close_db",
]
