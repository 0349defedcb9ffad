"""Database package: shared engine and session factory."""

from gridiron.db.base import (
    Base,
    build_engine,
    build_session_factory,
    close_db,
    get_session_factory,
    init_db,
    reset_db,
)

__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "close_db",
    "get_session_factory",
    "init_db",
    "reset_db",
]
