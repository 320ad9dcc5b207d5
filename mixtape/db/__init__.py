"""Database module for Mixtape."""

from mixtape.db.models import Base, UpdateEntryRecord
from mixtape.db.session import (
    dispose_engine,
    get_engine,
    get_session,
    get_sessionmaker,
    init_db,
)

__all__ = [
    "Base",
    "UpdateEntryRecord",
    "dispose_engine",
    "get_session",
    "get_engine",
    "get_sessionmaker",
    "init_db",
]
