"""SQLAlchemy repository implementations."""

from lookthrough.repositories.sqlalchemy.database import (
    create_engine_for_url,
    get_engine,
    get_session_factory,
    init_db,
    reset_database,
    Base,
)
from lookthrough.repositories.sqlalchemy.cache_repo import SqlAlchemyReferenceCacheRepository

__all__ = [
    "create_engine_for_url",
    "get_engine",
    "get_session_factory",
    "init_db",
    "reset_database",
    "Base",
    "SqlAlchemyReferenceCacheRepository",
]
