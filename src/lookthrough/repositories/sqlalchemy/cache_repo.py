"""SQLAlchemy implementation of ReferenceCacheRepository."""

import json
import logging
import threading
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from lookthrough.core.exceptions import CacheWriteError
from lookthrough.core.timezone import to_utc
from lookthrough.domain.models import RecordKind, StoredRecord
from lookthrough.repositories.sqlalchemy.orm_models import ReferenceCacheORM

logger = logging.getLogger(__name__)


class SqlAlchemyReferenceCacheRepository:
    """
    SQLAlchemy-backed persistent cache tier.

    Orchestrator worker threads share this repository, so every operation
    opens its own session and runs under a lock; SQLite allows a single
    writer at a time anyway.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.RLock()

    def get(self, kind: RecordKind, symbol: str) -> Optional[StoredRecord]:
        """Retrieve the stored record for a symbol; read failures count as a miss."""
        with self._lock, self._session_factory() as db:
            try:
                orm_record = db.get(ReferenceCacheORM, (kind, symbol))
            except SQLAlchemyError:
                logger.error("Failed to read %s/%s from cache", kind.value, symbol, exc_info=True)
                return None
            return self._to_domain(orm_record) if orm_record else None

    def put(self, record: StoredRecord) -> None:
        """Insert or replace a record."""
        # Stored naive, always UTC
        fetched_at = to_utc(record.fetched_at).replace(tzinfo=None)
        with self._lock, self._session_factory() as db:
            try:
                orm_record = db.get(ReferenceCacheORM, (record.kind, record.symbol))
                if orm_record:
                    orm_record.payload_json = json.dumps(record.payload)
                    orm_record.fetched_at_utc = fetched_at
                    orm_record.source_tag = record.source_tag
                else:
                    db.add(
                        ReferenceCacheORM(
                            kind=record.kind,
                            symbol=record.symbol,
                            payload_json=json.dumps(record.payload),
                            fetched_at_utc=fetched_at,
                            source_tag=record.source_tag,
                        )
                    )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise CacheWriteError(record.kind.value, record.symbol, str(e)) from e

    def delete(self, kind: RecordKind, symbol: str) -> bool:
        """Remove a record. Returns True if something was deleted."""
        with self._lock, self._session_factory() as db:
            deleted = (
                db.query(ReferenceCacheORM)
                .filter(
                    ReferenceCacheORM.kind == kind,
                    ReferenceCacheORM.symbol == symbol,
                )
                .delete()
            )
            db.commit()
            return deleted > 0

    def list_symbols(self, kind: RecordKind) -> list[str]:
        """List cached symbols of a kind, sorted."""
        with self._lock, self._session_factory() as db:
            rows = (
                db.query(ReferenceCacheORM.symbol)
                .filter(ReferenceCacheORM.kind == kind)
                .order_by(ReferenceCacheORM.symbol)
                .all()
            )
            return [row[0] for row in rows]

    def clear(self, kind: Optional[RecordKind] = None) -> int:
        """Remove all records (of one kind, or all kinds). Returns the count removed."""
        with self._lock, self._session_factory() as db:
            query = db.query(ReferenceCacheORM)
            if kind is not None:
                query = query.filter(ReferenceCacheORM.kind == kind)
            deleted = query.delete()
            db.commit()
            return deleted

    @staticmethod
    def _to_domain(orm: ReferenceCacheORM) -> Optional[StoredRecord]:
        """Convert ORM row to domain record; unreadable payloads count as a miss."""
        try:
            payload = json.loads(orm.payload_json)
        except ValueError:
            logger.warning("Discarding unreadable cache row %s/%s", orm.kind.value, orm.symbol)
            return None
        return StoredRecord(
            kind=orm.kind,
            symbol=orm.symbol,
            payload=payload,
            fetched_at=to_utc(orm.fetched_at_utc),
            source_tag=orm.source_tag,
        )
