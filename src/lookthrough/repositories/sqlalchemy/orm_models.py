"""SQLAlchemy ORM model definitions."""

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Text,
    Enum as SqlEnum,
)

from lookthrough.repositories.sqlalchemy.database import Base
from lookthrough.domain.models.enums import RecordKind, SourceTag


class ReferenceCacheORM(Base):
    """SQLAlchemy model for one persistent reference cache record."""

    __tablename__ = "reference_cache"

    kind = Column(SqlEnum(RecordKind), primary_key=True)
    symbol = Column(String(20), primary_key=True)
    payload_json = Column(Text, nullable=False)
    fetched_at_utc = Column(DateTime, nullable=False)
    source_tag = Column(SqlEnum(SourceTag), nullable=False, default=SourceTag.API)
