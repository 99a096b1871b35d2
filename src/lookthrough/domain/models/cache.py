"""Cache entry wrapper for reference records."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from lookthrough.domain.models.enums import RecordKind, SourceTag

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """
    Immutable wrapper around a fetched record.

    Never mutate an entry; use retag() or build a new one.
    record is None only for UNAVAILABLE entries.
    """

    symbol: str
    record: Optional[T]
    fetched_at: Optional[datetime]
    source_tag: SourceTag

    @property
    def is_available(self) -> bool:
        return self.record is not None and self.source_tag != SourceTag.UNAVAILABLE

    @property
    def is_degraded(self) -> bool:
        return self.source_tag in (SourceTag.FALLBACK_STALE, SourceTag.UNAVAILABLE)

    def retag(self, source_tag: SourceTag) -> "CacheEntry[T]":
        """Return a copy of this entry carrying a different source tag."""
        return replace(self, source_tag=source_tag)

    @classmethod
    def unavailable(cls, symbol: str) -> "CacheEntry[T]":
        return cls(symbol=symbol, record=None, fetched_at=None, source_tag=SourceTag.UNAVAILABLE)


@dataclass(frozen=True)
class StoredRecord:
    """
    One row/file of the persistent tier.

    payload is the record's camelCase dict; fetched_at and source_tag are
    kept alongside it rather than inside it.
    """

    kind: RecordKind
    symbol: str
    payload: dict[str, Any]
    fetched_at: datetime
    source_tag: SourceTag = SourceTag.API
