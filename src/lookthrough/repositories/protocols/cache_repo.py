"""Persistent reference cache repository protocol."""

from typing import Protocol, Optional

from lookthrough.domain.models import RecordKind, StoredRecord


class ReferenceCacheRepository(Protocol):
    """
    Interface for the persistent tier of the reference data cache.

    One record per (kind, symbol). Writes for the same key replace the
    previous record (last writer wins). Implementations raise
    CacheWriteError when a write cannot be completed.
    """

    def get(self, kind: RecordKind, symbol: str) -> Optional[StoredRecord]:
        """Retrieve the stored record for a symbol, if any."""
        ...

    def put(self, record: StoredRecord) -> None:
        """Insert or replace a record."""
        ...

    def delete(self, kind: RecordKind, symbol: str) -> bool:
        """Remove a record. Returns True if something was deleted."""
        ...

    def list_symbols(self, kind: RecordKind) -> list[str]:
        """List cached symbols of a kind, sorted."""
        ...

    def clear(self, kind: Optional[RecordKind] = None) -> int:
        """Remove all records (of one kind, or all kinds). Returns the count removed."""
        ...
