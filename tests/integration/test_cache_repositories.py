"""
Integration tests for the persistent cache tier.

Both the SQLite and the JSON-file repositories are run through the same
contract, then each gets its backend-specific checks.

Tests cover:
- put/get round trip with timestamps kept in UTC
- Upsert semantics
- Delete, list and clear per kind
- Unreadable stored data counts as a miss
- Write failures raise CacheWriteError
"""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lookthrough.core.exceptions import CacheWriteError
from lookthrough.domain.models import RecordKind, SourceTag, StoredRecord
from lookthrough.repositories.jsonfile import JsonFileReferenceCacheRepository
from lookthrough.repositories.sqlalchemy import SqlAlchemyReferenceCacheRepository
from lookthrough.repositories.sqlalchemy.orm_models import ReferenceCacheORM

from tests.conftest import STANDARD_CLASSIFICATIONS, STANDARD_COMPOSITIONS, utc_datetime


def composition_record(symbol: str = "QQQ", **kwargs) -> StoredRecord:
    return StoredRecord(
        kind=RecordKind.FUND_COMPOSITION,
        symbol=symbol,
        payload=STANDARD_COMPOSITIONS[symbol].to_payload(),
        fetched_at=kwargs.get("fetched_at", utc_datetime(2024, 1, 15, 14, 30)),
        source_tag=kwargs.get("source_tag", SourceTag.API),
    )


def classification_record(symbol: str = "AAPL") -> StoredRecord:
    return StoredRecord(
        kind=RecordKind.SECURITY_CLASSIFICATION,
        symbol=symbol,
        payload=STANDARD_CLASSIFICATIONS[symbol].to_payload(),
        fetched_at=utc_datetime(2024, 1, 15, 14, 30),
    )


@pytest.fixture(params=["sqlite", "json"])
def repository(request, cache_repo, json_cache_repo):
    """Each persistent backend in turn."""
    return cache_repo if request.param == "sqlite" else json_cache_repo


# =============================================================================
# SHARED CONTRACT
# =============================================================================


class TestRepositoryContract:
    """Behaviour both backends must share."""

    def test_put_then_get(self, repository):
        """
        GIVEN a stored composition
        WHEN I read it back
        THEN payload, timestamp and tag are unchanged
        """
        record = composition_record()
        repository.put(record)

        stored = repository.get(RecordKind.FUND_COMPOSITION, "QQQ")

        assert stored is not None
        assert stored.payload == record.payload
        assert stored.fetched_at == record.fetched_at
        assert stored.fetched_at.utcoffset() == timedelta(0)
        assert stored.source_tag == SourceTag.API

    def test_get_missing(self, repository):
        assert repository.get(RecordKind.FUND_COMPOSITION, "NOPE") is None

    def test_put_replaces_existing(self, repository):
        repository.put(composition_record())
        newer = composition_record(fetched_at=utc_datetime(2024, 2, 1))

        repository.put(newer)

        assert repository.get(RecordKind.FUND_COMPOSITION, "QQQ").fetched_at == newer.fetched_at
        assert repository.list_symbols(RecordKind.FUND_COMPOSITION) == ["QQQ"]

    def test_kinds_are_separate(self, repository):
        repository.put(composition_record("QQQ"))
        repository.put(classification_record("AAPL"))

        assert repository.get(RecordKind.SECURITY_CLASSIFICATION, "QQQ") is None
        assert repository.list_symbols(RecordKind.SECURITY_CLASSIFICATION) == ["AAPL"]

    def test_list_symbols_sorted(self, repository):
        for symbol in ["VOO", "QQQ", "VXUS"]:
            repository.put(composition_record(symbol))

        assert repository.list_symbols(RecordKind.FUND_COMPOSITION) == ["QQQ", "VOO", "VXUS"]

    def test_delete(self, repository):
        repository.put(composition_record())

        assert repository.delete(RecordKind.FUND_COMPOSITION, "QQQ") is True
        assert repository.delete(RecordKind.FUND_COMPOSITION, "QQQ") is False
        assert repository.get(RecordKind.FUND_COMPOSITION, "QQQ") is None

    def test_clear_one_kind(self, repository):
        repository.put(composition_record("QQQ"))
        repository.put(composition_record("VOO"))
        repository.put(classification_record("AAPL"))

        removed = repository.clear(RecordKind.FUND_COMPOSITION)

        assert removed == 2
        assert repository.list_symbols(RecordKind.FUND_COMPOSITION) == []
        assert repository.list_symbols(RecordKind.SECURITY_CLASSIFICATION) == ["AAPL"]

    def test_clear_all(self, repository):
        repository.put(composition_record("QQQ"))
        repository.put(classification_record("AAPL"))

        assert repository.clear() == 2


# =============================================================================
# SQLITE BACKEND
# =============================================================================


class TestSqlAlchemyRepository:
    """SQLite-specific behaviour."""

    def test_stored_naive_utc(self, cache_repo, session_factory):
        cache_repo.put(composition_record())

        with session_factory() as db:
            row = db.get(ReferenceCacheORM, (RecordKind.FUND_COMPOSITION, "QQQ"))
            assert row.fetched_at_utc.tzinfo is None
            assert row.fetched_at_utc.hour == 14

    def test_unreadable_payload_is_a_miss(self, cache_repo, session_factory):
        cache_repo.put(composition_record())
        with session_factory() as db:
            row = db.get(ReferenceCacheORM, (RecordKind.FUND_COMPOSITION, "QQQ"))
            row.payload_json = "{not json"
            db.commit()

        assert cache_repo.get(RecordKind.FUND_COMPOSITION, "QQQ") is None

    def test_write_failure_raises_cache_write_error(self):
        """
        GIVEN a database whose table was never created
        WHEN I put a record
        THEN CacheWriteError is raised
        """
        engine = create_engine("sqlite:///:memory:")
        repo = SqlAlchemyReferenceCacheRepository(sessionmaker(bind=engine))

        with pytest.raises(CacheWriteError):
            repo.put(composition_record())


# =============================================================================
# JSON-FILE BACKEND
# =============================================================================


class TestJsonFileRepository:
    """JSON-file-specific behaviour."""

    def test_one_file_per_symbol(self, json_cache_repo, tmp_path):
        json_cache_repo.put(composition_record())

        path = tmp_path / "reference-cache" / "fund_composition" / "QQQ.json"
        assert path.exists()
        assert '"fetchedAt"' in path.read_text(encoding="utf-8")

    def test_symbols_with_separators_are_escaped(self, json_cache_repo):
        record = StoredRecord(
            kind=RecordKind.SECURITY_CLASSIFICATION,
            symbol="BRK/B",
            payload={"symbol": "BRK/B", "name": "Berkshire Hathaway"},
            fetched_at=utc_datetime(2024, 1, 15),
        )

        json_cache_repo.put(record)

        assert json_cache_repo.list_symbols(RecordKind.SECURITY_CLASSIFICATION) == ["BRK/B"]
        assert json_cache_repo.get(RecordKind.SECURITY_CLASSIFICATION, "BRK/B").payload["name"] == "Berkshire Hathaway"

    def test_corrupt_file_is_a_miss(self, json_cache_repo, tmp_path):
        json_cache_repo.put(composition_record())
        path = tmp_path / "reference-cache" / "fund_composition" / "QQQ.json"
        path.write_text("{truncated", encoding="utf-8")

        assert json_cache_repo.get(RecordKind.FUND_COMPOSITION, "QQQ") is None

    def test_write_failure_raises_cache_write_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        repo = JsonFileReferenceCacheRepository(blocker)

        with pytest.raises(CacheWriteError):
            repo.put(composition_record())
