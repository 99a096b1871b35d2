"""
Pytest configuration and fixtures for look-through exposure engine tests.

This module provides:
- In-memory SQLite and temp-dir JSON persistent cache fixtures
- Scripted, failing, rate-limiting and blocking fake data providers
- Factory helpers for holdings, compositions and classifications
- Service fixtures wired with no-op sleeps
- FastAPI test client with an isolated app context
"""

import threading
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from lookthrough.main import app
from lookthrough.api.deps import get_context
from lookthrough.app_context import AppContext, set_app_context
from lookthrough.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from lookthrough.repositories.sqlalchemy import orm_models  # noqa: F401
from lookthrough.repositories.sqlalchemy import SqlAlchemyReferenceCacheRepository
from lookthrough.repositories.jsonfile import JsonFileReferenceCacheRepository
from lookthrough.providers.results import ProviderResult
from lookthrough.services import (
    AssetClassTable,
    ConversionTable,
    ExposureAggregator,
    ExposureService,
    LookThroughResolver,
    ReferenceDataService,
)
from lookthrough.domain.models import (
    FundComposition,
    FundConstituent,
    Holding,
    HoldingType,
    RecordKind,
    SecurityClassification,
    SourceTag,
    StoredRecord,
)
from lookthrough.core.timezone import UTC, now_utc
from lookthrough.config.settings import Settings, reset_settings


# =============================================================================
# TIME HELPERS
# =============================================================================


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in UTC."""
    return UTC.localize(datetime(year, month, day, hour, minute, second))


class FakeClock:
    """
    Manually advanced monotonic clock.

    Passing ``clock.sleep`` as an orchestrator's sleep function makes
    inter-batch delays advance the clock instead of blocking.
    """

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class SleepRecorder:
    """No-op sleep that remembers what it was asked to wait."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


# =============================================================================
# FACTORY HELPERS
# =============================================================================


def make_composition(symbol: str, weights: list[tuple[str, str]], name: Optional[str] = None) -> FundComposition:
    """Build a FundComposition from (symbol, weight percent) pairs."""
    return FundComposition(
        symbol=symbol,
        name=name or f"{symbol} ETF",
        holdings=tuple(
            FundConstituent(symbol=s, weight_percent=Decimal(w), name=f"{s} Inc")
            for s, w in weights
        ),
    )


def make_classification(
    symbol: str,
    sector: str,
    industry: str = "Unknown",
    country: str = "USA",
    asset_type: str = "Common Stock",
) -> SecurityClassification:
    return SecurityClassification(
        symbol=symbol,
        name=f"{symbol} Inc",
        sector=sector,
        industry=industry,
        country=country,
        asset_type=asset_type,
    )


def stock_holding(ticker: str, value: str, account_id: str = "acc-1", holding_id: Optional[str] = None) -> Holding:
    return Holding(
        id=holding_id or f"{account_id}-{ticker}",
        account_id=account_id,
        type=HoldingType.STOCK,
        ticker=ticker,
        market_value=Decimal(value),
    )


def fund_holding(ticker: str, value: str, account_id: str = "acc-1", holding_id: Optional[str] = None) -> Holding:
    return Holding(
        id=holding_id or f"{account_id}-{ticker}",
        account_id=account_id,
        type=HoldingType.FUND,
        ticker=ticker,
        market_value=Decimal(value),
    )


def cash_holding(value: str, account_id: str = "acc-1", holding_id: Optional[str] = None) -> Holding:
    return Holding(
        id=holding_id or f"{account_id}-cash",
        account_id=account_id,
        type=HoldingType.CASH,
        name="Cash",
        market_value=Decimal(value),
    )


def store_composition(
    repo,
    composition: FundComposition,
    fetched_at: Optional[datetime] = None,
) -> None:
    """Pre-populate the persistent tier with a composition."""
    repo.put(
        StoredRecord(
            kind=RecordKind.FUND_COMPOSITION,
            symbol=composition.symbol,
            payload=composition.to_payload(),
            fetched_at=fetched_at or now_utc(),
            source_tag=SourceTag.API,
        )
    )


def days_ago(days: int) -> datetime:
    return now_utc() - timedelta(days=days)


# =============================================================================
# FAKE PROVIDERS
# =============================================================================


STANDARD_COMPOSITIONS = {
    "QQQ": make_composition("QQQ", [("AAPL", "40"), ("MSFT", "35"), ("NVDA", "25")]),
    "VOO": make_composition("VOO", [("AAPL", "30"), ("MSFT", "30"), ("AMZN", "20"), ("GOOG", "20")]),
    "VXUS": make_composition("VXUS", [("TSM", "50"), ("NVS", "50")]),
    "PARTIAL": make_composition("PARTIAL", [("AAPL", "60")]),
}

STANDARD_CLASSIFICATIONS = {
    "AAPL": make_classification("AAPL", "Technology", "Consumer Electronics"),
    "MSFT": make_classification("MSFT", "Technology", "Software"),
    "NVDA": make_classification("NVDA", "Technology", "Semiconductors"),
    "AMZN": make_classification("AMZN", "Consumer Cyclical", "Internet Retail"),
    "GOOG": make_classification("GOOG", "Communication Services", "Internet Content"),
    "GOOGL": make_classification("GOOGL", "Communication Services", "Internet Content"),
    "TSM": make_classification("TSM", "Technology", "Semiconductors", country="Taiwan"),
    "NVS": make_classification("NVS", "Healthcare", "Drug Manufacturers", country="Switzerland"),
}


class ScriptedFundDataProvider:
    """
    Deterministic provider backed by dicts.

    Records every call; unknown symbols return a provider error.
    """

    def __init__(
        self,
        compositions: Optional[dict[str, FundComposition]] = None,
        classifications: Optional[dict[str, SecurityClassification]] = None,
    ):
        self.compositions = dict(compositions or {})
        self.classifications = dict(classifications or {})
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, symbol: str) -> None:
        with self._lock:
            self.calls.append((kind, symbol))

    def calls_for(self, kind: str) -> list[str]:
        with self._lock:
            return [s for k, s in self.calls if k == kind]

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        self._record("composition", symbol)
        composition = self.compositions.get(symbol)
        if composition is None:
            return ProviderResult.error(f"unknown symbol {symbol}")
        return ProviderResult.ok(composition)

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        self._record("classification", symbol)
        classification = self.classifications.get(symbol)
        if classification is None:
            return ProviderResult.error(f"unknown symbol {symbol}")
        return ProviderResult.ok(classification)


class FailingFundDataProvider:
    """Provider that always fails (network down)."""

    def __init__(self):
        self.calls: list[str] = []

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        self.calls.append(symbol)
        return ProviderResult.error("network unavailable")

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        self.calls.append(symbol)
        return ProviderResult.error("network unavailable")


class RaisingFundDataProvider:
    """Provider whose calls raise instead of returning a result (a buggy client)."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls: list[str] = []

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        self.calls.append(symbol)
        raise self.error

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        self.calls.append(symbol)
        raise self.error


class RateLimitAfterProvider:
    """
    Provider that serves the first ``limit`` calls from ``inner`` and
    answers every later call with a soft rate-limit signal.
    """

    def __init__(self, inner, limit: int):
        self._inner = inner
        self._limit = limit
        self._lock = threading.Lock()
        self.total_calls = 0
        self.successful_calls = 0

    def _admit(self) -> bool:
        with self._lock:
            self.total_calls += 1
            if self.total_calls <= self._limit:
                self.successful_calls += 1
                return True
            return False

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        if not self._admit():
            return ProviderResult.rate_limited("Thank you for using Alpha Vantage! Our standard API rate limit is 5 requests per minute")
        return self._inner.fetch_composition(symbol)

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        if not self._admit():
            return ProviderResult.rate_limited("rate limit")
        return self._inner.fetch_classification(symbol)


class BlockingFundDataProvider:
    """Provider whose calls block until ``release`` is set."""

    def __init__(self, inner):
        self._inner = inner
        self.started = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()
        self.call_count = 0

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        with self._lock:
            self.call_count += 1
        self.started.set()
        self.release.wait(timeout=5)
        return self._inner.fetch_composition(symbol)

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        with self._lock:
            self.call_count += 1
        self.started.set()
        self.release.wait(timeout=5)
        return self._inner.fetch_classification(symbol)


@pytest.fixture
def scripted_provider() -> ScriptedFundDataProvider:
    """Provide a provider with the standard test compositions and classifications."""
    return ScriptedFundDataProvider(STANDARD_COMPOSITIONS, STANDARD_CLASSIFICATIONS)


@pytest.fixture
def failing_provider() -> FailingFundDataProvider:
    """Provide a provider that always fails."""
    return FailingFundDataProvider()


# =============================================================================
# SETTINGS & DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a temp data dir."""
    settings = Settings(
        data_dir=tmp_path,
        provider_timeout_seconds=5.0,
        provider_batch_size=5,
        provider_calls_per_minute=5,
        batch_deadline_seconds=90.0,
    )
    yield settings
    reset_settings()


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def cache_repo(session_factory) -> SqlAlchemyReferenceCacheRepository:
    """Provide the SQLite persistent cache tier."""
    return SqlAlchemyReferenceCacheRepository(session_factory)


@pytest.fixture
def json_cache_repo(tmp_path) -> JsonFileReferenceCacheRepository:
    """Provide the JSON-file persistent cache tier."""
    return JsonFileReferenceCacheRepository(tmp_path / "reference-cache")


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


TEST_CONVERSION_RULES = {
    "VFFVX": {
        "name": "Vanguard Target Retirement 2055 Fund",
        "mappings": [
            {"symbol": "VTI", "weightPercent": 54},
            {"symbol": "VXUS", "weightPercent": 36},
            {"symbol": "BND", "weightPercent": 7},
            {"symbol": "BNDX", "weightPercent": 3},
        ],
    },
    "MIXED": {
        "name": "Half QQQ, half VOO",
        "mappings": [
            {"symbol": "QQQ", "weightPercent": 50},
            {"symbol": "VOO", "weightPercent": 50},
        ],
    },
}


@pytest.fixture
def conversions() -> ConversionTable:
    return ConversionTable.from_dict(TEST_CONVERSION_RULES)


@pytest.fixture
def asset_classes() -> AssetClassTable:
    """Bundled static asset class table."""
    return AssetClassTable.load()


@pytest.fixture
def reference_data(scripted_provider, cache_repo, test_settings, no_sleep) -> ReferenceDataService:
    service = ReferenceDataService(
        provider=scripted_provider,
        repository=cache_repo,
        settings=test_settings,
        sleep=no_sleep,
    )
    yield service
    service.close()


@pytest.fixture
def resolver(reference_data, conversions, asset_classes) -> LookThroughResolver:
    return LookThroughResolver(
        reference_data=reference_data,
        conversions=conversions,
        asset_classes=asset_classes,
        prewarm_missing_classifications=False,
    )


@pytest.fixture
def aggregator() -> ExposureAggregator:
    return ExposureAggregator()


@pytest.fixture
def exposure_service(resolver, aggregator) -> ExposureService:
    return ExposureService(resolver=resolver, aggregator=aggregator)


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def app_context(tmp_path, scripted_provider, cache_repo, no_sleep) -> AppContext:
    """
    Isolated app context backed by the in-memory cache.

    Constituent classifications are fetched inline so responses don't
    depend on background prewarming.
    """
    settings = Settings(
        data_dir=tmp_path,
        provider_timeout_seconds=5.0,
        fetch_constituent_classifications=True,
    )
    context = AppContext(
        settings=settings,
        provider=scripted_provider,
        repository=cache_repo,
        sleep=no_sleep,
    )
    yield context
    context.close()
    reset_settings()


@pytest.fixture
def client(app_context) -> TestClient:
    """Provide FastAPI test client wired to the isolated app context."""
    set_app_context(app_context)
    app.dependency_overrides[get_context] = lambda: app_context
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    set_app_context(None)


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def total_of(items, attr: str = "dollar_value") -> Decimal:
    """Sum a Decimal attribute over items."""
    return sum((getattr(i, attr) for i in items), Decimal("0"))
