"""Application context: process-wide wiring of the exposure engine.

Created once per process (by the FastAPI lifespan or a script) and closed
on shutdown. Tests build isolated contexts with their own provider and
repository.
"""

import logging
from typing import Optional

from lookthrough.config.settings import Settings, get_settings, set_settings
from lookthrough.repositories.protocols import ReferenceCacheRepository
from lookthrough.repositories.jsonfile import JsonFileReferenceCacheRepository
from lookthrough.repositories.sqlalchemy import (
    SqlAlchemyReferenceCacheRepository,
    get_session_factory,
    init_db,
    reset_database,
)
from lookthrough.providers import AlphaVantageProvider, FundDataProvider, StubFundDataProvider
from lookthrough.services import (
    AssetClassTable,
    ConversionTable,
    ExposureAggregator,
    ExposureService,
    LookThroughResolver,
    ReferenceDataService,
)
from lookthrough.csv import ExposureCsvExporter, HoldingsCsvReader, HoldingsCsvTemplateGenerator

logger = logging.getLogger(__name__)


def build_provider(settings: Settings) -> FundDataProvider:
    """Alpha Vantage when an API key is configured, otherwise offline stub data."""
    if settings.alpha_vantage_api_key:
        return AlphaVantageProvider(
            api_key=settings.alpha_vantage_api_key,
            base_url=settings.alpha_vantage_base_url,
            timeout_seconds=settings.provider_timeout_seconds,
        )
    logger.warning("No Alpha Vantage API key configured; using offline stub data")
    return StubFundDataProvider()


def build_repository(settings: Settings) -> ReferenceCacheRepository:
    """Persistent cache tier for the configured backend."""
    if settings.cache_backend == "json":
        return JsonFileReferenceCacheRepository(settings.get_json_cache_dir())
    reset_database()
    init_db()
    return SqlAlchemyReferenceCacheRepository(get_session_factory())


class AppContext:
    """
    Application context providing in-process access to all services.

    Used by the FastAPI app and by scripts to share one reference data
    cache across requests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[FundDataProvider] = None,
        repository: Optional[ReferenceCacheRepository] = None,
        **orchestrator_overrides,
    ):
        """
        Wire up the engine.

        Args:
            settings: Settings to use; becomes the global settings instance.
            provider: Override the external data provider.
            repository: Override the persistent cache tier.
            orchestrator_overrides: Passed through to both cache orchestrators
                (e.g. ``sleep`` or ``clock`` in tests).
        """
        self.settings = settings or get_settings()
        set_settings(self.settings)

        self._owns_database = repository is None and self.settings.cache_backend == "sqlite"
        self.provider = provider or build_provider(self.settings)
        self.repository = repository or build_repository(self.settings)

        self.conversions = ConversionTable.load(self.settings.conversion_table_path)
        self.asset_classes = AssetClassTable.load(self.settings.asset_class_table_path)

        self.reference_data = ReferenceDataService(
            provider=self.provider,
            repository=self.repository,
            settings=self.settings,
            **orchestrator_overrides,
        )
        self.resolver = LookThroughResolver(
            reference_data=self.reference_data,
            conversions=self.conversions,
            asset_classes=self.asset_classes,
            fetch_constituent_classifications=self.settings.fetch_constituent_classifications,
        )
        self.aggregator = ExposureAggregator()
        self.exposure = ExposureService(
            resolver=self.resolver,
            aggregator=self.aggregator,
            batch_deadline_seconds=self.settings.batch_deadline_seconds,
        )

        self.csv_reader = HoldingsCsvReader()
        self.csv_exporter = ExposureCsvExporter()
        self.csv_template = HoldingsCsvTemplateGenerator()
        self._closed = False

    def close(self) -> None:
        """Stop background work and release the database."""
        if self._closed:
            return
        self._closed = True
        self.reference_data.close()
        if self._owns_database:
            reset_database()


# Global application context (one per process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear) the global application context."""
    global _app_context
    _app_context = context
