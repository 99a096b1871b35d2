"""Reference data service: fund compositions and security classifications."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, Optional

from lookthrough.config.settings import Settings
from lookthrough.core.exceptions import ValidationError
from lookthrough.domain.models import (
    CacheEntry,
    FundComposition,
    RecordKind,
    SecurityClassification,
)
from lookthrough.providers.fund_data_provider import FundDataProvider
from lookthrough.repositories.protocols import ReferenceCacheRepository
from lookthrough.services.cache_orchestrator import BatchLookup, CacheOrchestrator
from lookthrough.services.call_budget import CallBudget

logger = logging.getLogger(__name__)


class ReferenceDataService:
    """
    Owns one cache orchestrator per reference data kind.

    Both orchestrators call the same provider, so they draw on one shared
    per-minute call budget.

    Created once per process by the app context and closed on shutdown;
    tests build their own isolated instances.
    """

    def __init__(
        self,
        provider: FundDataProvider,
        repository: ReferenceCacheRepository,
        settings: Settings,
        **orchestrator_overrides,
    ):
        self.budget = CallBudget(
            orchestrator_overrides.get("calls_per_minute", settings.provider_calls_per_minute),
            clock=orchestrator_overrides.get("clock", time.monotonic),
            sleep=orchestrator_overrides.get("sleep", time.sleep),
        )
        common = dict(
            repository=repository,
            budget=self.budget,
            stale_retry_seconds=settings.stale_retry_seconds,
            batch_size=settings.provider_batch_size,
            calls_per_minute=settings.provider_calls_per_minute,
            provider_timeout_seconds=settings.provider_timeout_seconds,
        )
        common.update(orchestrator_overrides)

        self.compositions: CacheOrchestrator[FundComposition] = CacheOrchestrator(
            kind=RecordKind.FUND_COMPOSITION,
            fetch=provider.fetch_composition,
            decode=FundComposition.from_payload,
            encode=FundComposition.to_payload,
            memory_ttl_seconds=settings.composition_ttl_seconds,
            freshness_seconds=settings.composition_ttl_seconds,
            **common,
        )
        self.classifications: CacheOrchestrator[SecurityClassification] = CacheOrchestrator(
            kind=RecordKind.SECURITY_CLASSIFICATION,
            fetch=provider.fetch_classification,
            decode=SecurityClassification.from_payload,
            encode=SecurityClassification.to_payload,
            memory_ttl_seconds=settings.classification_ttl_seconds,
            freshness_seconds=settings.classification_ttl_seconds,
            **common,
        )
        self._batch_deadline = settings.batch_deadline_seconds
        self._prewarm_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="prewarm")
        self._closed = False

    def orchestrator_for(self, kind: RecordKind) -> CacheOrchestrator:
        if kind == RecordKind.FUND_COMPOSITION:
            return self.compositions
        if kind == RecordKind.SECURITY_CLASSIFICATION:
            return self.classifications
        raise ValidationError(f"Unknown record kind: {kind}")

    def get_composition(self, symbol: str, force_refresh: bool = False) -> CacheEntry[FundComposition]:
        return self.compositions.get(symbol, force_refresh=force_refresh)

    def get_classification(self, symbol: str, force_refresh: bool = False) -> CacheEntry[SecurityClassification]:
        return self.classifications.get(symbol, force_refresh=force_refresh)

    def get_compositions(
        self, symbols: Iterable[str], deadline: Optional[float] = None
    ) -> BatchLookup[FundComposition]:
        return self.compositions.get_many(symbols, deadline=self._deadline(deadline))

    def get_classifications(
        self, symbols: Iterable[str], deadline: Optional[float] = None
    ) -> BatchLookup[SecurityClassification]:
        return self.classifications.get_many(symbols, deadline=self._deadline(deadline))

    def prewarm(self, kind: RecordKind, symbols: Iterable[str]) -> Optional[Future]:
        """
        Fetch symbols in the background, fire-and-forget.

        Returns the background future (mainly for tests and scripts), or
        None once the service is closed or nothing needs fetching.
        """
        orchestrator = self.orchestrator_for(kind)
        missing = [s for s in dict.fromkeys(symbols) if s and orchestrator.peek(s) is None]
        if not missing or self._closed:
            return None
        logger.info("Queueing prewarm of %d %s symbols", len(missing), kind.value)
        future = self._prewarm_executor.submit(
            orchestrator.get_many, missing, self._batch_deadline
        )
        future.add_done_callback(self._log_prewarm_result)
        return future

    def stats(self) -> dict[str, dict]:
        return {
            RecordKind.FUND_COMPOSITION.value: self.compositions.stats(),
            RecordKind.SECURITY_CLASSIFICATION.value: self.classifications.stats(),
        }

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._prewarm_executor.shutdown(wait=False, cancel_futures=True)
        self.compositions.close()
        self.classifications.close()

    def _deadline(self, deadline: Optional[float]) -> Optional[float]:
        return deadline if deadline is not None else self._batch_deadline

    @staticmethod
    def _log_prewarm_result(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Prewarm failed", exc_info=error)
            return
        lookup = future.result()
        logger.info(
            "Prewarm finished: %d symbols, %d provider calls, retryable=%s",
            len(lookup.entries),
            lookup.provider_calls,
            lookup.retryable,
        )
