"""Three-tier cache orchestration: memory -> persistent -> external provider."""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, NamedTuple, Optional, TypeVar

from lookthrough.core.exceptions import CacheWriteError, ValidationError
from lookthrough.core.timezone import age_seconds, now_utc
from lookthrough.domain.models import CacheEntry, RecordKind, SourceTag, StoredRecord
from lookthrough.providers.results import ProviderResult
from lookthrough.repositories.protocols import ReferenceCacheRepository
from lookthrough.services.call_budget import CallBudget
from lookthrough.services.memory_cache import MemoryCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS = 60.0


def normalize_symbol(symbol: Optional[str]) -> str:
    return (symbol or "").strip().upper()


@dataclass
class BatchLookup(Generic[T]):
    """Result of get_many(). Every requested symbol has an entry."""

    entries: dict[str, CacheEntry[T]] = field(default_factory=dict)
    rate_limited: bool = False
    deadline_exceeded: bool = False
    provider_calls: int = 0

    @property
    def retryable(self) -> bool:
        """True when some symbols were left degraded by the rate limit or the deadline."""
        if not (self.rate_limited or self.deadline_exceeded):
            return False
        return any(entry.is_degraded for entry in self.entries.values())

    @property
    def degraded_symbols(self) -> list[str]:
        return sorted(s for s, e in self.entries.items() if e.is_degraded)


class _Outcome(NamedTuple):
    entry: CacheEntry
    provider_called: bool = False
    rate_limited: bool = False


class CacheOrchestrator(Generic[T]):
    """
    Serves one kind of reference record per symbol.

    Lookup order: memory tier, persistent tier, then the provider. Provider
    failures of any sort fall back to the persistent record (tagged
    fallback-stale) or to an UNAVAILABLE entry; nothing raises out of get().

    A persistent record younger than ``freshness_seconds`` is served as
    ``cache``. An older record triggers a refresh and is only served if the
    refresh fails. ``freshness_seconds=None`` keeps records valid until
    they are invalidated.

    At most one provider call per symbol is in flight at any time;
    concurrent callers for the same symbol wait on the same future. A call
    that outlives its timeout stays registered until it really returns, so
    later lookups wait on it instead of starting another.
    """

    def __init__(
        self,
        kind: RecordKind,
        fetch: Callable[[str], ProviderResult[T]],
        decode: Callable[[dict[str, Any]], T],
        encode: Callable[[T], dict[str, Any]],
        repository: ReferenceCacheRepository,
        memory_ttl_seconds: float,
        freshness_seconds: Optional[float] = None,
        stale_retry_seconds: float = 300,
        batch_size: int = 5,
        calls_per_minute: int = 5,
        provider_timeout_seconds: Optional[float] = None,
        budget: Optional[CallBudget] = None,
        rate_limit_cooldown_seconds: float = DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], datetime] = now_utc,
    ):
        if batch_size < 1:
            raise ValidationError("batch_size must be at least 1")
        if calls_per_minute < 1:
            raise ValidationError("calls_per_minute must be at least 1")

        self.kind = kind
        self._fetch = fetch
        self._decode = decode
        self._encode = encode
        self._repository = repository
        self._memory: MemoryCache[T] = MemoryCache(memory_ttl_seconds, clock=clock)
        self._freshness = freshness_seconds
        self._stale_retry = stale_retry_seconds
        self._budget = budget or CallBudget(calls_per_minute, clock=clock, sleep=sleep)
        # A batch must fit inside one minute of budget
        self._batch_size = min(batch_size, self._budget.calls_per_minute)
        self._provider_timeout = provider_timeout_seconds
        self._cooldown = rate_limit_cooldown_seconds
        self._clock = clock
        self._wall_clock = wall_clock

        self._lock = threading.Lock()
        self._inflight: dict[str, Future] = {}
        self._provider_futures: dict[str, Future] = {}
        self._rate_limited_until: Optional[float] = None
        self._stats: dict[str, int] = {
            "memory_hits": 0,
            "persistent_hits": 0,
            "provider_calls": 0,
            "provider_failures": 0,
            "rate_limited": 0,
            "fallback_stale": 0,
            "unavailable": 0,
            "coalesced": 0,
            "provider_errors": 0,
            "write_failures": 0,
        }
        self._provider_executor: Optional[ThreadPoolExecutor] = None
        if provider_timeout_seconds is not None:
            self._provider_executor = ThreadPoolExecutor(
                max_workers=batch_size * 2,
                thread_name_prefix=f"{kind.value}-provider",
            )

    # Public API

    def get(self, symbol: str, force_refresh: bool = False) -> CacheEntry[T]:
        """Return the best available entry for a symbol. Never raises for provider or cache failures."""
        key = self._require_symbol(symbol)
        if not force_refresh:
            entry = self._memory_hit(key)
            if entry is not None:
                return entry
        return self._single_flight(key, force_refresh).entry

    def get_many(
        self,
        symbols: Iterable[str],
        deadline: Optional[float] = None,
    ) -> BatchLookup[T]:
        """
        Look up many symbols while staying under the provider's call budget.

        Cached symbols are answered first. The rest go to the provider in
        batches of ``batch_size`` concurrent calls. Each batch first reserves
        its calls from the call budget, which may be shared with other
        orchestrators calling the same provider, and waits until they fit
        inside ``calls_per_minute``. A rate-limit signal stops all further
        provider calls in this run, and once ``deadline`` seconds have
        passed no new batch is started; symbols skipped either way get their stale persistent record or UNAVAILABLE.
        """
        keys: list[str] = []
        for symbol in symbols:
            key = normalize_symbol(symbol)
            if key and key not in keys:
                keys.append(key)

        lookup: BatchLookup[T] = BatchLookup()
        pending: list[str] = []
        for key in keys:
            entry = self._cached_only(key, require_fresh=True)
            if entry is not None:
                lookup.entries[key] = entry
            else:
                pending.append(key)

        if not pending:
            return lookup

        deadline_at = self._clock() + deadline if deadline is not None else None
        abort = threading.Event()
        if self._in_cooldown():
            abort.set()
            lookup.rate_limited = True

        batches = [
            pending[i:i + self._batch_size]
            for i in range(0, len(pending), self._batch_size)
        ]

        for batch in batches:
            if deadline_at is not None and self._clock() >= deadline_at:
                lookup.deadline_exceeded = True
            # Reserving the whole batch up front may sleep until the shared budget has room
            if not (abort.is_set() or lookup.deadline_exceeded):
                if not self._budget.acquire(len(batch), deadline_at=deadline_at):
                    lookup.deadline_exceeded = True

            if abort.is_set() or lookup.deadline_exceeded:
                for key in batch:
                    lookup.entries[key] = self._fallback_only(key)
                continue

            with ThreadPoolExecutor(
                max_workers=len(batch),
                thread_name_prefix=f"{self.kind.value}-batch",
            ) as pool:
                outcomes = list(pool.map(lambda k: self._load_in_batch(k, abort), batch))

            for key, outcome in zip(batch, outcomes):
                lookup.entries[key] = outcome.entry
                if outcome.provider_called:
                    lookup.provider_calls += 1
                if outcome.rate_limited:
                    lookup.rate_limited = True

        if lookup.rate_limited or lookup.deadline_exceeded:
            logger.warning(
                "%s batch incomplete (rate_limited=%s, deadline_exceeded=%s); degraded: %s",
                self.kind.value,
                lookup.rate_limited,
                lookup.deadline_exceeded,
                ", ".join(lookup.degraded_symbols) or "none",
            )
        return lookup

    def peek(self, symbol: str) -> Optional[CacheEntry[T]]:
        """Memory or persistent entry for a symbol, without ever calling the provider."""
        key = normalize_symbol(symbol)
        if not key:
            return None
        return self._cached_only(key, require_fresh=False)

    def invalidate(self, symbol: str) -> bool:
        """Drop a symbol from both tiers. Returns True if anything was removed."""
        key = self._require_symbol(symbol)
        removed_memory = self._memory.invalidate(key)
        removed_persistent = self._repository.delete(self.kind, key)
        logger.info("Invalidated %s %s", self.kind.value, key)
        return removed_memory or removed_persistent

    def clear(self) -> int:
        """Drop every entry of this kind from both tiers. Returns the persistent count removed."""
        self._memory.clear()
        removed = self._repository.clear(self.kind)
        logger.info("Cleared %d %s records", removed, self.kind.value)
        return removed

    def stats(self) -> dict[str, Any]:
        with self._lock:
            counters = dict(self._stats)
            inflight = len(self._inflight)
            provider_running = len(self._provider_futures)
        return {
            "kind": self.kind.value,
            "memory_entries": len(self._memory),
            "persistent_entries": len(self._repository.list_symbols(self.kind)),
            "inflight": inflight,
            "provider_running": provider_running,
            **counters,
        }

    def close(self) -> None:
        if self._provider_executor is not None:
            self._provider_executor.shutdown(wait=False, cancel_futures=True)
            self._provider_executor = None

    # Tier helpers

    def _require_symbol(self, symbol: str) -> str:
        key = normalize_symbol(symbol)
        if not key:
            raise ValidationError("Symbol is required")
        return key

    def _count(self, name: str) -> None:
        with self._lock:
            self._stats[name] += 1

    def _memory_hit(self, key: str) -> Optional[CacheEntry[T]]:
        entry = self._memory.get(key)
        if entry is None:
            return None
        self._count("memory_hits")
        logger.debug("Memory hit for %s %s", self.kind.value, key)
        if entry.source_tag == SourceTag.API:
            return entry.retag(SourceTag.CACHE)
        return entry

    def _read_persistent(self, key: str) -> Optional[CacheEntry[T]]:
        stored = self._repository.get(self.kind, key)
        if stored is None:
            return None
        try:
            record = self._decode(stored.payload)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring undecodable %s record for %s", self.kind.value, key, exc_info=True)
            return None
        return CacheEntry(
            symbol=key,
            record=record,
            fetched_at=stored.fetched_at,
            source_tag=SourceTag.CACHE,
        )

    def _is_fresh(self, entry: CacheEntry[T]) -> bool:
        if self._freshness is None:
            return True
        age = age_seconds(entry.fetched_at, self._wall_clock())
        return age is not None and age < self._freshness

    def _cached_only(self, key: str, require_fresh: bool) -> Optional[CacheEntry[T]]:
        entry = self._memory_hit(key)
        if entry is not None:
            return entry
        entry = self._read_persistent(key)
        if entry is None:
            return None
        fresh = self._is_fresh(entry)
        if require_fresh and not fresh:
            return None
        self._count("persistent_hits")
        logger.debug("Persistent hit for %s %s", self.kind.value, key)
        # Old records are served but never warm memory, so get() still refreshes them
        if fresh:
            self._memory.put(entry)
        return entry

    def _fallback_only(self, key: str) -> CacheEntry[T]:
        """Entry for a symbol whose provider call was skipped."""
        stored = self._read_persistent(key)
        if stored is not None:
            return self._serve_stale(key, stored)
        self._count("unavailable")
        return CacheEntry.unavailable(key)

    def _serve_stale(self, key: str, stored: CacheEntry[T]) -> CacheEntry[T]:
        entry = stored.retag(SourceTag.FALLBACK_STALE)
        self._memory.put(entry, ttl_seconds=self._stale_retry)
        self._count("fallback_stale")
        logger.warning(
            "Serving stale %s for %s (fetched %s)",
            self.kind.value,
            key,
            entry.fetched_at.isoformat() if entry.fetched_at else "unknown",
        )
        return entry

    # Provider tier

    def _in_cooldown(self) -> bool:
        with self._lock:
            return (
                self._rate_limited_until is not None
                and self._clock() < self._rate_limited_until
            )

    def _single_flight(
        self,
        key: str,
        force_refresh: bool,
        abort: Optional[threading.Event] = None,
        reserved: bool = False,
    ) -> _Outcome:
        with self._lock:
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future
            else:
                self._stats["coalesced"] += 1

        if not owner:
            logger.debug("Joining in-flight %s lookup for %s", self.kind.value, key)
            outcome: _Outcome = future.result()
            return outcome._replace(provider_called=False)

        try:
            outcome = self._resolve(key, force_refresh, abort, reserved)
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(outcome)
            return outcome
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def _resolve(
        self,
        key: str,
        force_refresh: bool,
        abort: Optional[threading.Event],
        reserved: bool,
    ) -> _Outcome:
        stored: Optional[CacheEntry[T]] = None
        if not force_refresh:
            # Another flight may have finished between our memory check and taking ownership
            entry = self._memory_hit(key)
            if entry is not None:
                return _Outcome(entry)
        stored = self._read_persistent(key)
        if stored is not None and not force_refresh and self._is_fresh(stored):
            self._count("persistent_hits")
            logger.debug("Persistent hit for %s %s", self.kind.value, key)
            self._memory.put(stored)
            return _Outcome(stored)

        if (abort is not None and abort.is_set()) or self._in_cooldown():
            entry = self._serve_stale(key, stored) if stored is not None else self._unavailable(key)
            return _Outcome(entry, rate_limited=True)

        # Batch lookups reserve their slots before dispatch
        if not reserved:
            self._budget.acquire()

        result = self._call_provider(key)
        if result.is_ok and result.record is not None:
            return _Outcome(self._accept(key, result.record), provider_called=True)

        self._count("provider_failures")
        if result.is_rate_limited:
            self._count("rate_limited")
            with self._lock:
                self._rate_limited_until = self._clock() + self._cooldown
            if abort is not None:
                abort.set()
            logger.warning("Provider rate limited on %s %s: %s", self.kind.value, key, result.detail)
        else:
            logger.warning("Provider failed on %s %s: %s", self.kind.value, key, result.detail)

        entry = self._serve_stale(key, stored) if stored is not None else self._unavailable(key)
        return _Outcome(entry, provider_called=True, rate_limited=result.is_rate_limited)

    def _load_in_batch(self, key: str, abort: threading.Event) -> _Outcome:
        return self._single_flight(key, False, abort, reserved=True)

    def _unavailable(self, key: str) -> CacheEntry[T]:
        self._count("unavailable")
        logger.warning("No %s data available for %s", self.kind.value, key)
        return CacheEntry.unavailable(key)

    def _call_provider(self, key: str) -> ProviderResult[T]:
        """
        Call the provider once, turning exceptions and timeouts into error results.

        With a timeout configured the call runs on the provider executor and
        stays registered per symbol until it returns; a caller that finds a
        call still running waits on it rather than starting a second one.
        """
        if self._provider_executor is None:
            self._count("provider_calls")
            logger.info("Fetching %s for %s from provider", self.kind.value, key)
            try:
                return self._fetch(key)
            except Exception as e:
                return self._provider_raised(key, e)

        with self._lock:
            future = self._provider_futures.get(key)
            started = future is None
            if started:
                self._stats["provider_calls"] += 1
                future = self._provider_executor.submit(self._fetch, key)
                self._provider_futures[key] = future

        if started:
            logger.info("Fetching %s for %s from provider", self.kind.value, key)
            future.add_done_callback(lambda done: self._provider_call_finished(key, done))
        else:
            logger.info("Waiting on unfinished provider call for %s %s", self.kind.value, key)

        try:
            return future.result(timeout=self._provider_timeout)
        except FuturesTimeoutError:
            logger.warning(
                "Provider call for %s %s still running after %ss",
                self.kind.value,
                key,
                self._provider_timeout,
            )
            return ProviderResult.error(f"timed out after {self._provider_timeout}s")
        except Exception as e:
            return self._provider_raised(key, e)

    def _provider_call_finished(self, key: str, future: Future) -> None:
        with self._lock:
            if self._provider_futures.get(key) is future:
                del self._provider_futures[key]

    def _provider_raised(self, key: str, error: Exception) -> ProviderResult[T]:
        self._count("provider_errors")
        logger.warning("Provider raised on %s %s", self.kind.value, key, exc_info=error)
        return ProviderResult.error(f"provider raised: {error}")

    def _accept(self, key: str, record: T) -> CacheEntry[T]:
        """Write a fresh provider record through to both tiers."""
        entry: CacheEntry[T] = CacheEntry(
            symbol=key,
            record=record,
            fetched_at=self._wall_clock(),
            source_tag=SourceTag.API,
        )
        try:
            self._repository.put(
                StoredRecord(
                    kind=self.kind,
                    symbol=key,
                    payload=self._encode(record),
                    fetched_at=entry.fetched_at,
                    source_tag=SourceTag.API,
                )
            )
        except CacheWriteError:
            self._count("write_failures")
            logger.error("Persistent cache write failed for %s %s", self.kind.value, key, exc_info=True)
        self._memory.put(entry)
        return entry
