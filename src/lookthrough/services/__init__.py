"""Service layer - cache orchestration, resolution and aggregation."""

from lookthrough.services.memory_cache import MemoryCache
from lookthrough.services.call_budget import CallBudget
from lookthrough.services.cache_orchestrator import BatchLookup, CacheOrchestrator
from lookthrough.services.reference_data_service import ReferenceDataService
from lookthrough.services.conversion_table import AssetClassTable, ConversionTable
from lookthrough.services.look_through_resolver import LookThroughResolver, MAX_FUND_OF_FUNDS_DEPTH
from lookthrough.services.exposure_aggregator import ExposureAggregator
from lookthrough.services.exposure_service import ExposureService

__all__ = [
    "MemoryCache",
    "CallBudget",
    "BatchLookup",
    "CacheOrchestrator",
    "ReferenceDataService",
    "AssetClassTable",
    "ConversionTable",
    "LookThroughResolver",
    "MAX_FUND_OF_FUNDS_DEPTH",
    "ExposureAggregator",
    "ExposureService",
]
