"""Domain models package."""

from lookthrough.domain.models.enums import (
    HoldingType,
    SourceTag,
    RecordKind,
    GroupBy,
    Resolution,
    AssetClass,
)
from lookthrough.domain.models.holding import Holding
from lookthrough.domain.models.reference import (
    FundConstituent,
    FundComposition,
    SecurityClassification,
)
from lookthrough.domain.models.conversion import ConversionRule, ConversionTarget
from lookthrough.domain.models.cache import CacheEntry, StoredRecord

__all__ = [
    "HoldingType",
    "SourceTag",
    "RecordKind",
    "GroupBy",
    "Resolution",
    "AssetClass",
    "Holding",
    "FundConstituent",
    "FundComposition",
    "SecurityClassification",
    "ConversionRule",
    "ConversionTarget",
    "CacheEntry",
    "StoredRecord",
]
