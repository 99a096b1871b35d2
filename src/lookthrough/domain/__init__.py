"""Domain layer - pure business models with no external dependencies."""

from lookthrough.domain.models import (
    HoldingType,
    SourceTag,
    RecordKind,
    GroupBy,
    Resolution,
    AssetClass,
    Holding,
    FundConstituent,
    FundComposition,
    SecurityClassification,
    ConversionRule,
    ConversionTarget,
    CacheEntry,
)

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
]
