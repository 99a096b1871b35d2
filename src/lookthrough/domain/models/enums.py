"""Enumerations for domain models."""

from enum import Enum


class HoldingType(str, Enum):
    """Kinds of raw portfolio positions."""

    STOCK = "stock"
    FUND = "fund"  # ETFs and mutual funds
    CASH = "cash"


class SourceTag(str, Enum):
    """Where a cached reference record came from."""

    API = "api"
    CACHE = "cache"
    FALLBACK_STALE = "fallback-stale"
    UNAVAILABLE = "unavailable"


class RecordKind(str, Enum):
    """Kinds of reference data served by the cache orchestrator."""

    FUND_COMPOSITION = "fund_composition"
    SECURITY_CLASSIFICATION = "security_classification"


class GroupBy(str, Enum):
    """Dimensions the exposure aggregator can group by."""

    STOCK_SYMBOL = "stock_symbol"
    SECTOR = "sector"
    ASSET_CLASS = "asset_class"
    ACCOUNT_ID = "account_id"


class Resolution(str, Enum):
    """How a resolved exposure was derived from its holding."""

    DIRECT = "direct"  # stock held directly
    FUND = "fund"  # constituent of a fund composition
    CONVERSION_LEAF = "conversion-leaf"  # conversion target with no composition data
    NESTED_FUND = "nested-fund"  # fund found inside a composition, not expanded
    RESIDUAL = "residual"  # composition weights short of 100%
    UNRESOLVED = "unresolved"  # no composition data at all
    CASH = "cash"


class AssetClass(str, Enum):
    """Asset class labels used for grouping."""

    US_STOCKS = "U.S. Stocks"
    INTERNATIONAL_STOCKS = "International Stocks"
    BONDS = "Bonds"
    CASH = "Cash"
    OTHER = "Other"
