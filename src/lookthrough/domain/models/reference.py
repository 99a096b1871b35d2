"""Reference data records served by the cache orchestrator.

Payload dicts use the persistent cache record layout (camelCase keys), so
the same shape is written to SQLite rows and JSON files.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


@dataclass(frozen=True)
class FundConstituent:
    """One underlying position inside a fund."""

    symbol: str
    weight_percent: Decimal
    name: Optional[str] = None
    shares: Optional[Decimal] = None
    sector: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "symbol": self.symbol,
            "name": self.name,
            "weightPercent": str(self.weight_percent),
        }
        if self.shares is not None:
            payload["shares"] = str(self.shares)
        if self.sector:
            payload["sector"] = self.sector
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "FundConstituent":
        shares = payload.get("shares")
        return cls(
            symbol=str(payload["symbol"]).strip().upper(),
            weight_percent=_to_decimal(payload.get("weightPercent")),
            name=payload.get("name"),
            shares=_to_decimal(shares) if shares not in (None, "") else None,
            sector=payload.get("sector"),
        )


@dataclass(frozen=True)
class FundComposition:
    """Underlying holdings of an ETF or mutual fund, weights in percent."""

    symbol: str
    name: str
    holdings: tuple[FundConstituent, ...] = field(default_factory=tuple)

    @property
    def total_weight_percent(self) -> Decimal:
        return sum((h.weight_percent for h in self.holdings), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return len(self.holdings) == 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "holdings": [h.to_payload() for h in self.holdings],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "FundComposition":
        symbol = str(payload["symbol"]).strip().upper()
        return cls(
            symbol=symbol,
            name=payload.get("name") or f"{symbol} ETF",
            holdings=tuple(
                FundConstituent.from_payload(h) for h in payload.get("holdings") or []
            ),
        )


@dataclass(frozen=True)
class SecurityClassification:
    """Sector/industry metadata for a single security."""

    symbol: str
    name: str
    sector: str = "Unknown"
    industry: str = "Unknown"
    official_site: Optional[str] = None
    country: Optional[str] = None
    asset_type: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "symbol": self.symbol,
            "name": self.name,
            "sector": self.sector,
            "industry": self.industry,
        }
        if self.official_site:
            payload["officialSite"] = self.official_site
        if self.country:
            payload["country"] = self.country
        if self.asset_type:
            payload["assetType"] = self.asset_type
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SecurityClassification":
        symbol = str(payload["symbol"]).strip().upper()
        return cls(
            symbol=symbol,
            name=payload.get("name") or symbol,
            sector=payload.get("sector") or "Unknown",
            industry=payload.get("industry") or "Unknown",
            official_site=payload.get("officialSite"),
            country=payload.get("country"),
            asset_type=payload.get("assetType"),
        )
