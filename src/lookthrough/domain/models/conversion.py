"""Static conversion rules for funds the provider cannot decompose."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class ConversionTarget:
    """One ETF-equivalent slice of a converted fund."""

    symbol: str
    weight_percent: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class ConversionRule:
    """
    Maps a source instrument (usually a mutual fund) to a weighted basket of
    ETF-equivalent symbols. Weights should sum to 100; this is checked when
    the table is authored, not while resolving.
    """

    source_symbol: str
    targets: tuple[ConversionTarget, ...]
    name: Optional[str] = None
    description: Optional[str] = field(default=None, compare=False)

    @property
    def total_weight_percent(self) -> Decimal:
        return sum((t.weight_percent for t in self.targets), Decimal("0"))
