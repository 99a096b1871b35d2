"""Holding domain model."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from lookthrough.core.exceptions import InvalidHoldingError
from lookthrough.domain.models.enums import HoldingType


@dataclass
class Holding:
    """
    A single raw position as supplied by the account/holdings collaborator.

    market_value is derived from quantity x last_price when not supplied.
    Cash holdings carry market_value directly and have no ticker.
    Read-only to the engine.
    """

    id: str
    account_id: Optional[str]
    type: HoldingType
    name: str = ""
    ticker: Optional[str] = None
    quantity: Decimal = field(default_factory=lambda: Decimal("0"))
    last_price: Decimal = field(default_factory=lambda: Decimal("0"))
    market_value: Optional[Decimal] = None
    account_name: Optional[str] = None
    # Manual entries may carry their own classification
    sector: Optional[str] = None
    industry: Optional[str] = None
    is_manual_entry: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = HoldingType(self.type.lower())
        if self.ticker is not None:
            self.ticker = self.ticker.strip().upper() or None
        if self.market_value is None and self.type != HoldingType.CASH:
            self.market_value = self.quantity * self.last_price
        if self.market_value is None:
            self.market_value = Decimal("0")

    @property
    def is_cash(self) -> bool:
        return self.type == HoldingType.CASH

    @property
    def is_fund(self) -> bool:
        return self.type == HoldingType.FUND

    def validate(self) -> None:
        """Raise InvalidHoldingError for structurally unusable holdings."""
        if not self.account_id or not str(self.account_id).strip():
            raise InvalidHoldingError(self.id, "missing account id")
        if self.market_value < 0:
            raise InvalidHoldingError(
                self.id, f"negative market value {self.market_value}"
            )
