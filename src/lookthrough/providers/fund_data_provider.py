"""Fund data provider protocol."""

from typing import Protocol

from lookthrough.domain.models import FundComposition, SecurityClassification
from lookthrough.providers.results import ProviderResult


class FundDataProvider(Protocol):
    """
    Protocol for external reference data providers.

    Implementations must never raise for provider-side failures; every
    outcome is returned as a ProviderResult. One call fetches one symbol.
    """

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        """Fetch the underlying holdings of an ETF or fund."""
        ...

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        """Fetch sector/industry metadata for a security."""
        ...
