"""Reference data providers module."""

from lookthrough.providers.results import ProviderResult, ProviderStatus
from lookthrough.providers.fund_data_provider import FundDataProvider
from lookthrough.providers.alpha_vantage_provider import AlphaVantageProvider
from lookthrough.providers.stub_provider import StubFundDataProvider

__all__ = [
    "ProviderResult",
    "ProviderStatus",
    "FundDataProvider",
    "AlphaVantageProvider",
    "StubFundDataProvider",
]
