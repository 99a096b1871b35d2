"""Stub fund data provider for offline/testing use."""

from decimal import Decimal

from lookthrough.domain.models import (
    FundComposition,
    FundConstituent,
    SecurityClassification,
)
from lookthrough.providers.results import ProviderResult


# Top constituents only; weights in percent, so each fund sums well below 100
_STUB_COMPOSITIONS: dict[str, tuple[str, list[tuple[str, str, str]]]] = {
    "QQQ": ("Invesco QQQ Trust", [
        ("NVDA", "NVIDIA Corp", "9.507"),
        ("MSFT", "Microsoft Corp", "8.347"),
        ("AAPL", "Apple Inc", "8.324"),
        ("AVGO", "Broadcom Inc", "5.714"),
        ("AMZN", "Amazon.com Inc", "5.146"),
        ("META", "Meta Platforms Inc", "3.542"),
        ("TSLA", "Tesla Inc", "3.524"),
        ("GOOGL", "Alphabet Inc Class A", "3.149"),
        ("GOOG", "Alphabet Inc Class C", "2.947"),
        ("NFLX", "Netflix Inc", "2.779"),
    ]),
    "VTI": ("Vanguard Total Stock Market ETF", [
        ("AAPL", "Apple Inc", "6.52"),
        ("MSFT", "Microsoft Corporation", "6.31"),
        ("AMZN", "Amazon.com Inc", "3.15"),
        ("NVDA", "NVIDIA Corporation", "2.81"),
        ("GOOGL", "Alphabet Inc Class A", "1.93"),
        ("TSLA", "Tesla Inc", "1.46"),
        ("BRK.B", "Berkshire Hathaway Inc Class B", "1.40"),
        ("META", "Meta Platforms Inc", "1.30"),
        ("JNJ", "Johnson & Johnson", "1.08"),
        ("XOM", "Exxon Mobil Corporation", "1.03"),
    ]),
    "VOO": ("Vanguard S&P 500 ETF", [
        ("AAPL", "Apple Inc", "7.28"),
        ("MSFT", "Microsoft Corporation", "7.03"),
        ("AMZN", "Amazon.com Inc", "3.51"),
        ("NVDA", "NVIDIA Corporation", "3.12"),
        ("GOOGL", "Alphabet Inc Class A", "2.15"),
        ("TSLA", "Tesla Inc", "1.62"),
        ("BRK.B", "Berkshire Hathaway Inc Class B", "1.55"),
        ("META", "Meta Platforms Inc", "1.45"),
        ("JNJ", "Johnson & Johnson", "1.20"),
        ("XOM", "Exxon Mobil Corporation", "1.15"),
    ]),
    "SPY": ("SPDR S&P 500 ETF Trust", [
        ("AAPL", "Apple Inc", "7.27"),
        ("MSFT", "Microsoft Corporation", "7.02"),
        ("AMZN", "Amazon.com Inc", "3.50"),
        ("NVDA", "NVIDIA Corporation", "3.11"),
        ("GOOGL", "Alphabet Inc Class A", "2.14"),
        ("TSLA", "Tesla Inc", "1.61"),
        ("BRK.B", "Berkshire Hathaway Inc Class B", "1.54"),
        ("META", "Meta Platforms Inc", "1.44"),
        ("JNJ", "Johnson & Johnson", "1.19"),
        ("XOM", "Exxon Mobil Corporation", "1.14"),
    ]),
    "VXUS": ("Vanguard Total International Stock ETF", [
        ("TSM", "Taiwan Semiconductor", "1.45"),
        ("NVS", "Novartis AG", "0.89"),
        ("NESN", "Nestle SA", "0.85"),
        ("ASML", "ASML Holding NV", "0.82"),
        ("SAP", "SAP SE", "0.71"),
        ("TM", "Toyota Motor Corp", "0.68"),
        ("SHEL", "Shell PLC", "0.65"),
        ("AZN", "AstraZeneca PLC", "0.62"),
        ("UL", "Unilever PLC", "0.52"),
    ]),
    "BND": ("Vanguard Total Bond Market ETF", [
        ("UST-10Y", "US Treasury 10 Year", "15.2"),
        ("UST-30Y", "US Treasury 30 Year", "12.8"),
        ("UST-5Y", "US Treasury 5 Year", "10.5"),
        ("MBS", "Mortgage Backed Securities", "25.3"),
        ("CORP-AAA", "AAA Corporate Bonds", "18.6"),
        ("CORP-AA", "AA Corporate Bonds", "8.4"),
        ("MUNI", "Municipal Bonds", "5.2"),
        ("INTL-BOND", "International Bonds", "4.0"),
    ]),
    "IWM": ("iShares Russell 2000 ETF", [
        ("SMCI", "Super Micro Computer Inc.", "0.68"),
        ("MU", "Micron Technology Inc.", "0.44"),
        ("VRT", "Vertiv Holdings Co", "0.42"),
        ("FTNT", "Fortinet Inc.", "0.40"),
        ("GDDY", "GoDaddy Inc.", "0.38"),
    ]),
}
# QQQM tracks the same index as QQQ
_STUB_COMPOSITIONS["QQQM"] = ("Invesco NASDAQ 100 ETF", _STUB_COMPOSITIONS["QQQ"][1])

_STUB_CLASSIFICATIONS: dict[str, tuple[str, str, str, str]] = {
    # symbol: (name, sector, industry, country)
    "AAPL": ("Apple Inc", "Technology", "Consumer Electronics", "USA"),
    "MSFT": ("Microsoft Corporation", "Technology", "Software", "USA"),
    "NVDA": ("NVIDIA Corporation", "Technology", "Semiconductors", "USA"),
    "AVGO": ("Broadcom Inc", "Technology", "Semiconductors", "USA"),
    "AMZN": ("Amazon.com Inc", "Consumer Cyclical", "Internet Retail", "USA"),
    "META": ("Meta Platforms Inc", "Communication Services", "Internet Content", "USA"),
    "GOOGL": ("Alphabet Inc Class A", "Communication Services", "Internet Content", "USA"),
    "GOOG": ("Alphabet Inc Class C", "Communication Services", "Internet Content", "USA"),
    "TSLA": ("Tesla Inc", "Consumer Cyclical", "Auto Manufacturers", "USA"),
    "NFLX": ("Netflix Inc", "Communication Services", "Entertainment", "USA"),
    "BRK.B": ("Berkshire Hathaway Inc Class B", "Financial Services", "Insurance", "USA"),
    "JNJ": ("Johnson & Johnson", "Healthcare", "Drug Manufacturers", "USA"),
    "XOM": ("Exxon Mobil Corporation", "Energy", "Oil & Gas Integrated", "USA"),
    "TSM": ("Taiwan Semiconductor", "Technology", "Semiconductors", "Taiwan"),
    "NVS": ("Novartis AG", "Healthcare", "Drug Manufacturers", "Switzerland"),
    "ASML": ("ASML Holding NV", "Technology", "Semiconductor Equipment", "Netherlands"),
    "SAP": ("SAP SE", "Technology", "Software", "Germany"),
    "TM": ("Toyota Motor Corp", "Consumer Cyclical", "Auto Manufacturers", "Japan"),
    "SHEL": ("Shell PLC", "Energy", "Oil & Gas Integrated", "UK"),
    "AZN": ("AstraZeneca PLC", "Healthcare", "Drug Manufacturers", "UK"),
    "UL": ("Unilever PLC", "Consumer Defensive", "Household Products", "UK"),
}


class StubFundDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Knows a handful of common ETFs and their largest constituents; every
    other symbol comes back as a provider error so fallback paths get used.
    """

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        upper_symbol = symbol.upper()
        if upper_symbol not in _STUB_COMPOSITIONS:
            return ProviderResult.error(f"no stub composition for {upper_symbol}")

        name, rows = _STUB_COMPOSITIONS[upper_symbol]
        return ProviderResult.ok(
            FundComposition(
                symbol=upper_symbol,
                name=name,
                holdings=tuple(
                    FundConstituent(symbol=s, name=n, weight_percent=Decimal(w))
                    for s, n, w in rows
                ),
            )
        )

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        upper_symbol = symbol.upper()
        if upper_symbol not in _STUB_CLASSIFICATIONS:
            return ProviderResult.error(f"no stub classification for {upper_symbol}")

        name, sector, industry, country = _STUB_CLASSIFICATIONS[upper_symbol]
        return ProviderResult.ok(
            SecurityClassification(
                symbol=upper_symbol,
                name=name,
                sector=sector,
                industry=industry,
                country=country,
                asset_type="Common Stock",
            )
        )
