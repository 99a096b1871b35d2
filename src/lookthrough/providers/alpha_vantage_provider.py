"""Alpha Vantage implementation of FundDataProvider."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import requests

from lookthrough.domain.models import (
    FundComposition,
    FundConstituent,
    SecurityClassification,
)
from lookthrough.providers.results import ProviderResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"

# Keys Alpha Vantage uses for soft rate-limit notices in 200 responses
RATE_LIMIT_MARKERS = ("Note", "Information")
ERROR_MARKER = "Error Message"

# Constituent symbols that stand for cash, futures or other non-securities
PLACEHOLDER_SYMBOLS = {"", "N/A", "NA", "-", "NONE"}


def _parse_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None:
        return None
    text = str(raw).strip().replace(",", "").rstrip("%")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    # NaN and Infinity parse but are never usable weights or share counts
    return value if value.is_finite() else None


def parse_weights(raw_weights: list[Any]) -> list[Decimal]:
    """
    Convert raw weight strings into percentages.

    "7.28%" is already a percentage. Bare numbers are percentages unless the
    whole list sums to at most 1, in which case they are fractions of one
    (the ETF_PROFILE format) and are scaled by 100.
    """
    explicit_percent = any(str(w).strip().endswith("%") for w in raw_weights if w is not None)
    values = [_parse_decimal(w) or Decimal("0") for w in raw_weights]
    if explicit_percent:
        return values
    if values and sum(values) <= Decimal("1.0001"):
        return [v * 100 for v in values]
    return values


class AlphaVantageProvider:
    """
    Fetches ETF profiles and company overviews from Alpha Vantage.

    One HTTP GET per symbol with a bounded timeout. Response classification
    happens here so the orchestrator only ever sees ProviderResult values.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout_seconds

    def fetch_composition(self, symbol: str) -> ProviderResult[FundComposition]:
        """Fetch ETF holdings via the ETF_PROFILE function."""
        result = self._query("ETF_PROFILE", symbol)
        if not result.is_ok:
            return result

        data = result.record
        raw_holdings = data.get("holdings") or []
        # Older payloads nest the list under holdings.data
        if isinstance(raw_holdings, dict):
            raw_holdings = raw_holdings.get("data") or []
        if not isinstance(raw_holdings, list):
            return ProviderResult.error(f"unexpected holdings shape for {symbol}")
        raw_holdings = [h for h in raw_holdings if isinstance(h, dict)]

        weights = parse_weights([h.get("weight") for h in raw_holdings])
        constituents = []
        for raw, weight in zip(raw_holdings, weights):
            constituent_symbol = str(raw.get("symbol") or "").strip().upper()
            if constituent_symbol in PLACEHOLDER_SYMBOLS:
                continue
            constituents.append(
                FundConstituent(
                    symbol=constituent_symbol,
                    weight_percent=weight,
                    name=raw.get("name") or raw.get("description"),
                    shares=_parse_decimal(raw.get("shares")),
                )
            )

        if not constituents:
            return ProviderResult.error(f"no holdings returned for {symbol}")

        return ProviderResult.ok(
            FundComposition(
                symbol=str(data.get("symbol") or symbol).upper(),
                name=data.get("name") or f"{symbol} ETF",
                holdings=tuple(constituents),
            )
        )

    def fetch_classification(self, symbol: str) -> ProviderResult[SecurityClassification]:
        """Fetch sector and industry via the OVERVIEW function."""
        result = self._query("OVERVIEW", symbol)
        if not result.is_ok:
            return result

        data = result.record
        if not data.get("Symbol"):
            return ProviderResult.error(f"no overview data for {symbol}")

        return ProviderResult.ok(
            SecurityClassification(
                symbol=str(data["Symbol"]).upper(),
                name=data.get("Name") or symbol,
                sector=_clean(data.get("Sector")) or "Unknown",
                industry=_clean(data.get("Industry")) or "Unknown",
                official_site=_clean(data.get("OfficialSite")),
                country=_clean(data.get("Country")),
                asset_type=_clean(data.get("AssetType")),
            )
        )

    def _query(self, function: str, symbol: str) -> ProviderResult[dict]:
        """Issue one request and classify the response."""
        params = {"function": function, "symbol": symbol, "apikey": self._api_key}
        try:
            resp = requests.get(self._base_url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout:
            logger.warning("Timeout fetching %s for %s", function, symbol)
            return ProviderResult.error("timeout")
        except requests.exceptions.RequestException as e:
            logger.warning("Request error fetching %s for %s: %s", function, symbol, e)
            return ProviderResult.error(f"transport error: {e}")

        if resp.status_code == 429:
            return ProviderResult.rate_limited(f"HTTP 429 for {symbol}")
        if not 200 <= resp.status_code < 300:
            logger.warning("Alpha Vantage %s %s returned HTTP %s", function, symbol, resp.status_code)
            return ProviderResult.error(f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            return ProviderResult.error("invalid JSON body")

        if not isinstance(data, dict) or not data:
            return ProviderResult.error("empty payload")

        for marker in RATE_LIMIT_MARKERS:
            if marker in data:
                logger.warning("Alpha Vantage rate limit for %s: %s", symbol, data[marker])
                return ProviderResult.rate_limited(str(data[marker]))

        if ERROR_MARKER in data:
            return ProviderResult.error(str(data[ERROR_MARKER]))

        return ProviderResult.ok(data)


def _clean(value: Any) -> Optional[str]:
    """Alpha Vantage uses the literal string 'None' for missing fields."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text in ("None", "-"):
        return None
    return text
