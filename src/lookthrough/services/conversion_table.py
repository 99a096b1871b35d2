"""Static lookup tables: fund conversion rules and asset classes.

Both are loaded once at startup from JSON and never mutated afterwards.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from lookthrough.core.exceptions import ValidationError
from lookthrough.domain.models import AssetClass, ConversionRule, ConversionTarget

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_CONVERSION_RULES_PATH = DATA_DIR / "conversion_rules.json"
DEFAULT_ASSET_CLASSES_PATH = DATA_DIR / "asset_classes.json"

_HUNDRED = Decimal("100")


def _load_json(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ValidationError(f"Cannot load table {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Table {path} must contain a JSON object")
    return data


class ConversionTable:
    """Maps instruments the provider cannot decompose to weighted ETF baskets."""

    def __init__(self, rules: dict[str, ConversionRule]):
        self._rules = {symbol.upper(): rule for symbol, rule in rules.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversionTable":
        """Build from ``{SOURCE: {name, description, mappings: [{symbol, weightPercent, notes}]}}``."""
        rules: dict[str, ConversionRule] = {}
        for source, body in data.items():
            source_symbol = source.strip().upper()
            try:
                targets = tuple(
                    ConversionTarget(
                        symbol=str(m["symbol"]).strip().upper(),
                        weight_percent=Decimal(str(m["weightPercent"])),
                        notes=m.get("notes"),
                    )
                    for m in body.get("mappings") or []
                )
            except (KeyError, TypeError, InvalidOperation) as e:
                raise ValidationError(f"Malformed conversion rule for {source_symbol}: {e}") from e
            if not targets:
                raise ValidationError(f"Conversion rule for {source_symbol} has no mappings")

            rule = ConversionRule(
                source_symbol=source_symbol,
                targets=targets,
                name=body.get("name"),
                description=body.get("description"),
            )
            if rule.total_weight_percent != _HUNDRED:
                logger.warning(
                    "Conversion rule %s weights sum to %s%%, not 100%%",
                    source_symbol,
                    rule.total_weight_percent,
                )
            rules[source_symbol] = rule
        return cls(rules)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ConversionTable":
        path = Path(path) if path else DEFAULT_CONVERSION_RULES_PATH
        table = cls.from_dict(_load_json(path))
        logger.info("Loaded %d conversion rules from %s", len(table), path)
        return table

    def get(self, symbol: Optional[str]) -> Optional[ConversionRule]:
        if not symbol:
            return None
        return self._rules.get(symbol.strip().upper())

    def has_rule(self, symbol: Optional[str]) -> bool:
        return self.get(symbol) is not None

    def target_symbols(self) -> set[str]:
        return {t.symbol for rule in self._rules.values() for t in rule.targets}

    def rules(self) -> list[ConversionRule]:
        return [self._rules[s] for s in sorted(self._rules)]

    def __len__(self) -> int:
        return len(self._rules)


class AssetClassTable:
    """Static asset-class assignments for funds and individual securities."""

    def __init__(
        self,
        funds: Optional[dict[str, AssetClass]] = None,
        securities: Optional[dict[str, AssetClass]] = None,
    ):
        self._funds = {k.upper(): v for k, v in (funds or {}).items()}
        self._securities = {k.upper(): v for k, v in (securities or {}).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssetClassTable":
        def parse(section: str) -> dict[str, AssetClass]:
            parsed = {}
            for symbol, label in (data.get(section) or {}).items():
                try:
                    parsed[symbol.strip().upper()] = AssetClass(label)
                except ValueError as e:
                    raise ValidationError(f"Unknown asset class {label!r} for {symbol}") from e
            return parsed

        return cls(funds=parse("funds"), securities=parse("securities"))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AssetClassTable":
        path = Path(path) if path else DEFAULT_ASSET_CLASSES_PATH
        return cls.from_dict(_load_json(path))

    def for_fund(self, symbol: Optional[str]) -> Optional[AssetClass]:
        return self._funds.get(symbol.upper()) if symbol else None

    def for_security(self, symbol: Optional[str]) -> Optional[AssetClass]:
        return self._securities.get(symbol.upper()) if symbol else None

    def is_known_fund(self, symbol: Optional[str]) -> bool:
        return self.for_fund(symbol) is not None
