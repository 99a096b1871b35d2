"""
Unit tests for the static conversion and asset class tables.

Tests cover:
- Loading the bundled tables
- Case-insensitive lookups
- Malformed rules
"""

import json
import logging
from decimal import Decimal

import pytest

from lookthrough.core.exceptions import ValidationError
from lookthrough.domain.models import AssetClass
from lookthrough.services import AssetClassTable, ConversionTable


class TestConversionTable:
    """Tests for ConversionTable."""

    def test_bundled_table_loads(self):
        """
        GIVEN the bundled conversion rules
        WHEN I load them
        THEN VFFVX maps to VTI/VXUS/BND/BNDX summing to 100
        """
        table = ConversionTable.load()

        rule = table.get("VFFVX")
        assert rule is not None
        assert [(t.symbol, t.weight_percent) for t in rule.targets] == [
            ("VTI", Decimal("54")),
            ("VXUS", Decimal("36")),
            ("BND", Decimal("7")),
            ("BNDX", Decimal("3")),
        ]
        assert all(r.total_weight_percent == Decimal("100") for r in table.rules())

    def test_lookup_is_case_insensitive(self, conversions):
        assert conversions.has_rule("vffvx")
        assert conversions.get(" mixed ").source_symbol == "MIXED"

    def test_unknown_symbol(self, conversions):
        assert conversions.get("QQQ") is None
        assert conversions.get(None) is None
        assert not conversions.has_rule("")

    def test_target_symbols(self, conversions):
        assert conversions.target_symbols() == {"VTI", "VXUS", "BND", "BNDX", "QQQ", "VOO"}

    def test_rules_sorted_by_source(self, conversions):
        assert [r.source_symbol for r in conversions.rules()] == ["MIXED", "VFFVX"]

    def test_missing_mappings_rejected(self):
        with pytest.raises(ValidationError):
            ConversionTable.from_dict({"BAD": {"name": "no mappings"}})

    def test_mapping_without_weight_rejected(self):
        with pytest.raises(ValidationError):
            ConversionTable.from_dict({"BAD": {"mappings": [{"symbol": "VTI"}]}})

    def test_weights_not_summing_to_100_warn(self, caplog):
        with caplog.at_level(logging.WARNING):
            table = ConversionTable.from_dict(
                {"ODD": {"mappings": [{"symbol": "VTI", "weightPercent": 90}]}}
            )

        assert table.has_rule("ODD")
        assert "ODD" in caplog.text

    def test_load_from_custom_path(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"abc": {"mappings": [{"symbol": "voo", "weightPercent": "100"}]}}))

        table = ConversionTable.load(path)

        assert table.get("ABC").targets[0].symbol == "VOO"

    def test_unreadable_file_rejected(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("not json")

        with pytest.raises(ValidationError):
            ConversionTable.load(path)


class TestAssetClassTable:
    """Tests for AssetClassTable."""

    def test_bundled_table(self, asset_classes):
        assert asset_classes.for_fund("VTI") == AssetClass.US_STOCKS
        assert asset_classes.for_fund("vxus") == AssetClass.INTERNATIONAL_STOCKS
        assert asset_classes.for_fund("BND") == AssetClass.BONDS
        assert asset_classes.for_fund("SGOV") == AssetClass.CASH
        assert asset_classes.for_security("TSM") == AssetClass.INTERNATIONAL_STOCKS

    def test_unknown_symbols(self, asset_classes):
        assert asset_classes.for_fund("ZZZZ") is None
        assert asset_classes.for_security(None) is None
        assert not asset_classes.is_known_fund("AAPL")

    def test_unknown_label_rejected(self):
        with pytest.raises(ValidationError):
            AssetClassTable.from_dict({"funds": {"XYZ": "Crypto"}})
