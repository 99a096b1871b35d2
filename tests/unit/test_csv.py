"""
Unit tests for CSV import, export and template generation.

Tests cover:
- Holdings import with derived market values
- Row-level error reporting
- Manual-entry classification columns
- Exposure report export
- Template round trip through the importer
"""

import csv
import io
from decimal import Decimal

import pytest

from lookthrough.core.exceptions import ValidationError
from lookthrough.csv import ExposureCsvExporter, HoldingsCsvReader, HoldingsCsvTemplateGenerator
from lookthrough.domain.models import HoldingType

from tests.conftest import cash_holding, fund_holding, stock_holding


HEADER = "id,account_id,account_name,type,ticker,name,quantity,last_price,market_value,sector,industry\n"


@pytest.fixture
def reader() -> HoldingsCsvReader:
    return HoldingsCsvReader()


# =============================================================================
# IMPORT TESTS
# =============================================================================


class TestHoldingsImport:
    """Tests for HoldingsCsvReader."""

    def test_reads_stock_fund_and_cash(self, reader):
        """
        GIVEN a CSV with a stock, a fund and a cash row
        WHEN I import it
        THEN three holdings are returned with market values
        """
        text = HEADER + (
            "h1,brokerage,Brokerage,stock,aapl,Apple,10,185.50,,,\n"
            "h2,brokerage,Brokerage,FUND,QQQ,Invesco QQQ,,,\"$1,200.00\",,\n"
            "h3,brokerage,Brokerage,cash,,Cash,,,2500,,\n"
        )

        holdings, summary = reader.read_text(text)

        assert summary.imported_count == 3
        assert summary.error_count == 0
        stock, fund, cash = holdings
        assert stock.ticker == "AAPL"
        assert stock.market_value == Decimal("1855.00")
        assert fund.type == HoldingType.FUND
        assert fund.market_value == Decimal("1200.00")
        assert cash.is_cash
        assert cash.ticker is None
        assert cash.market_value == Decimal("2500")

    def test_bad_rows_are_reported(self, reader):
        """
        GIVEN rows with an unknown type, a missing ticker and a negative value
        WHEN I import
        THEN each bad row is reported with its row number and good rows survive
        """
        text = HEADER + (
            "h1,brokerage,,bond,XYZ,,,,100,,\n"
            "h2,brokerage,,stock,,,,,100,,\n"
            "h3,brokerage,,stock,MSFT,,,,-5,,\n"
            "h4,brokerage,,stock,NVDA,,,,abc,,\n"
            "h5,,,stock,AMZN,,,,100,,\n"
            "h6,brokerage,,stock,AAPL,,,,100,,\n"
        )

        holdings, summary = reader.read_text(text)

        assert [h.id for h in holdings] == ["h6"]
        assert summary.error_count == 5
        assert summary.errors[0].startswith("Row 2:")
        assert "bond" in summary.errors[0]
        assert summary.errors[4].startswith("Row 6:")

    def test_sector_column_marks_manual_entry(self, reader):
        text = HEADER + "h1,brokerage,,stock,PRIV,Private Co,,,500,Energy,Oil & Gas\n"

        holdings, _ = reader.read_text(text)

        assert holdings[0].is_manual_entry
        assert holdings[0].sector == "Energy"
        assert holdings[0].industry == "Oil & Gas"

    def test_missing_required_columns(self, reader):
        with pytest.raises(ValidationError):
            reader.read_text("ticker,market_value\nAAPL,100\n")

    def test_generated_ids_when_blank(self, reader):
        holdings, _ = reader.read_text("account_id,type,ticker,market_value\nira,stock,AAPL,100\n")

        assert holdings[0].id

    def test_byte_order_mark_is_ignored(self, reader):
        holdings, summary = reader.read_text("\ufeff" + HEADER + "h1,ira,,stock,AAPL,,,,100,,\n")

        assert summary.imported_count == 1
        assert holdings[0].account_id == "ira"

    def test_read_csv_file(self, reader, tmp_path):
        path = tmp_path / "holdings.csv"
        path.write_text(HEADER + "h1,ira,,fund,VOO,,,,1000,,\n", encoding="utf-8")

        holdings, summary = reader.read_csv(str(path))

        assert summary.imported_count == 1
        assert holdings[0].ticker == "VOO"

    def test_read_csv_missing_file(self, reader, tmp_path):
        with pytest.raises(ValidationError):
            reader.read_csv(str(tmp_path / "missing.csv"))


# =============================================================================
# EXPORT TESTS
# =============================================================================


class TestExposureExport:
    """Tests for ExposureCsvExporter."""

    @pytest.fixture
    def report(self, exposure_service):
        return exposure_service.analyze([
            stock_holding("AAPL", "1000", account_id="brokerage"),
            fund_holding("QQQ", "1000", account_id="ira"),
            cash_holding("500", account_id="brokerage"),
        ])

    def test_groups_csv(self, report):
        rows = list(csv.DictReader(io.StringIO(ExposureCsvExporter().groups_to_csv(report))))

        sector_rows = {r["group_key"]: r for r in rows if r["dimension"] == "sector"}
        assert sector_rows["Cash"]["total_value"] == "500"
        assert {r["dimension"] for r in rows} == {"stock_symbol", "sector", "asset_class", "account_id"}

    def test_overlaps_csv_lists_sources(self, report):
        rows = list(csv.DictReader(io.StringIO(ExposureCsvExporter().overlaps_to_csv(report))))

        aapl = next(r for r in rows if r["symbol"] == "AAPL")
        assert aapl["direct_value"] == "1000"
        assert aapl["fund_value"] == "400"
        assert aapl["sources"] == "direct@brokerage=1000; QQQ@ira=400"

    def test_export_to_files(self, report, tmp_path):
        exporter = ExposureCsvExporter()
        groups_path = tmp_path / "out" / "groups.csv"
        overlaps_path = tmp_path / "out" / "overlaps.csv"

        exporter.export_groups(report, str(groups_path))
        exporter.export_overlaps(report, str(overlaps_path))

        assert groups_path.read_text(encoding="utf-8").startswith("dimension,group_key")
        assert overlaps_path.read_text(encoding="utf-8").startswith("symbol,name")


# =============================================================================
# TEMPLATE TESTS
# =============================================================================


class TestTemplate:
    def test_template_imports_cleanly(self, reader):
        """
        GIVEN the generated template
        WHEN I import it
        THEN every example row is a valid holding
        """
        holdings, summary = reader.read_text(HoldingsCsvTemplateGenerator().render())

        assert summary.error_count == 0
        assert [h.ticker for h in holdings] == ["AAPL", "QQQ", "VFFVX", None]
        assert holdings[2].market_value == Decimal("10000.00")

    def test_generate_template_file(self, tmp_path):
        path = tmp_path / "template.csv"

        HoldingsCsvTemplateGenerator().generate_template(str(path))

        assert path.read_text(encoding="utf-8").splitlines()[0] == HEADER.strip()
