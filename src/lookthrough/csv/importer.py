"""CSV import of holdings."""

import csv
import io
import uuid
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, TextIO

from lookthrough.core.exceptions import ValidationError
from lookthrough.domain.models import Holding, HoldingType
from lookthrough.domain.views import ImportSummary


# Expected CSV columns
CSV_COLUMNS = [
    "id",
    "account_id",
    "account_name",
    "type",
    "ticker",
    "name",
    "quantity",
    "last_price",
    "market_value",
    "sector",
    "industry",
]
REQUIRED_COLUMNS = {"account_id", "type"}


class HoldingsCsvReader:
    """
    CSV reader for holdings snapshots.

    Expected format: id, account_id, account_name, type, ticker, name,
    quantity, last_price, market_value, sector, industry.
    Only account_id and type are required; market_value is derived from
    quantity x last_price when blank. Rows with a sector are treated as
    manual entries whose classification overrides provider data.
    """

    def read_csv(self, path: str) -> tuple[list[Holding], ImportSummary]:
        """Read holdings from a CSV file. Bad rows are reported, not raised."""
        file_path = Path(path)
        if not file_path.exists():
            raise ValidationError(f"File not found: {path}")

        with open(file_path, newline="", encoding="utf-8-sig") as csvfile:
            return self._read(csvfile)

    def read_text(self, text: str) -> tuple[list[Holding], ImportSummary]:
        """Read holdings from CSV text (e.g. an uploaded file body)."""
        return self._read(io.StringIO(text.lstrip("\ufeff")))

    def _read(self, stream: TextIO) -> tuple[list[Holding], ImportSummary]:
        reader = csv.DictReader(stream)
        if reader.fieldnames:
            missing = REQUIRED_COLUMNS - {f.strip() for f in reader.fieldnames}
            if missing:
                raise ValidationError(f"Missing required columns: {sorted(missing)}")

        holdings: list[Holding] = []
        summary = ImportSummary()
        for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
            try:
                holdings.append(self._parse_row({k.strip(): v for k, v in row.items() if k}))
                summary.imported_count += 1
            except (ValidationError, ValueError) as e:
                summary.error_count += 1
                summary.errors.append(f"Row {row_num}: {e}")
        return holdings, summary

    def _parse_row(self, row: dict[str, Optional[str]]) -> Holding:
        """Parse a single row into a Holding."""

        def text(column: str) -> Optional[str]:
            value = (row.get(column) or "").strip()
            return value or None

        type_str = (text("type") or "").lower()
        try:
            holding_type = HoldingType(type_str)
        except ValueError:
            raise ValidationError(f"Invalid holding type: {type_str or '(blank)'}")

        ticker = text("ticker")
        if holding_type != HoldingType.CASH and not ticker:
            raise ValidationError(f"Missing ticker for {holding_type.value} holding")

        holding = Holding(
            id=text("id") or str(uuid.uuid4()),
            account_id=text("account_id"),
            type=holding_type,
            name=text("name") or "",
            ticker=ticker if holding_type != HoldingType.CASH else None,
            quantity=self._parse_decimal(row.get("quantity")) or Decimal("0"),
            last_price=self._parse_decimal(row.get("last_price")) or Decimal("0"),
            market_value=self._parse_decimal(row.get("market_value")),
            account_name=text("account_name"),
            sector=text("sector"),
            industry=text("industry"),
            is_manual_entry=text("sector") is not None,
        )
        holding.validate()
        return holding

    @staticmethod
    def _parse_decimal(value: Optional[str]) -> Optional[Decimal]:
        """Parse a decimal value, tolerating $ and thousands separators; None for blanks."""
        value = (value or "").strip().replace("$", "").replace(",", "")
        if not value:
            return None
        try:
            return Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"Invalid decimal value: {value}")
