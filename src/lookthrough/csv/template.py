"""CSV template generation."""

import csv
import io
from pathlib import Path

from lookthrough.csv.importer import CSV_COLUMNS


class HoldingsCsvTemplateGenerator:
    """Generator for blank holdings CSV templates."""

    def render(self) -> str:
        """Template text: headers plus example rows."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
        writer.writeheader()

        example_rows = [
            {
                "id": "h-1",
                "account_id": "brokerage",
                "account_name": "Brokerage",
                "type": "stock",
                "ticker": "AAPL",
                "name": "Apple Inc",
                "quantity": "10",
                "last_price": "185.50",
                "market_value": "",
                "sector": "",
                "industry": "",
            },
            {
                "id": "h-2",
                "account_id": "brokerage",
                "account_name": "Brokerage",
                "type": "fund",
                "ticker": "QQQ",
                "name": "Invesco QQQ Trust",
                "quantity": "20",
                "last_price": "480.00",
                "market_value": "",
                "sector": "",
                "industry": "",
            },
            {
                "id": "h-3",
                "account_id": "401k",
                "account_name": "401(k)",
                "type": "fund",
                "ticker": "VFFVX",
                "name": "Vanguard Target Retirement 2055",
                "quantity": "",
                "last_price": "",
                "market_value": "10000.00",
                "sector": "",
                "industry": "",
            },
            {
                "id": "h-4",
                "account_id": "brokerage",
                "account_name": "Brokerage",
                "type": "cash",
                "ticker": "",
                "name": "Cash",
                "quantity": "",
                "last_price": "",
                "market_value": "2500.00",
                "sector": "",
                "industry": "",
            },
        ]

        for row in example_rows:
            writer.writerow(row)
        return buffer.getvalue()

    def generate_template(self, path: str) -> None:
        """
        Generate a holdings CSV template with headers and example rows.

        Args:
            path: Output file path for the template
        """
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", newline="", encoding="utf-8") as csvfile:
            csvfile.write(self.render())
