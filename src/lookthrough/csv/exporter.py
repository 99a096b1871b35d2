"""CSV export of exposure reports."""

import csv
import io
from pathlib import Path

from lookthrough.domain.views import ExposureReport

GROUP_COLUMNS = ["dimension", "group_key", "total_value", "share_percent"]
OVERLAP_COLUMNS = [
    "symbol",
    "name",
    "sector",
    "direct_value",
    "fund_value",
    "total_value",
    "share_percent",
    "sources",
]


class ExposureCsvExporter:
    """
    CSV exporter for exposure reports.

    Grouped views and per-stock overlap go to separate files (or strings,
    for HTTP downloads).
    """

    def groups_to_csv(self, report: ExposureReport) -> str:
        """Every grouped view of the report, one row per group."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=GROUP_COLUMNS)
        writer.writeheader()
        for dimension, groups in report.groups.items():
            for group in groups:
                writer.writerow({
                    "dimension": dimension,
                    "group_key": group.group_key,
                    "total_value": str(group.total_value),
                    "share_percent": str(group.share_percent),
                })
        return buffer.getvalue()

    def overlaps_to_csv(self, report: ExposureReport) -> str:
        """
        Per-stock overlap rows.

        sources is a ``;``-separated list of ``via@account=value`` where via
        is ``direct`` for stocks held outright.
        """
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=OVERLAP_COLUMNS)
        writer.writeheader()
        for overlap in report.overlaps:
            writer.writerow({
                "symbol": overlap.symbol,
                "name": overlap.name or "",
                "sector": overlap.sector or "",
                "direct_value": str(overlap.direct_value),
                "fund_value": str(overlap.fund_value),
                "total_value": str(overlap.total_value),
                "share_percent": str(overlap.share_percent),
                "sources": "; ".join(
                    f"{s.via or 'direct'}@{s.account_id}={s.value}" for s in overlap.sources
                ),
            })
        return buffer.getvalue()

    def export_groups(self, report: ExposureReport, path: str) -> None:
        """Write the grouped views to a CSV file."""
        self._write(path, self.groups_to_csv(report))

    def export_overlaps(self, report: ExposureReport, path: str) -> None:
        """Write the per-stock overlap to a CSV file."""
        self._write(path, self.overlaps_to_csv(report))

    @staticmethod
    def _write(path: str, text: str) -> None:
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", newline="", encoding="utf-8") as csvfile:
            csvfile.write(text)
