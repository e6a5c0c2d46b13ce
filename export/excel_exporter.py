"""
Excel export functionality for processed payloads.
Uses openpyxl for rich Excel formatting.
"""
import io

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment

from clustering.models import ProcessedPayload, whole
from clustering.payload import is_pillar_page
from config.columns import EXPORT_COLUMNS
from export.csv_exporter import project_info_rows


class ExcelExporter:
    """Exports processed payloads to Excel with formatting."""

    # Style definitions
    HEADER_FILL = PatternFill(
        start_color="4472C4",
        end_color="4472C4",
        fill_type="solid"
    )
    HEADER_FONT = Font(bold=True, color="FFFFFF")

    PILLAR_FILL = PatternFill(
        start_color="FFF2CC",
        end_color="FFF2CC",
        fill_type="solid"
    )

    COLUMN_WIDTHS = [30, 14, 60, 14, 16, 18, 30, 25, 14, 30]

    def __init__(self):
        """Initialize exporter."""
        self.wb = None

    def export(self, payload: ProcessedPayload) -> bytes:
        """
        Export a payload with Summary and Clusters sheets.

        Args:
            payload: Payload to export

        Returns:
            Excel file as bytes
        """
        self.wb = Workbook()

        # Remove default sheet
        self.wb.remove(self.wb.active)

        self._create_summary_sheet(payload)
        self._create_clusters_sheet(payload)

        output = io.BytesIO()
        self.wb.save(output)
        output.seek(0)

        return output.getvalue()

    def _create_summary_sheet(self, payload: ProcessedPayload):
        """Create summary sheet with project information."""
        ws = self.wb.create_sheet("Summary")

        ws["A1"] = "Keyword Cluster Report"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        row = 3
        for label, value in project_info_rows(payload):
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"B{row}"] = value
            row += 1

        ws.column_dimensions["A"].width = 25
        ws.column_dimensions["B"].width = 40

    def _create_clusters_sheet(self, payload: ProcessedPayload):
        """Create clusters sheet; pillar pages are highlighted."""
        ws = self.wb.create_sheet("Clusters")

        for col, header in enumerate(EXPORT_COLUMNS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = self.HEADER_FILL
            cell.font = self.HEADER_FONT
            cell.alignment = Alignment(horizontal="center")

        for row_idx, cluster in enumerate(payload.clusters, 2):
            values = [
                cluster.cluster_name,
                cluster.keyword_count,
                cluster.supporting_keywords,
                whole(cluster.total_volume),
                whole(cluster.avg_difficulty),
                cluster.difficulty_range,
                cluster.topics,
                cluster.intent,
                whole(cluster.avg_cpc),
                cluster.seed_keywords,
            ]
            pillar = is_pillar_page(cluster.page_type)

            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col, value=value)
                if pillar:
                    cell.fill = self.PILLAR_FILL

        for col, width in enumerate(self.COLUMN_WIDTHS, 1):
            ws.column_dimensions[
                ws.cell(row=1, column=col).column_letter
            ].width = width

        # Freeze header row
        ws.freeze_panes = "A2"
