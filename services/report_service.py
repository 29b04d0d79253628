"""
Report service: upload template and error report downloads.

The template lists every canonical column with one static and one digital
example row. The error report lists every issue from a preview or commit so
the owner can fix the spreadsheet and upload again.
"""

from io import BytesIO
from typing import Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
import structlog

from models.bulk_upload import CanonicalFieldSpec, UploadIssue
from services.column_mapping_service import CANONICAL_FIELDS

logger = structlog.get_logger(__name__)

ERROR_REPORT_COLUMNS = ["Row", "Identifier", "Field", "Value", "Error"]

# BOM-prefixed for Excel
CSV_ENCODING = "utf-8-sig"


def template_rows(fields: Optional[list[CanonicalFieldSpec]] = None) -> list[list[str]]:
    """Header row followed by the static and digital examples."""
    fields = fields or CANONICAL_FIELDS
    return [
        [f.label for f in fields],
        [f.example_static for f in fields],
        [f.example_digital for f in fields],
    ]


def error_report_rows(
    issues: list[UploadIssue],
    labels: Optional[dict[str, str]] = None,
) -> list[list]:
    """Issue rows sorted by spreadsheet row, field labels where known."""
    labels = labels or {}
    ordered = sorted(issues, key=lambda i: (i.row, i.identifier or "", i.field))
    return [
        [
            issue.row,
            issue.identifier or "",
            labels.get(issue.field, issue.field),
            issue.value or "",
            issue.message,
        ]
        for issue in ordered
    ]


class ReportService:
    """Generates the downloadable upload files."""

    def generate_template_csv(self) -> BytesIO:
        rows = template_rows()
        df = pd.DataFrame(rows[1:], columns=rows[0])
        logger.info("upload_template_generated", format="csv", columns=len(rows[0]))
        return self._csv_bytes(df)

    def generate_template_excel(self) -> BytesIO:
        """
        Template workbook.

        Required columns are highlighted so owners see what cannot be left
        out; a second sheet explains each column.
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Inventario"

        header_font = Font(bold=True, color="FFFFFF")
        required_fill = PatternFill(start_color="C0504D", end_color="C0504D", fill_type="solid")
        optional_fill = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")

        for row in template_rows():
            ws.append(row)

        for col, field_spec in enumerate(CANONICAL_FIELDS, start=1):
            cell = ws.cell(row=1, column=col)
            cell.font = header_font
            cell.fill = required_fill if field_spec.required else optional_fill
            cell.alignment = Alignment(horizontal="center")
            ws.column_dimensions[cell.column_letter].width = max(14, len(field_spec.label) + 4)

        ws.freeze_panes = "A2"

        # Column guide
        guide = wb.create_sheet("Instrucciones")
        guide.append(["Columna", "Obligatoria", "Ejemplo estático", "Ejemplo digital"])
        for cell in guide[1]:
            cell.font = Font(bold=True)
        for field_spec in CANONICAL_FIELDS:
            guide.append([
                field_spec.label,
                "Sí" if field_spec.required else "No",
                field_spec.example_static,
                field_spec.example_digital,
            ])
        guide.column_dimensions["A"].width = 22
        guide.column_dimensions["B"].width = 12
        guide.column_dimensions["C"].width = 40
        guide.column_dimensions["D"].width = 40

        logger.info("upload_template_generated", format="xlsx", columns=len(CANONICAL_FIELDS))
        return self._workbook_bytes(wb)

    def generate_error_report_csv(
        self,
        issues: list[UploadIssue],
        labels: Optional[dict[str, str]] = None,
    ) -> BytesIO:
        df = pd.DataFrame(error_report_rows(issues, labels), columns=ERROR_REPORT_COLUMNS)
        logger.info("error_report_generated", format="csv", issues=len(issues))
        return self._csv_bytes(df)

    def generate_error_report_excel(
        self,
        issues: list[UploadIssue],
        labels: Optional[dict[str, str]] = None,
    ) -> BytesIO:
        """
        Error report workbook, one issue per row.

        Args:
            issues: Issues from a preview or commit
            labels: Field key -> column label, so owners see their template names

        Returns:
            BytesIO containing the Excel file
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Errores"

        bold_font = Font(bold=True)
        header_fill = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
        thin_border = Border(bottom=Side(style="thin", color="000000"))

        ws.append(ERROR_REPORT_COLUMNS)
        for cell in ws[1]:
            cell.font = bold_font
            cell.fill = header_fill
            cell.border = thin_border

        for row in error_report_rows(issues, labels):
            ws.append(row)

        ws.column_dimensions["A"].width = 8
        ws.column_dimensions["B"].width = 16
        ws.column_dimensions["C"].width = 20
        ws.column_dimensions["D"].width = 30
        ws.column_dimensions["E"].width = 50
        ws.freeze_panes = "A2"

        logger.info("error_report_generated", format="xlsx", issues=len(issues))
        return self._workbook_bytes(wb)

    @staticmethod
    def _csv_bytes(df: pd.DataFrame) -> BytesIO:
        output = BytesIO()
        output.write(df.to_csv(index=False).encode(CSV_ENCODING))
        output.seek(0)
        return output

    @staticmethod
    def _workbook_bytes(wb: Workbook) -> BytesIO:
        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output


# Singleton instance
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get or create ReportService instance."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service
