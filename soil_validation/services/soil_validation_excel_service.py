"""
Soil Validation Excel Export Service.
Generates Excel workbooks for soil data validation reports.
"""
from io import BytesIO
from datetime import datetime
from typing import Any, Optional
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from openpyxl.chart import BarChart, Reference

from soil_validation.services.soil_data_types import (
    IssueSeverity,
    OverallStatus,
    ValidationReport,
)

SOIL_BROWN = "8B5A2B"
SOIL_DARK = "5C3A1A"
HEADER_BG = "F3E5D0"

STATUS_COLORS = {
    OverallStatus.VALID: "C6EFCE",
    OverallStatus.WARNING: "FFEB9C",
    OverallStatus.ERROR: "F8CBAD",
    OverallStatus.CRITICAL: "FFC7CE",
}


class SoilValidationExcelService:
    """Service for generating soil validation Excel reports."""

    def __init__(self):
        self.header_fill = PatternFill(start_color=SOIL_DARK, end_color=SOIL_DARK, fill_type="solid")
        self.header_font = Font(bold=True, color="FFFFFF", size=11)
        self.title_font = Font(bold=True, size=16, color=SOIL_DARK)
        self.subtitle_font = Font(bold=True, size=12, color=SOIL_BROWN)
        self.light_fill = PatternFill(start_color=HEADER_BG, end_color=HEADER_BG, fill_type="solid")
        self.border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def _apply_header_style(self, ws, row_num: int, max_col: int):
        """Apply header styling to a row."""
        for col in range(1, max_col + 1):
            cell = ws.cell(row=row_num, column=col)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = self.border

    def _write_table(self, ws, headers, rows, start_row: int = 1) -> int:
        """Write a header row plus data rows; returns the next free row."""
        for col, header in enumerate(headers, 1):
            ws.cell(row=start_row, column=col, value=header)
        self._apply_header_style(ws, start_row, len(headers))

        row = start_row + 1
        for values in rows:
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = self.border
                cell.alignment = Alignment(vertical='top', wrap_text=True)
            row += 1
        return row

    def _auto_adjust_columns(self, ws):
        """Auto-adjust column widths."""
        for column in ws.columns:
            max_length = 0
            column_letter = get_column_letter(column[0].column)
            for cell in column:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))
            ws.column_dimensions[column_letter].width = min(max(max_length + 2, 12), 60)

    def generate_validation_excel(
        self,
        report: ValidationReport,
        sample_name: Optional[str] = None
    ) -> BytesIO:
        """
        Generate an Excel workbook for a validation report.

        Args:
            report: Validation report (result + summary)
            sample_name: Optional label for the soil sample

        Returns:
            BytesIO with Excel file content
        """
        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        self._create_summary_sheet(wb, report, sample_name)
        self._create_issues_sheet(wb, report)
        self._create_anomalies_sheet(wb, report)
        self._create_statistics_sheet(wb, report)

        buffer = BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer

    def _create_summary_sheet(self, wb, report: ValidationReport, sample_name: Optional[str]) -> Any:
        ws = wb.create_sheet("Summary")
        summary = report.summary
        result = report.validation_result
        row = 1

        ws.cell(row=row, column=1, value="SOIL DATA VALIDATION REPORT").font = self.title_font
        ws.merge_cells(f'A{row}:D{row}')
        row += 1

        ws.cell(row=row, column=1, value=f"Generated: {datetime.now().strftime('%d/%m/%Y %H:%M')}").font = Font(italic=True)
        row += 2

        info_data = [
            ("Sample:", sample_name or "Unnamed sample"),
            ("Overall status:", summary.overall_status.value),
            ("Valid:", "Yes" if result.valid else "No"),
            ("Confidence:", round(summary.confidence, 3)),
            ("Issues:", summary.issue_count),
            ("Critical issues:", summary.critical_issues),
            ("Anomalies:", summary.anomaly_count),
        ]
        for label, value in info_data:
            label_cell = ws.cell(row=row, column=1, value=label)
            label_cell.font = Font(bold=True)
            label_cell.fill = self.light_fill
            value_cell = ws.cell(row=row, column=2, value=value)
            if label == "Overall status:":
                color = STATUS_COLORS[summary.overall_status]
                value_cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
            row += 1
        row += 1

        ws.cell(row=row, column=1, value="RECOMMENDATIONS").font = self.subtitle_font
        row += 1
        for recommendation in report.recommendations:
            ws.cell(row=row, column=1, value=f"• {recommendation}")
            ws.merge_cells(f'A{row}:D{row}')
            row += 1
        row += 1

        ws.cell(row=row, column=1, value="ISSUES BY SEVERITY").font = self.subtitle_font
        row += 1
        severity_start = row
        severity_rows = [
            (severity.value, sum(1 for i in result.issues if i.severity == severity))
            for severity in IssueSeverity
        ]
        row = self._write_table(ws, ["Severity", "Count"], severity_rows, start_row=severity_start)

        if result.issues:
            chart = BarChart()
            chart.type = "col"
            chart.style = 10
            chart.title = "Issues by severity"
            chart.y_axis.title = "Count"
            data = Reference(ws, min_col=2, max_col=2, min_row=severity_start, max_row=row - 1)
            cats = Reference(ws, min_col=1, min_row=severity_start + 1, max_row=row - 1)
            chart.add_data(data, titles_from_data=True)
            chart.set_categories(cats)
            chart.width = 14
            chart.height = 8
            ws.add_chart(chart, f"D{severity_start}")

        self._auto_adjust_columns(ws)
        return ws

    def _create_issues_sheet(self, wb, report: ValidationReport) -> Any:
        ws = wb.create_sheet("Issues")
        headers = ["Parameter", "Issue", "Severity", "Suggestion", "Confidence", "Possible causes"]
        rows = [
            (
                issue.parameter,
                issue.issue,
                issue.severity.value,
                issue.suggestion,
                round(issue.confidence, 3),
                ", ".join(issue.possible_causes),
            )
            for issue in report.validation_result.issues
        ]
        self._write_table(ws, headers, rows)
        self._auto_adjust_columns(ws)
        return ws

    def _create_anomalies_sheet(self, wb, report: ValidationReport) -> Any:
        ws = wb.create_sheet("Anomalies")
        headers = ["Parameter", "Issue", "Severity", "Description", "Possible causes", "Recommended action"]
        rows = [
            (
                anomaly.parameter,
                anomaly.issue,
                anomaly.severity.value,
                anomaly.description,
                ", ".join(anomaly.possible_causes),
                anomaly.recommended_action,
            )
            for anomaly in report.validation_result.anomalies
        ]
        self._write_table(ws, headers, rows)
        self._auto_adjust_columns(ws)
        return ws

    def _create_statistics_sheet(self, wb, report: ValidationReport) -> Any:
        ws = wb.create_sheet("Statistics")
        analysis = report.validation_result.statistical_analysis

        if analysis is None:
            ws.cell(row=1, column=1, value="Statistical analysis was not run for this sample").font = Font(italic=True)
            return ws

        ws.cell(row=1, column=1, value="Consistency score:").font = Font(bold=True)
        ws.cell(row=1, column=2, value=round(analysis.consistency_score, 3))

        ws.cell(row=3, column=1, value="OUTLIERS").font = self.subtitle_font
        outlier_rows = [
            (
                outlier.parameter,
                outlier.value,
                f"{outlier.expected_range.min}-{outlier.expected_range.max}",
                round(outlier.deviation_score, 2),
            )
            for outlier in analysis.outliers
        ]
        row = self._write_table(
            ws, ["Parameter", "Value", "Typical range", "Z-score"], outlier_rows, start_row=4
        )
        row += 1

        ws.cell(row=row, column=1, value="CORRELATION ISSUES").font = self.subtitle_font
        correlation_rows = [
            (" / ".join(c.parameters), c.issue, c.expected_correlation)
            for c in analysis.correlation_issues
        ]
        self._write_table(
            ws, ["Parameters", "Issue", "Expected correlation"], correlation_rows, start_row=row + 1
        )

        self._auto_adjust_columns(ws)
        return ws


soil_validation_excel_service = SoilValidationExcelService()
