"""
Tests for the Excel validation report export.
"""
import asyncio

import pytest
from openpyxl import load_workbook

from soil_validation.services.soil_data_types import ValidationOptions
from soil_validation.services.soil_validation_excel_service import soil_validation_excel_service


@pytest.fixture
def critical_report(service, nutrients_with, healthy_micronutrients):
    return asyncio.run(service.get_validation_report(
        nutrients_with(nitrogen=-50, phosphorus=-10), healthy_micronutrients
    ))


def _load(buffer):
    return load_workbook(buffer)


class TestValidationExcel:

    def test_sheets(self, critical_report):
        wb = _load(soil_validation_excel_service.generate_validation_excel(critical_report, sample_name="Plot 7"))
        assert wb.sheetnames == ["Summary", "Issues", "Anomalies", "Statistics"]

    def test_summary_contents(self, critical_report):
        wb = _load(soil_validation_excel_service.generate_validation_excel(critical_report, sample_name="Plot 7"))
        ws = wb["Summary"]
        values = [cell.value for row in ws.iter_rows() for cell in row if cell.value is not None]

        assert "SOIL DATA VALIDATION REPORT" in values
        assert "Plot 7" in values
        assert "CRITICAL" in values

    def test_summary_labels_shaded(self, critical_report):
        wb = _load(soil_validation_excel_service.generate_validation_excel(critical_report))
        ws = wb["Summary"]

        label = next(cell for cell in ws["A"] if cell.value == "Overall status:")
        assert label.fill.fill_type == "solid"
        assert label.fill.start_color.rgb.endswith("F3E5D0")

    def test_issue_and_anomaly_rows(self, critical_report):
        result = critical_report.validation_result
        wb = _load(soil_validation_excel_service.generate_validation_excel(critical_report))

        issues_ws = wb["Issues"]
        assert issues_ws.max_row == 1 + len(result.issues)
        assert issues_ws.cell(row=1, column=1).value == "Parameter"
        assert issues_ws.cell(row=2, column=1).value == result.issues[0].parameter
        assert issues_ws.cell(row=2, column=3).value == "critical"

        assert wb["Anomalies"].max_row == 1 + len(result.anomalies)

    def test_statistics_sheet(self, critical_report):
        wb = _load(soil_validation_excel_service.generate_validation_excel(critical_report))
        ws = wb["Statistics"]

        assert ws.cell(row=1, column=1).value == "Consistency score:"
        assert ws.cell(row=4, column=1).value == "Parameter"
        assert ws.cell(row=5, column=1).value == "Nitrogen"

    def test_statistics_not_run(self, service, healthy_nutrients, healthy_micronutrients):
        report = asyncio.run(service.get_validation_report(
            healthy_nutrients, healthy_micronutrients, ValidationOptions(enable_statistical_analysis=False)
        ))
        wb = _load(soil_validation_excel_service.generate_validation_excel(report))

        assert "not run" in wb["Statistics"].cell(row=1, column=1).value

    def test_empty_issue_sheet_has_header_only(self, service, healthy_nutrients, healthy_micronutrients):
        report = asyncio.run(service.get_validation_report(
            healthy_nutrients, healthy_micronutrients, ValidationOptions(enable_statistical_analysis=False)
        ))
        wb = _load(soil_validation_excel_service.generate_validation_excel(report))
        assert wb["Issues"].max_row == 1
