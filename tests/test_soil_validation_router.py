"""
HTTP tests for the soil validation router.
"""
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from soil_validation.main import app
from soil_validation.services.soil_data_validation_service import (
    SoilValidationInputError,
    soil_data_validation_service,
)
from soil_validation.services.soil_validation_rules import REC_PASSED


HEALTHY_PAYLOAD = {
    "sample_name": "North field",
    "nutrients": {
        "pH": {"value": 6.8},
        "nitrogen": {"value": 245},
        "phosphorus": {"value": 18},
        "potassium": {"value": 156},
        "organicCarbon": {"value": 0.65},
        "electricalConductivity": {"value": 0.45},
    },
    "micronutrients": {
        "zinc": {"value": 1.2},
        "iron": {"value": 15},
        "manganese": {"value": 8},
        "copper": {"value": 1.0},
        "boron": {"value": 0.6},
        "sulfur": {"value": 12},
    },
}


def _payload(**nutrient_overrides):
    payload = {
        "sample_name": HEALTHY_PAYLOAD["sample_name"],
        "nutrients": dict(HEALTHY_PAYLOAD["nutrients"]),
        "micronutrients": dict(HEALTHY_PAYLOAD["micronutrients"]),
    }
    for key, value in nutrient_overrides.items():
        payload["nutrients"][key] = {"value": value}
    return payload


@pytest.fixture
def client():
    return TestClient(app)


class TestValidateEndpoint:

    def test_healthy_sample(self, client):
        response = client.post("/api/soil-validation/validate", json=HEALTHY_PAYLOAD)

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["confidence"] > 0.7
        assert data["recommendations"] == [REC_PASSED]
        assert data["statistical_analysis"]["outliers"] == []

    def test_snake_case_field_names_accepted(self, client):
        payload = _payload()
        payload["nutrients"]["ph"] = payload["nutrients"].pop("pH")
        payload["nutrients"]["organic_carbon"] = payload["nutrients"].pop("organicCarbon")

        response = client.post("/api/soil-validation/validate", json=payload)

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_negative_values(self, client):
        response = client.post("/api/soil-validation/validate", json=_payload(nitrogen=-50, phosphorus=-10))

        data = response.json()
        assert data["valid"] is False
        critical = [i for i in data["issues"] if i["severity"] == "critical"]
        assert {i["parameter"] for i in critical} == {"Nitrogen", "Phosphorus"}

    def test_camel_case_options(self, client):
        payload = _payload(nitrogen=1200)
        payload["options"] = {"strictMode": True, "enableStatisticalAnalysis": False}

        data = client.post("/api/soil-validation/validate", json=payload).json()

        nitrogen = next(i for i in data["issues"] if i["parameter"] == "Nitrogen")
        assert nitrogen["severity"] == "critical"
        assert data["statistical_analysis"] is None

    def test_location_option(self, client):
        payload = _payload(pH=5.5)
        payload["options"] = {"location": {"state": "Rajasthan", "district": "Jaipur"}}

        data = client.post("/api/soil-validation/validate", json=payload).json()

        assert any("arid region" in i["issue"] for i in data["issues"])

    def test_lab_status_is_used(self, client):
        payload = _payload(pH=8.5)
        payload["micronutrients"]["zinc"] = {"value": 0.4, "status": "deficient"}

        data = client.post("/api/soil-validation/validate", json=payload).json()

        assert any(i["parameter"] == "pH-micronutrient relationship" for i in data["issues"])

    def test_missing_micronutrients_is_422(self, client):
        response = client.post("/api/soil-validation/validate", json={"nutrients": {}})
        assert response.status_code == 422

    def test_threshold_out_of_range_is_422(self, client):
        payload = _payload()
        payload["options"] = {"confidenceThreshold": 1.5}
        response = client.post("/api/soil-validation/validate", json=payload)
        assert response.status_code == 422

    def test_input_error_is_400(self, client, monkeypatch):
        async def reject(*args, **kwargs):
            raise SoilValidationInputError("nutrients is required")

        monkeypatch.setattr(soil_data_validation_service, "validate_soil_data", reject)

        response = client.post("/api/soil-validation/validate", json=HEALTHY_PAYLOAD)

        assert response.status_code == 400
        assert response.json()["detail"] == "nutrients is required"


class TestReportEndpoints:

    def test_report(self, client):
        response = client.post("/api/soil-validation/report", json=_payload(nitrogen=-50))

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["overall_status"] == "CRITICAL"
        assert summary["critical_issues"] == 1

    def test_excel_download(self, client):
        response = client.post("/api/soil-validation/excel", json=HEALTHY_PAYLOAD)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert 'filename="soil_validation_North_field.xlsx"' in response.headers["content-disposition"]
        wb = load_workbook(BytesIO(response.content))
        assert wb.sheetnames == ["Summary", "Issues", "Anomalies", "Statistics"]

    def test_unhandled_error_is_500(self, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(soil_data_validation_service, "get_validation_report", explode)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/api/soil-validation/report", json=HEALTHY_PAYLOAD)

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error. Please try again later."


class TestParameterRangeEndpoints:

    def test_list(self, client):
        data = client.get("/api/soil-validation/parameter-ranges").json()

        assert data["total"] == 12
        assert data["items"][0]["parameter"] == "pH"
        assert data["items"][0]["typical"] == {"min": 4.5, "max": 8.5}

    def test_single_parameter(self, client):
        data = client.get("/api/soil-validation/parameter-ranges/Nitrogen").json()
        assert data["optimal"] == {"min": 200, "max": 300}

    def test_unknown_parameter_returns_fallback(self, client):
        response = client.get("/api/soil-validation/parameter-ranges/Molybdenum")

        assert response.status_code == 200
        assert response.json()["typical"] == {"min": 0, "max": 100}

    def test_state_without_override_uses_global(self, client):
        data = client.get("/api/soil-validation/parameter-ranges/pH", params={"state": "Rajasthan"}).json()
        assert data["absolute"] == {"min": 3.0, "max": 11.0}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
