"""
Tests for SoilParameter construction and status derivation.
"""
import pytest

from soil_validation.services.soil_data_types import ParameterStatus
from soil_validation.services.soil_parameter_builder import (
    build_micronutrients,
    build_soil_nutrients,
    build_soil_parameter,
    default_unit,
    determine_parameter_status,
)
from soil_validation.services.soil_parameter_catalog import ParameterRangeCatalog


class TestDetermineParameterStatus:
    """Nitrogen: typical 50-500, optimal 200-300."""

    @pytest.fixture
    def nitrogen_ranges(self, catalog):
        return catalog.get_parameter_ranges("Nitrogen")

    @pytest.mark.parametrize("value,expected", [
        (245, ParameterStatus.OPTIMAL),
        (200, ParameterStatus.OPTIMAL),
        (100, ParameterStatus.ADEQUATE),
        (34, ParameterStatus.DEFICIENT),   # < 50 * 0.7
        (40, ParameterStatus.ADEQUATE),
        (651, ParameterStatus.EXCESSIVE),  # > 500 * 1.3
        (600, ParameterStatus.ADEQUATE),
    ])
    def test_status_bands(self, nitrogen_ranges, value, expected):
        assert determine_parameter_status(value, nitrogen_ranges) == expected


class TestBuildSoilParameter:

    def test_nutrient_defaults(self):
        param = build_soil_parameter("Nitrogen", 245)

        assert param.name == "Nitrogen"
        assert param.value == 245.0
        assert param.unit == "kg/ha"
        assert param.status == ParameterStatus.OPTIMAL
        assert param.confidence == 0.8
        assert param.range.optimal.min == 200

    def test_default_units(self):
        assert default_unit("pH") == ""
        assert default_unit("Organic Carbon") == "%"
        assert default_unit("Electrical Conductivity") == "dS/m"
        assert default_unit("Zinc") == "ppm"

    def test_explicit_status_wins(self):
        param = build_soil_parameter("Zinc", 1.5, status="deficient")
        assert param.status == ParameterStatus.DEFICIENT

    def test_explicit_unit_and_confidence(self):
        param = build_soil_parameter("Nitrogen", 120, unit="kg/acre", confidence=0.95)
        assert param.unit == "kg/acre"
        assert param.confidence == 0.95

    def test_uses_given_catalog(self):
        custom = ParameterRangeCatalog(regional_overrides={"regions": {}})
        assert build_soil_parameter("pH", 6.8, catalog=custom).range == custom.get_parameter_ranges("pH")


class TestBuildCollections:

    def test_build_soil_nutrients_skips_missing(self):
        nutrients = build_soil_nutrients({"ph": 6.8, "nitrogen": 245, "potassium": None})

        assert nutrients.ph.name == "pH"
        assert nutrients.nitrogen.value == 245
        assert nutrients.potassium is None
        assert nutrients.organic_carbon is None

    def test_build_micronutrients_display_names(self):
        micronutrients = build_micronutrients({"zinc": 0.1, "boron": 0.7})

        assert micronutrients.zinc.name == "Zinc"
        assert micronutrients.zinc.status == ParameterStatus.DEFICIENT
        assert micronutrients.boron.status == ParameterStatus.OPTIMAL
        assert [key for key, _name, _param in micronutrients.present()] == ["zinc", "boron"]
