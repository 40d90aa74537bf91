"""
Shared fixtures for soil validation tests.

The healthy sample is a typical Indian soil health card reading:
pH 6.8, N 245, P 18, K 156 kg/ha, OC 0.65 %, EC 0.45 dS/m.
"""
import pytest

from soil_validation.services.soil_data_validation_service import SoilDataValidationService
from soil_validation.services.soil_parameter_builder import build_micronutrients, build_soil_nutrients
from soil_validation.services.soil_parameter_catalog import ParameterRangeCatalog


HEALTHY_NUTRIENTS = {
    "ph": 6.8,
    "nitrogen": 245,
    "phosphorus": 18,
    "potassium": 156,
    "organic_carbon": 0.65,
    "electrical_conductivity": 0.45,
}

HEALTHY_MICRONUTRIENTS = {
    "zinc": 1.2,
    "iron": 15,
    "manganese": 8,
    "copper": 1.0,
    "boron": 0.6,
    "sulfur": 12,
}


def make_nutrients(**overrides):
    """Healthy nutrients with selected values replaced (None removes a parameter)."""
    values = dict(HEALTHY_NUTRIENTS)
    values.update(overrides)
    return build_soil_nutrients(values)


def make_micronutrients(**overrides):
    values = dict(HEALTHY_MICRONUTRIENTS)
    values.update(overrides)
    return build_micronutrients(values)


@pytest.fixture
def catalog():
    """Catalog without regional overrides, independent of the data file."""
    return ParameterRangeCatalog(regional_overrides={"regions": {}})


@pytest.fixture
def service(catalog):
    return SoilDataValidationService(catalog=catalog)


@pytest.fixture
def healthy_nutrients():
    return make_nutrients()


@pytest.fixture
def healthy_micronutrients():
    return make_micronutrients()


@pytest.fixture
def nutrients_with():
    """Factory fixture: nutrients_with(nitrogen=-50) -> SoilNutrients."""
    return make_nutrients


@pytest.fixture
def micronutrients_with():
    return make_micronutrients
