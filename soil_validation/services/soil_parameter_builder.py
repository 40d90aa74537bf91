"""
Helpers to build SoilParameter records from raw report values.

Status derivation:
- optimal: inside the optimal band
- deficient: below 70% of the typical minimum
- excessive: above 130% of the typical maximum
- adequate: anything else
"""
from typing import Dict, Optional, Union

from soil_validation.services.soil_data_types import (
    Micronutrients,
    ParameterRange,
    ParameterStatus,
    SoilNutrients,
    SoilParameter,
)
from soil_validation.services.soil_parameter_catalog import ParameterRangeCatalog
from soil_validation.services.soil_validation_rules import (
    DEFAULT_MEASUREMENT_CONFIDENCE,
    DEFAULT_UNITS,
    DEFICIENT_FACTOR,
    EXCESSIVE_FACTOR,
    MICRONUTRIENT_UNIT,
)

NUTRIENT_FIELDS = {
    "ph": "pH",
    "nitrogen": "Nitrogen",
    "phosphorus": "Phosphorus",
    "potassium": "Potassium",
    "organic_carbon": "Organic Carbon",
    "electrical_conductivity": "Electrical Conductivity",
}

_default_catalog = None


def _get_catalog(catalog: Optional[ParameterRangeCatalog]) -> ParameterRangeCatalog:
    global _default_catalog
    if catalog is not None:
        return catalog
    if _default_catalog is None:
        _default_catalog = ParameterRangeCatalog()
    return _default_catalog


def determine_parameter_status(value: float, ranges: ParameterRange) -> ParameterStatus:
    if ranges.optimal.contains(value):
        return ParameterStatus.OPTIMAL
    if value < ranges.typical.min * DEFICIENT_FACTOR:
        return ParameterStatus.DEFICIENT
    if value > ranges.typical.max * EXCESSIVE_FACTOR:
        return ParameterStatus.EXCESSIVE
    return ParameterStatus.ADEQUATE


def default_unit(name: str) -> str:
    return DEFAULT_UNITS.get(name, MICRONUTRIENT_UNIT)


def build_soil_parameter(
    name: str,
    value: float,
    unit: Optional[str] = None,
    confidence: float = DEFAULT_MEASUREMENT_CONFIDENCE,
    status: Optional[Union[ParameterStatus, str]] = None,
    catalog: Optional[ParameterRangeCatalog] = None,
) -> SoilParameter:
    """
    Create a SoilParameter with its catalog range and a status.

    An explicit status from the caller (e.g., the lab report) wins over the
    derived one.
    """
    ranges = _get_catalog(catalog).get_parameter_ranges(name)
    resolved_status = ParameterStatus(status) if status is not None else determine_parameter_status(value, ranges)
    return SoilParameter(
        name=name,
        value=float(value),
        unit=default_unit(name) if unit is None else unit,
        range=ranges,
        status=resolved_status,
        confidence=confidence,
    )


def build_soil_nutrients(values: Dict[str, float], catalog: Optional[ParameterRangeCatalog] = None) -> SoilNutrients:
    """Build SoilNutrients from a {field_name: value} mapping (e.g., {'ph': 6.8, 'nitrogen': 245})."""
    kwargs = {}
    for field_name, display_name in NUTRIENT_FIELDS.items():
        if values.get(field_name) is not None:
            kwargs[field_name] = build_soil_parameter(display_name, values[field_name], catalog=catalog)
    return SoilNutrients(**kwargs)


def build_micronutrients(values: Dict[str, float], catalog: Optional[ParameterRangeCatalog] = None) -> Micronutrients:
    kwargs = {}
    for field_name in Micronutrients.FIELDS:
        if values.get(field_name) is not None:
            kwargs[field_name] = build_soil_parameter(field_name.capitalize(), values[field_name], catalog=catalog)
    return Micronutrients(**kwargs)
