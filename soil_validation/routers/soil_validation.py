"""
Soil data validation endpoints.
"""
from typing import Optional
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse
import logging

from soil_validation.schemas.soil_validation_schemas import (
    LocationInput,
    MicronutrientsInput,
    ParameterRangeListResponse,
    ParameterRangeResponse,
    SoilNutrientsInput,
    SoilParameterInput,
    SoilValidationRequest,
    ValidationOptionsInput,
    ValidationReportResponse,
    ValidationResultResponse,
)
from soil_validation.services.soil_data_types import (
    Location,
    Micronutrients,
    ParameterRange,
    SoilNutrients,
    SoilParameter,
    ValidationOptions,
)
from soil_validation.services.soil_data_validation_service import (
    SoilValidationInputError,
    soil_data_validation_service,
)
from soil_validation.services.soil_parameter_builder import NUTRIENT_FIELDS, build_soil_parameter
from soil_validation.services.soil_validation_excel_service import soil_validation_excel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/soil-validation", tags=["soil-validation"])


# ============== Request conversion ==============

def _to_soil_parameter(name: str, param: Optional[SoilParameterInput]) -> Optional[SoilParameter]:
    if param is None:
        return None
    return build_soil_parameter(
        name,
        param.value,
        unit=param.unit,
        confidence=param.confidence,
        status=param.status,
        catalog=soil_data_validation_service.catalog,
    )


def _to_nutrients(data: SoilNutrientsInput) -> SoilNutrients:
    return SoilNutrients(**{
        field_name: _to_soil_parameter(display_name, getattr(data, field_name))
        for field_name, display_name in NUTRIENT_FIELDS.items()
    })


def _to_micronutrients(data: MicronutrientsInput) -> Micronutrients:
    return Micronutrients(**{
        field_name: _to_soil_parameter(field_name.capitalize(), getattr(data, field_name))
        for field_name in Micronutrients.FIELDS
    })


def _to_location(data: Optional[LocationInput]) -> Optional[Location]:
    if data is None:
        return None
    return Location(state=data.state, district=data.district, soil_type=data.soil_type)


def _to_options(data: Optional[ValidationOptionsInput]) -> Optional[ValidationOptions]:
    if data is None:
        return None
    return ValidationOptions(
        strict_mode=data.strict_mode,
        confidence_threshold=data.confidence_threshold,
        enable_statistical_analysis=data.enable_statistical_analysis,
        enable_cross_parameter_validation=data.enable_cross_parameter_validation,
        enable_seasonal_validation=data.enable_seasonal_validation,
        location=_to_location(data.location),
        crop_type=data.crop_type,
        season=data.season,
    )


def _range_response(parameter_name: str, ranges: ParameterRange) -> ParameterRangeResponse:
    return ParameterRangeResponse(parameter=parameter_name, **ranges.to_dict())


async def _build_report(request: SoilValidationRequest):
    try:
        return await soil_data_validation_service.get_validation_report(
            _to_nutrients(request.nutrients),
            _to_micronutrients(request.micronutrients),
            _to_options(request.options),
        )
    except SoilValidationInputError as e:
        logger.warning(f"[SoilValidation] Rejected request: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== Validation Endpoints ==============

@router.post("/validate", response_model=ValidationResultResponse)
async def validate_soil_data(request: SoilValidationRequest):
    """
    Validate a soil report and detect anomalies.

    Returns validity, overall confidence, issues, anomalies, recommendations
    and the statistical analysis when it ran.
    """
    try:
        result = await soil_data_validation_service.validate_soil_data(
            _to_nutrients(request.nutrients),
            _to_micronutrients(request.micronutrients),
            _to_options(request.options),
        )
    except SoilValidationInputError as e:
        logger.warning(f"[SoilValidation] Rejected request: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return result.to_dict()


@router.post("/report", response_model=ValidationReportResponse)
async def get_validation_report(request: SoilValidationRequest):
    """Validate a soil report and summarise it with an overall status."""
    report = await _build_report(request)
    return report.to_dict()


@router.post("/excel")
async def export_validation_excel(request: SoilValidationRequest):
    """Download the validation report as an Excel workbook."""
    report = await _build_report(request)

    excel_buffer = soil_validation_excel_service.generate_validation_excel(
        report,
        sample_name=request.sample_name,
    )

    label = (request.sample_name or "soil_sample").replace(' ', '_')
    filename = f"soil_validation_{label}.xlsx"

    return StreamingResponse(
        excel_buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )


# ============== Parameter Range Endpoints ==============

@router.get("/parameter-ranges", response_model=ParameterRangeListResponse)
async def list_parameter_ranges():
    """List the built-in absolute, typical and optimal ranges for every parameter."""
    catalog = soil_data_validation_service.catalog
    items = [
        _range_response(name, catalog.get_parameter_ranges(name))
        for name in catalog.known_parameters()
    ]
    return ParameterRangeListResponse(items=items, total=len(items))


@router.get("/parameter-ranges/{parameter_name}", response_model=ParameterRangeResponse)
async def get_parameter_ranges(parameter_name: str, state: Optional[str] = None):
    """
    Get the ranges for one parameter.

    Unknown parameters return the permissive fallback range. When `state` is
    given, a regional override for that state is used if one exists.
    """
    options = ValidationOptions(location=Location(state=state)) if state else None
    ranges = soil_data_validation_service.get_parameter_ranges(parameter_name, options)
    return _range_response(parameter_name, ranges)
