"""
Pydantic schemas for the Soil Data Validation API.
Includes request schemas for soil report parameters and response schemas
for validation results and reports.
"""
from pydantic import BaseModel, Field
from typing import Optional, List

from soil_validation.services.soil_data_types import (
    AnomalySeverity,
    IssueSeverity,
    OverallStatus,
    ParameterStatus,
)


# ==================== REQUEST SCHEMAS ====================

class SoilParameterInput(BaseModel):
    """One measured soil parameter."""
    value: float = Field(..., description="Measured value")
    unit: Optional[str] = Field(None, max_length=20, description="Unit; defaults per parameter when omitted")
    status: Optional[ParameterStatus] = Field(None, description="Status reported by the lab, derived when omitted")
    confidence: float = Field(default=0.8, ge=0, le=1, description="Measurement confidence from report parsing")


class SoilNutrientsInput(BaseModel):
    """Primary soil parameters."""
    ph: Optional[SoilParameterInput] = Field(None, alias="pH")
    nitrogen: Optional[SoilParameterInput] = Field(None, description="Available N kg/ha")
    phosphorus: Optional[SoilParameterInput] = Field(None, description="Available P kg/ha")
    potassium: Optional[SoilParameterInput] = Field(None, description="Available K kg/ha")
    organic_carbon: Optional[SoilParameterInput] = Field(None, alias="organicCarbon", description="Organic carbon %")
    electrical_conductivity: Optional[SoilParameterInput] = Field(
        None, alias="electricalConductivity", description="EC dS/m"
    )

    class Config:
        populate_by_name = True


class MicronutrientsInput(BaseModel):
    """Micronutrients in ppm."""
    zinc: Optional[SoilParameterInput] = None
    iron: Optional[SoilParameterInput] = None
    manganese: Optional[SoilParameterInput] = None
    copper: Optional[SoilParameterInput] = None
    boron: Optional[SoilParameterInput] = None
    sulfur: Optional[SoilParameterInput] = None


class LocationInput(BaseModel):
    state: str = Field(..., min_length=1, max_length=100)
    district: str = Field(default="", max_length=100)
    soil_type: Optional[str] = Field(None, alias="soilType", max_length=50)

    class Config:
        populate_by_name = True


class ValidationOptionsInput(BaseModel):
    """Validation options. Seasonal checks run whenever season is set."""
    strict_mode: bool = Field(default=False, alias="strictMode")
    confidence_threshold: float = Field(default=0.7, ge=0, le=1, alias="confidenceThreshold")
    enable_statistical_analysis: bool = Field(default=True, alias="enableStatisticalAnalysis")
    enable_cross_parameter_validation: bool = Field(default=True, alias="enableCrossParameterValidation")
    enable_seasonal_validation: bool = Field(default=False, alias="enableSeasonalValidation")
    location: Optional[LocationInput] = None
    crop_type: Optional[str] = Field(None, alias="cropType", max_length=50)
    season: Optional[str] = Field(None, max_length=30, description="kharif, rabi or zaid")

    class Config:
        populate_by_name = True


class SoilValidationRequest(BaseModel):
    """Request schema for soil data validation."""
    sample_name: Optional[str] = Field(None, max_length=100, description="Label used in exported reports")
    nutrients: SoilNutrientsInput
    micronutrients: MicronutrientsInput
    options: Optional[ValidationOptionsInput] = None


# ==================== RESPONSE SCHEMAS ====================

class RangeBoundsResponse(BaseModel):
    min: float
    max: float


class ParameterRangeResponse(BaseModel):
    """Validation ranges for one parameter."""
    parameter: str
    absolute: RangeBoundsResponse
    typical: RangeBoundsResponse
    optimal: RangeBoundsResponse


class ParameterRangeListResponse(BaseModel):
    items: List[ParameterRangeResponse]
    total: int


class ValidationIssueResponse(BaseModel):
    parameter: str
    issue: str
    severity: IssueSeverity
    suggestion: str
    confidence: float
    possible_causes: List[str] = []


class SoilAnomalyResponse(BaseModel):
    parameter: str
    issue: str
    severity: AnomalySeverity
    description: str
    possible_causes: List[str]
    recommended_action: str


class OutlierResponse(BaseModel):
    parameter: str
    value: float
    expected_range: RangeBoundsResponse
    deviation_score: float


class CorrelationIssueResponse(BaseModel):
    parameters: List[str]
    issue: str
    expected_correlation: str


class StatisticalAnalysisResponse(BaseModel):
    outliers: List[OutlierResponse]
    correlation_issues: List[CorrelationIssueResponse]
    consistency_score: float


class ValidationResultResponse(BaseModel):
    """Soil data validation result."""
    valid: bool
    confidence: float
    issues: List[ValidationIssueResponse]
    anomalies: List[SoilAnomalyResponse]
    recommendations: List[str]
    statistical_analysis: Optional[StatisticalAnalysisResponse] = None


class ValidationSummaryResponse(BaseModel):
    overall_status: OverallStatus
    confidence: float
    issue_count: int
    anomaly_count: int
    critical_issues: int


class ValidationReportResponse(BaseModel):
    """Validation result plus summary."""
    validation_result: ValidationResultResponse
    summary: ValidationSummaryResponse
    recommendations: List[str]
