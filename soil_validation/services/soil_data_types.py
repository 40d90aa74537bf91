"""
Soil Data Validation Types.

Dataclasses and enumerations shared by the soil validation engine:
measured parameters, range catalog entries, validation findings and
the aggregated validation result.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class ParameterStatus(str, Enum):
    """Agronomic status assigned upstream to a measured parameter."""
    DEFICIENT = "deficient"
    ADEQUATE = "adequate"
    OPTIMAL = "optimal"
    EXCESSIVE = "excessive"


class IssueSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Season(str, Enum):
    """Indian cropping seasons."""
    KHARIF = "kharif"
    RABI = "rabi"
    ZAID = "zaid"


class OverallStatus(str, Enum):
    VALID = "VALID"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class RangeBounds:
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class ParameterRange:
    """Absolute (possible), typical (observed) and optimal (agronomic) bands."""
    absolute: RangeBounds
    typical: RangeBounds
    optimal: RangeBounds

    def is_consistent(self) -> bool:
        """Check absolute.min <= typical.min <= optimal.min <= optimal.max <= typical.max <= absolute.max."""
        return (
            self.absolute.min <= self.typical.min <= self.optimal.min
            <= self.optimal.max <= self.typical.max <= self.absolute.max
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, float]]) -> "ParameterRange":
        return cls(
            absolute=RangeBounds(float(data["absolute"]["min"]), float(data["absolute"]["max"])),
            typical=RangeBounds(float(data["typical"]["min"]), float(data["typical"]["max"])),
            optimal=RangeBounds(float(data["optimal"]["min"]), float(data["optimal"]["max"])),
        )

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return asdict(self)


@dataclass(frozen=True)
class SoilParameter:
    """One measured soil value as parsed from a lab report."""
    name: str
    value: float
    unit: str = ""
    range: Optional[ParameterRange] = None
    status: ParameterStatus = ParameterStatus.ADEQUATE
    confidence: float = 0.8  # measurement trust from upstream parsing (0-1)


@dataclass
class SoilNutrients:
    """Primary soil parameters. pH, N, P and K are expected but may be absent."""
    ph: Optional[SoilParameter] = None
    nitrogen: Optional[SoilParameter] = None
    phosphorus: Optional[SoilParameter] = None
    potassium: Optional[SoilParameter] = None
    organic_carbon: Optional[SoilParameter] = None
    electrical_conductivity: Optional[SoilParameter] = None


@dataclass
class Micronutrients:
    zinc: Optional[SoilParameter] = None
    iron: Optional[SoilParameter] = None
    manganese: Optional[SoilParameter] = None
    copper: Optional[SoilParameter] = None
    boron: Optional[SoilParameter] = None
    sulfur: Optional[SoilParameter] = None

    FIELDS = ("zinc", "iron", "manganese", "copper", "boron", "sulfur")

    def present(self) -> Iterator[Tuple[str, str, SoilParameter]]:
        """Yield (field_name, display_name, parameter) for each micronutrient that was measured."""
        for key in self.FIELDS:
            param = getattr(self, key)
            if param is not None:
                yield key, key.capitalize(), param


@dataclass
class Location:
    state: str
    district: str = ""
    soil_type: Optional[str] = None


@dataclass
class ValidationOptions:
    """
    Options for a validation run.

    enable_seasonal_validation is accepted for API compatibility but the
    seasonal checks run whenever a season is given.
    """
    strict_mode: bool = False
    confidence_threshold: float = 0.7
    enable_statistical_analysis: bool = True
    enable_cross_parameter_validation: bool = True
    enable_seasonal_validation: bool = False
    location: Optional[Location] = None
    crop_type: Optional[str] = None
    season: Optional[str] = None


@dataclass
class ValidationIssue:
    """Human-facing finding."""
    parameter: str
    issue: str
    severity: IssueSeverity
    suggestion: str
    confidence: float
    possible_causes: List[str] = field(default_factory=list)


@dataclass
class SoilAnomaly:
    """Finding that points at a probable data or soil-condition problem."""
    parameter: str
    issue: str
    severity: AnomalySeverity
    description: str
    possible_causes: List[str]
    recommended_action: str


@dataclass
class ParameterValidation:
    issue: Optional[ValidationIssue] = None
    anomaly: Optional[SoilAnomaly] = None


@dataclass
class StageResult:
    """Issues, anomalies and local confidence produced by one validation stage."""
    issues: List[ValidationIssue] = field(default_factory=list)
    anomalies: List[SoilAnomaly] = field(default_factory=list)
    confidence: float = 1.0


@dataclass
class Outlier:
    parameter: str
    value: float
    expected_range: RangeBounds
    deviation_score: float


@dataclass
class CorrelationIssue:
    parameters: List[str]
    issue: str
    expected_correlation: str


@dataclass
class StatisticalAnalysis:
    outliers: List[Outlier] = field(default_factory=list)
    correlation_issues: List[CorrelationIssue] = field(default_factory=list)
    consistency_score: float = 1.0


@dataclass
class ValidationResult:
    """Result of validate_soil_data."""
    valid: bool
    confidence: float
    issues: List[ValidationIssue]
    anomalies: List[SoilAnomaly]
    recommendations: List[str]
    statistical_analysis: Optional[StatisticalAnalysis] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationSummary:
    overall_status: OverallStatus
    confidence: float
    issue_count: int
    anomaly_count: int
    critical_issues: int


@dataclass
class ValidationReport:
    validation_result: ValidationResult
    summary: ValidationSummary
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
