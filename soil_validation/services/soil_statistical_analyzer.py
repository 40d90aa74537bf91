"""
Statistical consistency checks for soil reports.

Outliers are detected with a Z-score against the typical range of each
parameter (the typical range is taken to span +/- 2 standard deviations).
Correlation rules check that related parameters move together.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import logging

from soil_validation.services.soil_data_types import (
    AnomalySeverity,
    CorrelationIssue,
    IssueSeverity,
    Micronutrients,
    Outlier,
    SoilAnomaly,
    SoilNutrients,
    StatisticalAnalysis,
    ValidationIssue,
    ValidationOptions,
)
from soil_validation.services.soil_parameter_catalog import ParameterRangeCatalog
from soil_validation.services.soil_validation_rules import (
    CORRELATION_DENSITY_WEIGHT,
    CORRELATION_ISSUE_CONFIDENCE,
    CORRELATION_RULES,
    OC_N_TOLERANCE,
    OC_TO_N_FACTOR,
    OUTLIER_CONFIDENCE_CAP,
    OUTLIER_DENSITY_WEIGHT,
    OUTLIER_Z_THRESHOLD,
    SIGNIFICANT_Z_THRESHOLD,
    TYPICAL_RANGE_STD_DIVISOR,
)

logger = logging.getLogger(__name__)

CorrelationCheck = Callable[[SoilNutrients, Micronutrients], Optional[str]]


@dataclass(frozen=True)
class CorrelationRule:
    parameters: Tuple[str, ...]
    expected_correlation: str  # positive | negative | optimal_range
    strength: str  # weak | moderate | strong
    description: str
    check: Optional[CorrelationCheck] = None


def collect_all_parameters(
    nutrients: SoilNutrients,
    micronutrients: Micronutrients
) -> List[Tuple[str, float]]:
    """Flatten every measured parameter into (display name, value) pairs."""
    parameters = []
    for name, param in (
        ("pH", nutrients.ph),
        ("Nitrogen", nutrients.nitrogen),
        ("Phosphorus", nutrients.phosphorus),
        ("Potassium", nutrients.potassium),
        ("Organic Carbon", nutrients.organic_carbon),
        ("Electrical Conductivity", nutrients.electrical_conductivity),
    ):
        if param is not None:
            parameters.append((name, param.value))

    for _key, name, param in micronutrients.present():
        parameters.append((name, param.value))

    return parameters


def _check_organic_carbon_nitrogen(
    nutrients: SoilNutrients,
    micronutrients: Micronutrients
) -> Optional[str]:
    if nutrients.organic_carbon is None or nutrients.nitrogen is None:
        return None

    expected_n = nutrients.organic_carbon.value * OC_TO_N_FACTOR
    if abs(nutrients.nitrogen.value - expected_n) > expected_n * OC_N_TOLERANCE:
        return "Unexpected organic carbon to nitrogen relationship"
    return None


# Only the OC-N rule has an evaluator; pH-P is enforced by the cross-parameter stage
_CORRELATION_CHECKS = {
    ("Organic Carbon", "Nitrogen"): _check_organic_carbon_nitrogen,
}


def build_correlation_rules() -> List[CorrelationRule]:
    return [
        CorrelationRule(
            parameters=tuple(rule["parameters"]),
            expected_correlation=rule["expected_correlation"],
            strength=rule["strength"],
            description=rule["description"],
            check=_CORRELATION_CHECKS.get(tuple(rule["parameters"])),
        )
        for rule in CORRELATION_RULES
    ]


def deviation_score(value: float, typical_min: float, typical_max: float) -> float:
    mean = (typical_min + typical_max) / 2
    std_dev = (typical_max - typical_min) / TYPICAL_RANGE_STD_DIVISOR
    if std_dev <= 0:
        return 0.0
    return abs(value - mean) / std_dev


def calculate_consistency_score(outlier_count: int, correlation_count: int, total_parameters: int) -> float:
    if total_parameters == 0:
        return 1.0

    outlier_penalty = (outlier_count / total_parameters) * OUTLIER_DENSITY_WEIGHT
    correlation_penalty = (correlation_count / max(1, total_parameters / 2)) * CORRELATION_DENSITY_WEIGHT
    return max(0.0, 1 - outlier_penalty - correlation_penalty)


class SoilStatisticalAnalyzer:
    """Z-score outlier detection and correlation rule checks."""

    def __init__(self, catalog: ParameterRangeCatalog, correlation_rules: Optional[List[CorrelationRule]] = None):
        self.catalog = catalog
        self.correlation_rules = tuple(correlation_rules if correlation_rules is not None else build_correlation_rules())

    def perform_statistical_analysis(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: ValidationOptions
    ) -> StatisticalAnalysis:
        outliers: List[Outlier] = []
        parameters = collect_all_parameters(nutrients, micronutrients)

        for name, value in parameters:
            ranges = self.catalog.get_parameter_ranges(name, options)
            z_score = deviation_score(value, ranges.typical.min, ranges.typical.max)
            if z_score > OUTLIER_Z_THRESHOLD:
                outliers.append(Outlier(
                    parameter=name,
                    value=value,
                    expected_range=ranges.typical,
                    deviation_score=z_score,
                ))

        correlation_issues = self.check_parameter_correlations(nutrients, micronutrients)
        consistency_score = calculate_consistency_score(len(outliers), len(correlation_issues), len(parameters))

        logger.debug(
            f"[SoilStats] {len(parameters)} parameters, {len(outliers)} outliers, "
            f"{len(correlation_issues)} correlation issues, consistency={consistency_score:.3f}"
        )
        return StatisticalAnalysis(
            outliers=outliers,
            correlation_issues=correlation_issues,
            consistency_score=consistency_score,
        )

    def check_parameter_correlations(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients
    ) -> List[CorrelationIssue]:
        issues = []
        for rule in self.correlation_rules:
            if rule.check is None:
                continue
            message = rule.check(nutrients, micronutrients)
            if message:
                issues.append(CorrelationIssue(
                    parameters=list(rule.parameters),
                    issue=message,
                    expected_correlation=rule.description,
                ))
        return issues


def convert_to_validation_issues(analysis: StatisticalAnalysis) -> Tuple[List[ValidationIssue], List[SoilAnomaly]]:
    """Turn outliers and correlation findings into issues (and anomalies for strong deviations)."""
    issues: List[ValidationIssue] = []
    anomalies: List[SoilAnomaly] = []

    for outlier in analysis.outliers:
        significant = outlier.deviation_score > SIGNIFICANT_Z_THRESHOLD
        issues.append(ValidationIssue(
            parameter=outlier.parameter,
            issue="Statistical outlier detected",
            severity=IssueSeverity.WARNING if significant else IssueSeverity.INFO,
            suggestion=f"{outlier.parameter} value {outlier.value:g} deviates significantly from expected range",
            confidence=max(0.0, min(OUTLIER_CONFIDENCE_CAP, 1 - (outlier.deviation_score - 2) * 0.1)),
            possible_causes=[
                "Natural soil variation",
                "Recent agricultural practices",
                "Measurement uncertainty",
            ],
        ))

        if significant:
            anomalies.append(SoilAnomaly(
                parameter=outlier.parameter,
                issue="Significant statistical deviation",
                severity=AnomalySeverity.MEDIUM,
                description=f"{outlier.parameter} shows significant deviation from typical values",
                possible_causes=[
                    "Unusual soil conditions",
                    "Recent management practices",
                    "Natural soil variability",
                ],
                recommended_action="Consider retesting or investigate recent soil management",
            ))

    for correlation in analysis.correlation_issues:
        issues.append(ValidationIssue(
            parameter="-".join(correlation.parameters),
            issue="Parameter correlation anomaly",
            severity=IssueSeverity.INFO,
            suggestion=correlation.issue,
            confidence=CORRELATION_ISSUE_CONFIDENCE,
            possible_causes=[
                "Independent nutrient applications",
                "Soil-specific characteristics",
                "Temporal variation in measurements",
            ],
        ))

    return issues, anomalies
