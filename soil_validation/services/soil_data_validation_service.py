"""
Soil Data Validation and Anomaly Detection Service.

Validates parsed soil report data and flags values that are impossible,
extreme, atypical or inconsistent with each other:
- Range validation against the parameter catalog
- Statistical outlier and correlation analysis
- Cross-parameter relationships (N:P ratio, K balance, pH availability)
- Regional, seasonal and crop-specific context rules

Each stage keeps its own local confidence; the overall confidence is the
minimum over the stages that ran. Findings are returned as data and never
raised as exceptions.
"""
from typing import Iterable, List, Optional, Tuple
import logging

from soil_validation.services.soil_data_types import (
    AnomalySeverity,
    IssueSeverity,
    Micronutrients,
    OverallStatus,
    ParameterRange,
    ParameterStatus,
    ParameterValidation,
    SoilAnomaly,
    SoilNutrients,
    SoilParameter,
    StageResult,
    StatisticalAnalysis,
    ValidationIssue,
    ValidationOptions,
    ValidationReport,
    ValidationResult,
    ValidationSummary,
)
from soil_validation.services.soil_parameter_catalog import ParameterRangeCatalog
from soil_validation.services.soil_statistical_analyzer import (
    CorrelationRule,
    SoilStatisticalAnalyzer,
    convert_to_validation_issues,
)
from soil_validation.services.soil_context_rules import ContextRule, ContextualValidator
from soil_validation.services.soil_validation_rules import (
    EXPECTED_P_FAVORABLE_PH,
    EXPECTED_P_UNFAVORABLE_PH,
    K_BALANCE_CONFIDENCE,
    K_BALANCE_HIGH_FACTOR,
    K_BALANCE_LOW_FACTOR,
    K_BALANCE_PENALTY,
    MICRONUTRIENT_RANGE_PENALTY,
    NEGATIVE_VALUE_CONFIDENCE,
    NP_RATIO_CONFIDENCE,
    NP_RATIO_MAX,
    NP_RATIO_MIN,
    NP_RATIO_PENALTY,
    NP_RATIO_SEVERE_MAX,
    NP_RATIO_SEVERE_MIN,
    NUTRIENT_ISSUE_THRESHOLD,
    OUT_OF_ABSOLUTE_CONFIDENCE,
    OUT_OF_TYPICAL_CONFIDENCE,
    PH_MICRO_CONFIDENCE,
    PH_MICRO_PENALTY,
    PH_MICRO_THRESHOLD,
    PH_P_CONFIDENCE,
    PH_P_EXCESS_FACTOR,
    PH_P_HIGH,
    PH_P_LOW,
    PH_RANGE_PENALTY,
    PRIMARY_NUTRIENT_RANGE_PENALTY,
    PRIMARY_NUTRIENTS,
    REC_CRITICAL,
    REC_ERROR,
    REC_HIGH_ANOMALY,
    REC_MANY_WARNINGS,
    REC_NUTRIENTS,
    REC_PASSED,
    REC_PH,
    SECONDARY_PARAMETER_RANGE_PENALTY,
    WARNING_COUNT_THRESHOLD,
)

logger = logging.getLogger(__name__)


class SoilValidationInputError(ValueError):
    """Raised when validate_soil_data is called with missing or malformed arguments."""
    pass


def expected_phosphorus_at_ph(ph: float) -> float:
    """Phosphorus availability drops outside pH 5.5-8.0."""
    if ph < PH_P_LOW or ph > PH_P_HIGH:
        return EXPECTED_P_UNFAVORABLE_PH
    return EXPECTED_P_FAVORABLE_PH


def merge_anomalies(primary: List[SoilAnomaly], secondary: List[SoilAnomaly]) -> List[SoilAnomaly]:
    """
    Merge anomalies from two detection passes.

    Caller-side utility: validate_soil_data concatenates its own stage
    findings, and callers use this to fold anomalies from a separate pass
    (e.g. an upstream report-extraction check) into a ValidationResult.

    A secondary anomaly is dropped when a primary anomaly on the same parameter
    already mentions the first word of its issue.
    """
    merged = list(primary)
    for candidate in secondary:
        first_word = candidate.issue.lower().split(" ")[0]
        exists = any(
            existing.parameter == candidate.parameter and first_word in existing.issue.lower()
            for existing in primary
        )
        if not exists:
            merged.append(candidate)
    return merged


class SoilDataValidationService:
    """
    Validation and anomaly detection for soil report parameters.

    Catalogs and rule tables are built once at construction and never
    mutated, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        catalog: Optional[ParameterRangeCatalog] = None,
        correlation_rules: Optional[List[CorrelationRule]] = None,
        context_rules: Optional[Iterable[ContextRule]] = None
    ):
        self.catalog = catalog or ParameterRangeCatalog()
        self.statistical_analyzer = SoilStatisticalAnalyzer(self.catalog, correlation_rules)
        self.contextual_validator = ContextualValidator(context_rules)

    # ==================== PUBLIC API ====================

    async def validate_soil_data(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """Comprehensive validation of soil data with anomaly detection."""
        return self.validate_soil_data_sync(nutrients, micronutrients, options)

    def validate_soil_data_sync(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        self._check_arguments(nutrients, micronutrients, options)
        options = options or ValidationOptions()

        logger.info("[SoilValidation] Starting soil data validation and anomaly detection")

        issues: List[ValidationIssue] = []
        anomalies: List[SoilAnomaly] = []
        confidence = 1.0

        # Step 1: Range validation (always)
        range_result = self.validate_parameter_ranges(nutrients, micronutrients, options)
        issues.extend(range_result.issues)
        anomalies.extend(range_result.anomalies)
        confidence = min(confidence, range_result.confidence)

        # Step 2: Statistical outliers and correlations
        statistical_analysis: Optional[StatisticalAnalysis] = None
        if options.enable_statistical_analysis:
            statistical_analysis = self.perform_statistical_analysis(nutrients, micronutrients, options)
            stat_issues, stat_anomalies = convert_to_validation_issues(statistical_analysis)
            issues.extend(stat_issues)
            anomalies.extend(stat_anomalies)
            confidence = min(confidence, statistical_analysis.consistency_score)

        # Step 3: Cross-parameter relationships
        if options.enable_cross_parameter_validation:
            cross_result = self.validate_cross_parameter_relationships(nutrients, micronutrients, options)
            issues.extend(cross_result.issues)
            anomalies.extend(cross_result.anomalies)
            confidence = min(confidence, cross_result.confidence)

        # Step 4: Regional / seasonal / crop context
        if options.location is not None or options.season:
            context_result = self.validate_contextual_factors(nutrients, micronutrients, options)
            issues.extend(context_result.issues)
            anomalies.extend(context_result.anomalies)
            confidence = min(confidence, context_result.confidence)

        # Step 5: Recommendations
        recommendations = self.generate_validation_recommendations(issues, anomalies, options)

        # Step 6: Overall validity
        blocking = [i for i in issues if i.severity in (IssueSeverity.CRITICAL, IssueSeverity.ERROR)]
        valid = len(blocking) == 0 and confidence >= options.confidence_threshold

        logger.info(
            f"[SoilValidation] Validation completed: {'VALID' if valid else 'INVALID'}, "
            f"confidence: {confidence:.2f}, {len(issues)} issues, {len(anomalies)} anomalies"
        )

        return ValidationResult(
            valid=valid,
            confidence=max(0.0, confidence),
            issues=issues,
            anomalies=anomalies,
            recommendations=recommendations,
            statistical_analysis=statistical_analysis,
        )

    async def get_validation_report(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: Optional[ValidationOptions] = None
    ) -> ValidationReport:
        """Validate and summarise the result with an overall status."""
        result = await self.validate_soil_data(nutrients, micronutrients, options)
        return self.build_validation_report(result)

    @staticmethod
    def build_validation_report(result: ValidationResult) -> ValidationReport:
        severities = [i.severity for i in result.issues]
        critical_count = severities.count(IssueSeverity.CRITICAL)

        if critical_count > 0:
            overall_status = OverallStatus.CRITICAL
        elif IssueSeverity.ERROR in severities:
            overall_status = OverallStatus.ERROR
        elif IssueSeverity.WARNING in severities:
            overall_status = OverallStatus.WARNING
        else:
            overall_status = OverallStatus.VALID

        return ValidationReport(
            validation_result=result,
            summary=ValidationSummary(
                overall_status=overall_status,
                confidence=result.confidence,
                issue_count=len(result.issues),
                anomaly_count=len(result.anomalies),
                critical_issues=critical_count,
            ),
            recommendations=list(result.recommendations),
        )

    def get_parameter_ranges(self, parameter_name: str, options: Optional[ValidationOptions] = None) -> ParameterRange:
        return self.catalog.get_parameter_ranges(parameter_name, options)

    # ==================== RANGE VALIDATION ====================

    def validate_parameter_ranges(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: ValidationOptions
    ) -> StageResult:
        """Validate every present parameter against its catalog range."""
        result = StageResult()
        confidence = 1.0

        checks: List[Tuple[str, Optional[SoilParameter], float]] = [
            ("pH", nutrients.ph, PH_RANGE_PENALTY),
            ("Nitrogen", nutrients.nitrogen, PRIMARY_NUTRIENT_RANGE_PENALTY),
            ("Phosphorus", nutrients.phosphorus, PRIMARY_NUTRIENT_RANGE_PENALTY),
            ("Potassium", nutrients.potassium, PRIMARY_NUTRIENT_RANGE_PENALTY),
            ("Organic Carbon", nutrients.organic_carbon, SECONDARY_PARAMETER_RANGE_PENALTY),
            ("Electrical Conductivity", nutrients.electrical_conductivity, SECONDARY_PARAMETER_RANGE_PENALTY),
        ]
        checks.extend(
            (name, param, MICRONUTRIENT_RANGE_PENALTY) for _key, name, param in micronutrients.present()
        )

        for name, param, penalty in checks:
            if param is None:
                continue
            verdict = self.validate_single_parameter(param, name, options)
            if verdict.issue is not None:
                result.issues.append(verdict.issue)
                confidence -= penalty
            if verdict.anomaly is not None:
                result.anomalies.append(verdict.anomaly)

        result.confidence = max(0.0, confidence)
        return result

    def validate_single_parameter(
        self,
        parameter: SoilParameter,
        parameter_name: str,
        options: Optional[ValidationOptions] = None
    ) -> ParameterValidation:
        """
        Classify one measurement as impossible, extreme, atypical or normal.

        pH is exempt from the negative-value tier; the absolute range bounds it.
        """
        options = options or ValidationOptions()
        ranges = self.catalog.get_parameter_ranges(parameter_name, options)
        value = parameter.value

        if value < 0 and parameter_name != "pH":
            return ParameterValidation(
                issue=ValidationIssue(
                    parameter=parameter_name,
                    issue="Negative value detected",
                    severity=IssueSeverity.CRITICAL,
                    suggestion=f"{parameter_name} cannot be negative - check measurement accuracy",
                    confidence=NEGATIVE_VALUE_CONFIDENCE,
                    possible_causes=["Measurement error", "Data entry mistake", "Equipment malfunction"],
                ),
                anomaly=SoilAnomaly(
                    parameter=parameter_name,
                    issue="Impossible negative value",
                    severity=AnomalySeverity.HIGH,
                    description=f"{parameter_name} value of {value:g} is physically impossible",
                    possible_causes=["Measurement error", "Data entry mistake"],
                    recommended_action="Retest the soil sample and verify measurement procedures",
                ),
            )

        if not ranges.absolute.contains(value):
            too_low = value < ranges.absolute.min
            return ParameterValidation(
                issue=ValidationIssue(
                    parameter=parameter_name,
                    issue="Value outside possible range",
                    severity=IssueSeverity.CRITICAL if options.strict_mode else IssueSeverity.ERROR,
                    suggestion=(
                        f"{parameter_name} value {value:g} is outside possible range "
                        f"({ranges.absolute.min:g}-{ranges.absolute.max:g})"
                    ),
                    confidence=OUT_OF_ABSOLUTE_CONFIDENCE,
                    possible_causes=["Measurement error", "Extreme soil conditions", "Equipment calibration issue"],
                ),
                anomaly=SoilAnomaly(
                    parameter=parameter_name,
                    issue="Extreme value detected",
                    severity=AnomalySeverity.HIGH,
                    description=f"{parameter_name} value of {value:g} is extremely {'low' if too_low else 'high'}",
                    possible_causes=[
                        "Severe deficiency" if too_low else "Excessive application",
                        "Measurement error",
                        "Unusual soil conditions",
                    ],
                    recommended_action="Verify measurement and consider retesting",
                ),
            )

        if not ranges.typical.contains(value):
            return ParameterValidation(
                issue=ValidationIssue(
                    parameter=parameter_name,
                    issue="Unusual value detected",
                    severity=IssueSeverity.WARNING,
                    suggestion=(
                        f"{parameter_name} value {value:g} is outside typical range "
                        f"({ranges.typical.min:g}-{ranges.typical.max:g})"
                    ),
                    confidence=OUT_OF_TYPICAL_CONFIDENCE,
                    possible_causes=["Unusual soil conditions", "Recent fertilizer application", "Natural variation"],
                ),
                anomaly=SoilAnomaly(
                    parameter=parameter_name,
                    issue="Atypical value",
                    severity=AnomalySeverity.MEDIUM,
                    description=f"{parameter_name} value of {value:g} is unusual for typical soils",
                    possible_causes=[
                        "Natural soil variation",
                        "Recent agricultural practices",
                        "Specific soil type characteristics",
                    ],
                    recommended_action="Monitor parameter and consider soil management adjustments",
                ),
            )

        return ParameterValidation()

    # ==================== STATISTICAL ANALYSIS ====================

    def perform_statistical_analysis(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: Optional[ValidationOptions] = None
    ) -> StatisticalAnalysis:
        return self.statistical_analyzer.perform_statistical_analysis(
            nutrients, micronutrients, options or ValidationOptions()
        )

    # ==================== CROSS-PARAMETER RELATIONSHIPS ====================

    def validate_cross_parameter_relationships(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: Optional[ValidationOptions] = None
    ) -> StageResult:
        """Validate N:P ratio, K balance and pH-dependent nutrient availability."""
        result = StageResult()
        confidence = 1.0

        if nutrients.nitrogen and nutrients.phosphorus and nutrients.potassium:
            n = nutrients.nitrogen.value
            p = nutrients.phosphorus.value
            k = nutrients.potassium.value

            if p > 0:
                np_ratio = n / p
                if np_ratio > NP_RATIO_MAX or np_ratio < NP_RATIO_MIN:
                    excess_n = np_ratio > NP_RATIO_MAX
                    result.issues.append(ValidationIssue(
                        parameter="N:P ratio",
                        issue="Imbalanced nitrogen to phosphorus ratio",
                        severity=IssueSeverity.WARNING,
                        suggestion=(
                            f"N:P ratio of {np_ratio:.1f}:1 indicates "
                            f"{'excess nitrogen or phosphorus deficiency' if excess_n else 'nitrogen deficiency or excess phosphorus'}"
                        ),
                        confidence=NP_RATIO_CONFIDENCE,
                        possible_causes=[
                            "Excessive nitrogen fertilization" if excess_n else "Insufficient nitrogen application",
                            "Phosphorus fixation" if excess_n else "Excessive phosphorus application",
                            "Imbalanced fertilizer program",
                        ],
                    ))
                    severe = np_ratio > NP_RATIO_SEVERE_MAX or np_ratio < NP_RATIO_SEVERE_MIN
                    result.anomalies.append(SoilAnomaly(
                        parameter="N:P ratio",
                        issue="Nutrient ratio imbalance",
                        severity=AnomalySeverity.HIGH if severe else AnomalySeverity.MEDIUM,
                        description=f"N:P ratio of {np_ratio:.1f}:1 suggests imbalanced fertilization",
                        possible_causes=[
                            "Unbalanced fertilizer application",
                            "Nutrient fixation in soil",
                            "Crop-specific nutrient uptake patterns",
                        ],
                        recommended_action="Adjust fertilizer program to balance N:P ratio",
                    ))
                    confidence -= NP_RATIO_PENALTY

            avg_np = (n + p) / 2
            k_low = k < avg_np * K_BALANCE_LOW_FACTOR
            if k_low or k > avg_np * K_BALANCE_HIGH_FACTOR:
                result.issues.append(ValidationIssue(
                    parameter="K balance",
                    issue="Potassium imbalance relative to N and P",
                    severity=IssueSeverity.WARNING,
                    suggestion=f"Potassium level {'too low' if k_low else 'too high'} compared to nitrogen and phosphorus",
                    confidence=K_BALANCE_CONFIDENCE,
                    possible_causes=[
                        "Insufficient potassium application" if k_low else "Excessive potassium fertilization",
                        "Soil type-specific nutrient dynamics",
                        "Crop removal patterns",
                    ],
                ))
                confidence -= K_BALANCE_PENALTY

        if nutrients.ph:
            ph = nutrients.ph.value

            if nutrients.phosphorus and (ph < PH_P_LOW or ph > PH_P_HIGH):
                p_value = nutrients.phosphorus.value
                if p_value > expected_phosphorus_at_ph(ph) * PH_P_EXCESS_FACTOR:
                    result.issues.append(ValidationIssue(
                        parameter="pH-P relationship",
                        issue="High phosphorus despite unfavorable pH",
                        severity=IssueSeverity.INFO,
                        suggestion=f"Phosphorus level {p_value:g} is higher than expected at pH {ph:g}",
                        confidence=PH_P_CONFIDENCE,
                        possible_causes=[
                            "Recent phosphorus fertilizer application",
                            "Organic matter contribution",
                            "Measurement timing effects",
                        ],
                    ))

            if ph > PH_MICRO_THRESHOLD:
                deficient = [
                    key for key, _name, param in micronutrients.present()
                    if param.status == ParameterStatus.DEFICIENT
                ]
                if deficient:
                    result.issues.append(ValidationIssue(
                        parameter="pH-micronutrient relationship",
                        issue="Micronutrient deficiencies at high pH",
                        severity=IssueSeverity.WARNING,
                        suggestion=f"High pH ({ph:g}) may be causing micronutrient deficiencies: {', '.join(deficient)}",
                        confidence=PH_MICRO_CONFIDENCE,
                        possible_causes=[
                            "Alkaline pH reducing micronutrient availability",
                            "Nutrient precipitation at high pH",
                            "Soil chemistry interactions",
                        ],
                    ))
                    confidence -= PH_MICRO_PENALTY

        result.confidence = max(0.0, confidence)
        return result

    # ==================== CONTEXTUAL FACTORS ====================

    def validate_contextual_factors(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: ValidationOptions
    ) -> StageResult:
        return self.contextual_validator.validate_contextual_factors(nutrients, micronutrients, options)

    # ==================== RECOMMENDATIONS ====================

    def generate_validation_recommendations(
        self,
        issues: List[ValidationIssue],
        anomalies: List[SoilAnomaly],
        options: Optional[ValidationOptions] = None
    ) -> List[str]:
        recommendations: List[str] = []

        severities = [i.severity for i in issues]
        warning_count = severities.count(IssueSeverity.WARNING)

        if IssueSeverity.CRITICAL in severities:
            recommendations.extend(REC_CRITICAL)

        if IssueSeverity.ERROR in severities:
            recommendations.extend(REC_ERROR)

        if warning_count > WARNING_COUNT_THRESHOLD:
            recommendations.append(REC_MANY_WARNINGS)

        if any(a.severity == AnomalySeverity.HIGH for a in anomalies):
            recommendations.extend(REC_HIGH_ANOMALY)

        if any(i.parameter == "pH" for i in issues):
            recommendations.append(REC_PH)

        nutrient_issues = [i for i in issues if i.parameter in PRIMARY_NUTRIENTS]
        if len(nutrient_issues) > NUTRIENT_ISSUE_THRESHOLD:
            recommendations.append(REC_NUTRIENTS)

        if not recommendations:
            recommendations.append(REC_PASSED)

        return recommendations

    # ==================== HELPERS ====================

    @staticmethod
    def _check_arguments(nutrients, micronutrients, options) -> None:
        if nutrients is None:
            raise SoilValidationInputError("nutrients is required")
        if micronutrients is None:
            raise SoilValidationInputError("micronutrients is required")
        if not isinstance(nutrients, SoilNutrients):
            raise SoilValidationInputError(f"nutrients must be SoilNutrients, got {type(nutrients).__name__}")
        if not isinstance(micronutrients, Micronutrients):
            raise SoilValidationInputError(
                f"micronutrients must be Micronutrients, got {type(micronutrients).__name__}"
            )
        if options is not None and not 0.0 <= options.confidence_threshold <= 1.0:
            raise SoilValidationInputError(
                f"confidence_threshold must be between 0 and 1, got {options.confidence_threshold}"
            )


soil_data_validation_service = SoilDataValidationService()
