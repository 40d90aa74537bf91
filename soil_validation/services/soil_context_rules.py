"""
Contextual (regional, seasonal, crop-specific) validation rules.

Each rule is keyed by scope and match value (state, season or crop) and
pairs a predicate over the measured nutrients with the issue it raises.
New rules can be appended to DEFAULT_CONTEXT_RULES or passed to the
validation service.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional
import logging

from soil_validation.services.soil_data_types import (
    IssueSeverity,
    Micronutrients,
    SoilNutrients,
    StageResult,
    ValidationIssue,
    ValidationOptions,
)
from soil_validation.services.soil_validation_rules import (
    ARID_STATE_MIN_PH,
    POST_HARVEST_N_MAX,
    RICE_MAX_PH,
)

logger = logging.getLogger(__name__)

SCOPE_REGION = "region"
SCOPE_SEASON = "season"
SCOPE_CROP = "crop"


@dataclass(frozen=True)
class ContextRule:
    """One contextual check: when `key` matches and `applies` holds, emit `build_issue`."""
    scope: str
    key: str
    applies: Callable[[SoilNutrients, Micronutrients], bool]
    build_issue: Callable[[SoilNutrients], ValidationIssue]
    penalty: float = 0.0


def _arid_region_acidic(nutrients: SoilNutrients, _micronutrients: Micronutrients) -> bool:
    return nutrients.ph is not None and nutrients.ph.value < ARID_STATE_MIN_PH


def _post_harvest_high_n(nutrients: SoilNutrients, _micronutrients: Micronutrients) -> bool:
    return nutrients.nitrogen is not None and nutrients.nitrogen.value > POST_HARVEST_N_MAX


def _rice_high_ph(nutrients: SoilNutrients, _micronutrients: Micronutrients) -> bool:
    return nutrients.ph is not None and nutrients.ph.value > RICE_MAX_PH


DEFAULT_CONTEXT_RULES = (
    ContextRule(
        scope=SCOPE_REGION,
        key="Rajasthan",
        applies=_arid_region_acidic,
        build_issue=lambda n: ValidationIssue(
            parameter="pH",
            issue="Unusually acidic soil for arid region",
            severity=IssueSeverity.WARNING,
            suggestion="Acidic pH is uncommon in Rajasthan - verify measurement",
            confidence=0.7,
            possible_causes=["Measurement error", "Localized soil conditions", "Recent amendments"],
        ),
        penalty=0.1,
    ),
    # 'post-harvest' is not one of kharif/rabi/zaid; compared literally
    ContextRule(
        scope=SCOPE_SEASON,
        key="post-harvest",
        applies=_post_harvest_high_n,
        build_issue=lambda n: ValidationIssue(
            parameter="Nitrogen",
            issue="High nitrogen levels post-harvest",
            severity=IssueSeverity.INFO,
            suggestion="High nitrogen after harvest may indicate excess fertilization",
            confidence=0.6,
            possible_causes=["Excess fertilizer application", "Crop residue decomposition", "Reduced uptake"],
        ),
    ),
    ContextRule(
        scope=SCOPE_CROP,
        key="rice",
        applies=_rice_high_ph,
        build_issue=lambda n: ValidationIssue(
            parameter="pH",
            issue="High pH for rice cultivation",
            severity=IssueSeverity.WARNING,
            suggestion="pH above 8.0 may affect rice growth and nutrient availability",
            confidence=0.8,
            possible_causes=["Alkaline soil conditions", "Lime application", "Irrigation water quality"],
        ),
        penalty=0.1,
    ),
)


class ContextualValidator:
    """Runs the region, season and crop rule sets that the options select."""

    def __init__(self, rules: Optional[Iterable[ContextRule]] = None):
        self.rules = tuple(rules if rules is not None else DEFAULT_CONTEXT_RULES)

    def _run_scope(
        self,
        scope: str,
        key: str,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients
    ) -> StageResult:
        result = StageResult()
        confidence = 1.0
        for rule in self.rules:
            if rule.scope != scope or rule.key != key:
                continue
            if rule.applies(nutrients, micronutrients):
                result.issues.append(rule.build_issue(nutrients))
                confidence -= rule.penalty
                logger.debug(f"[SoilContext] {scope} rule '{key}' matched")
        result.confidence = confidence
        return result

    def validate_regional_context(self, nutrients, micronutrients, location) -> StageResult:
        return self._run_scope(SCOPE_REGION, location.state, nutrients, micronutrients)

    def validate_seasonal_context(self, nutrients, micronutrients, season: str) -> StageResult:
        return self._run_scope(SCOPE_SEASON, season, nutrients, micronutrients)

    def validate_crop_specific_context(self, nutrients, micronutrients, crop_type: str) -> StageResult:
        return self._run_scope(SCOPE_CROP, crop_type, nutrients, micronutrients)

    def validate_contextual_factors(
        self,
        nutrients: SoilNutrients,
        micronutrients: Micronutrients,
        options: ValidationOptions
    ) -> StageResult:
        """
        Validate contextual factors.

        Confidence is the minimum over the sub-checks that ran. Seasonal checks
        run whenever options.season is set, independent of enable_seasonal_validation.
        """
        combined = StageResult()
        sub_results: List[StageResult] = []

        if options.location is not None:
            sub_results.append(self.validate_regional_context(nutrients, micronutrients, options.location))
        if options.season:
            sub_results.append(self.validate_seasonal_context(nutrients, micronutrients, options.season))
        if options.crop_type:
            sub_results.append(self.validate_crop_specific_context(nutrients, micronutrients, options.crop_type))

        for sub in sub_results:
            combined.issues.extend(sub.issues)
            combined.anomalies.extend(sub.anomalies)
            combined.confidence = min(combined.confidence, sub.confidence)

        return combined
