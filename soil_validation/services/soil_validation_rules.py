"""
Deterministic thresholds and reference ranges for soil data validation.

This module centralizes constants so the validation stages stay
deterministic, auditable, and consistent across services and tests.
"""

# ==================== PARAMETER RANGES ====================
# absolute = physically possible, typical = commonly observed, optimal = agronomic target
# Units: pH unitless, N/P/K kg/ha, Organic Carbon %, EC dS/m, micronutrients ppm

PARAMETER_RANGES = {
    "pH": {
        "absolute": {"min": 3.0, "max": 11.0},
        "typical": {"min": 4.5, "max": 8.5},
        "optimal": {"min": 6.0, "max": 7.5},
    },
    "Nitrogen": {
        "absolute": {"min": 0, "max": 1000},
        "typical": {"min": 50, "max": 500},
        "optimal": {"min": 200, "max": 300},
    },
    "Phosphorus": {
        "absolute": {"min": 0, "max": 200},
        "typical": {"min": 5, "max": 100},
        "optimal": {"min": 20, "max": 40},
    },
    "Potassium": {
        "absolute": {"min": 0, "max": 800},
        "typical": {"min": 50, "max": 400},
        "optimal": {"min": 120, "max": 200},
    },
    "Organic Carbon": {
        "absolute": {"min": 0, "max": 5.0},
        "typical": {"min": 0.2, "max": 2.0},
        "optimal": {"min": 0.5, "max": 1.5},
    },
    "Electrical Conductivity": {
        "absolute": {"min": 0, "max": 10.0},
        "typical": {"min": 0.1, "max": 4.0},
        "optimal": {"min": 0.2, "max": 0.8},
    },
    "Zinc": {
        "absolute": {"min": 0, "max": 20},
        "typical": {"min": 0.2, "max": 10},
        "optimal": {"min": 1.0, "max": 3.0},
    },
    "Iron": {
        "absolute": {"min": 0, "max": 100},
        "typical": {"min": 2, "max": 50},
        "optimal": {"min": 10, "max": 25},
    },
    "Manganese": {
        "absolute": {"min": 0, "max": 50},
        "typical": {"min": 1, "max": 30},
        "optimal": {"min": 5, "max": 15},
    },
    "Copper": {
        "absolute": {"min": 0, "max": 10},
        "typical": {"min": 0.1, "max": 5},
        "optimal": {"min": 0.5, "max": 2.0},
    },
    "Boron": {
        "absolute": {"min": 0, "max": 5},
        "typical": {"min": 0.1, "max": 2},
        "optimal": {"min": 0.5, "max": 1.0},
    },
    "Sulfur": {
        "absolute": {"min": 0, "max": 100},
        "typical": {"min": 2, "max": 50},
        "optimal": {"min": 10, "max": 20},
    },
}

FALLBACK_RANGE = {
    "absolute": {"min": 0, "max": 1000},
    "typical": {"min": 0, "max": 100},
    "optimal": {"min": 10, "max": 50},
}

DEFAULT_UNITS = {
    "pH": "",
    "Nitrogen": "kg/ha",
    "Phosphorus": "kg/ha",
    "Potassium": "kg/ha",
    "Organic Carbon": "%",
    "Electrical Conductivity": "dS/m",
}
MICRONUTRIENT_UNIT = "ppm"

PRIMARY_NUTRIENTS = ("Nitrogen", "Phosphorus", "Potassium")

# ==================== RANGE VALIDATION ====================

PH_RANGE_PENALTY = 0.20
PRIMARY_NUTRIENT_RANGE_PENALTY = 0.15
SECONDARY_PARAMETER_RANGE_PENALTY = 0.05  # Organic Carbon, EC
MICRONUTRIENT_RANGE_PENALTY = 0.05

NEGATIVE_VALUE_CONFIDENCE = 0.95
OUT_OF_ABSOLUTE_CONFIDENCE = 0.90
OUT_OF_TYPICAL_CONFIDENCE = 0.70

# ==================== STATISTICAL ANALYSIS ====================

# Typical range is assumed to span +/- 2 standard deviations
TYPICAL_RANGE_STD_DIVISOR = 4.0
OUTLIER_Z_THRESHOLD = 2.5
SIGNIFICANT_Z_THRESHOLD = 3.0
OUTLIER_CONFIDENCE_CAP = 0.9
CORRELATION_ISSUE_CONFIDENCE = 0.6

OUTLIER_DENSITY_WEIGHT = 0.3
CORRELATION_DENSITY_WEIGHT = 0.2

OC_TO_N_FACTOR = 20.0
OC_N_TOLERANCE = 0.5

CORRELATION_RULES = [
    {
        "parameters": ["Organic Carbon", "Nitrogen"],
        "expected_correlation": "positive",
        "strength": "moderate",
        "description": "Organic carbon should correlate with nitrogen availability",
    },
    {
        "parameters": ["pH", "Phosphorus"],
        "expected_correlation": "optimal_range",
        "strength": "moderate",
        "description": "Phosphorus availability is optimal at pH 6.0-7.5",
    },
]

# ==================== CROSS-PARAMETER RELATIONSHIPS ====================

NP_RATIO_MAX = 25.0
NP_RATIO_MIN = 5.0
NP_RATIO_SEVERE_MAX = 30.0
NP_RATIO_SEVERE_MIN = 3.0
NP_RATIO_CONFIDENCE = 0.8
NP_RATIO_PENALTY = 0.10

K_BALANCE_LOW_FACTOR = 0.5
K_BALANCE_HIGH_FACTOR = 3.0
K_BALANCE_CONFIDENCE = 0.7
K_BALANCE_PENALTY = 0.05

PH_P_LOW = 5.5
PH_P_HIGH = 8.0
EXPECTED_P_UNFAVORABLE_PH = 10.0
EXPECTED_P_FAVORABLE_PH = 20.0
PH_P_EXCESS_FACTOR = 1.5
PH_P_CONFIDENCE = 0.6

PH_MICRO_THRESHOLD = 7.5
PH_MICRO_CONFIDENCE = 0.8
PH_MICRO_PENALTY = 0.10

# ==================== CONTEXTUAL RULES ====================

ARID_STATE_MIN_PH = 6.0
POST_HARVEST_N_MAX = 300.0
RICE_MAX_PH = 8.0

# ==================== PARAMETER STATUS ====================

DEFICIENT_FACTOR = 0.7
EXCESSIVE_FACTOR = 1.3
DEFAULT_MEASUREMENT_CONFIDENCE = 0.8

# ==================== RECOMMENDATIONS ====================

REC_CRITICAL = [
    "CRITICAL: Retest soil sample immediately - critical validation errors detected",
    "Verify laboratory procedures and equipment calibration",
]
REC_ERROR = [
    "Verify measurement accuracy for parameters with validation errors",
    "Consider retesting soil sample to confirm unusual values",
]
REC_MANY_WARNINGS = "Multiple validation warnings detected - review soil management practices"
REC_HIGH_ANOMALY = [
    "Investigate causes of detected soil anomalies",
    "Consider consulting with soil science expert for unusual conditions",
]
REC_PH = "pH validation issues detected - verify pH meter calibration"
REC_NUTRIENTS = "Multiple nutrient validation issues - review fertilizer application records"
REC_PASSED = "Soil data validation passed - values appear reasonable and consistent"

WARNING_COUNT_THRESHOLD = 2
NUTRIENT_ISSUE_THRESHOLD = 1
