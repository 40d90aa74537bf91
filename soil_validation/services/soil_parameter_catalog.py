"""
Soil Parameter Range Catalog.

Resolves the absolute / typical / optimal ranges for a soil parameter:
1. Regional override for the requested state (data/regional_soil_ranges.json)
2. Global default range (soil_validation_rules.PARAMETER_RANGES)
3. Permissive fallback range for unknown parameters

The catalog never raises for an unknown parameter name.
"""
from typing import Dict, List, Mapping, Optional
import json
import logging
import os

from soil_validation.services.soil_data_types import ParameterRange, ValidationOptions
from soil_validation.services.soil_validation_rules import PARAMETER_RANGES, FALLBACK_RANGE

logger = logging.getLogger(__name__)

REGIONAL_RANGES_PATH = os.environ.get(
    "SOIL_VALIDATION_REGIONAL_RANGES_PATH",
    os.path.join(os.path.dirname(__file__), "..", "data", "regional_soil_ranges.json"),
)

_regional_ranges_cache = None


def clear_regional_ranges_cache():
    """Clear the cache to reload regional ranges on next call."""
    global _regional_ranges_cache
    _regional_ranges_cache = None


def load_regional_ranges(path: Optional[str] = None) -> Dict:
    """Load raw regional range overrides from JSON file."""
    global _regional_ranges_cache
    if path is None and _regional_ranges_cache is not None:
        return _regional_ranges_cache

    try:
        with open(path or REGIONAL_RANGES_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        logger.error(f"[SoilCatalog] Error loading regional soil ranges: {e}")
        data = {"regions": {}}

    if path is None:
        _regional_ranges_cache = data
    return data


def _build_regional_map(raw: Mapping) -> Dict[str, Dict[str, ParameterRange]]:
    regional: Dict[str, Dict[str, ParameterRange]] = {}
    for state, params in (raw.get("regions") or {}).items():
        state_ranges = {}
        for name, bounds in params.items():
            try:
                param_range = ParameterRange.from_dict(bounds)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[SoilCatalog] Skipping malformed override {state}/{name}: {e}")
                continue
            if not param_range.is_consistent():
                logger.warning(f"[SoilCatalog] Skipping inconsistent override {state}/{name}")
                continue
            # Outlier scoring divides by the typical band width
            if param_range.typical.max <= param_range.typical.min:
                logger.warning(f"[SoilCatalog] Skipping zero-width typical range {state}/{name}")
                continue
            state_ranges[name] = param_range
        if state_ranges:
            regional[state] = state_ranges
    return regional


class ParameterRangeCatalog:
    """Immutable lookup of parameter ranges, with optional per-state overrides."""

    FALLBACK = ParameterRange.from_dict(FALLBACK_RANGE)

    def __init__(self, regional_overrides: Optional[Mapping] = None):
        """
        Build the catalog once.

        Args:
            regional_overrides: Optional raw override mapping in the JSON file
                shape ({"regions": {state: {parameter: range}}}). When omitted
                the JSON data file is used.
        """
        self._ranges: Dict[str, ParameterRange] = {
            name: ParameterRange.from_dict(bounds) for name, bounds in PARAMETER_RANGES.items()
        }
        raw = regional_overrides if regional_overrides is not None else load_regional_ranges()
        self._regional_ranges = _build_regional_map(raw)
        logger.debug(
            f"[SoilCatalog] Loaded {len(self._ranges)} parameter ranges, "
            f"{len(self._regional_ranges)} regional override sets"
        )

    def get_parameter_ranges(
        self,
        parameter_name: str,
        options: Optional[ValidationOptions] = None
    ) -> ParameterRange:
        """
        Get the validation ranges for a parameter.

        Args:
            parameter_name: Display name (e.g., 'pH', 'Nitrogen', 'Zinc')
            options: Validation options; options.location.state selects regional overrides

        Returns:
            ParameterRange (fallback range for unknown parameters)
        """
        if options is not None and options.location is not None:
            state_ranges = self._regional_ranges.get(options.location.state)
            if state_ranges and parameter_name in state_ranges:
                return state_ranges[parameter_name]

        return self._ranges.get(parameter_name, self.FALLBACK)

    def known_parameters(self) -> List[str]:
        return list(self._ranges.keys())

    def regional_states(self) -> List[str]:
        return list(self._regional_ranges.keys())
