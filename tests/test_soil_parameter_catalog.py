"""
Tests for the soil parameter range catalog.

Covers:
1. Built-in ranges and the fallback for unknown parameters
2. Regional overrides selected by options.location.state
3. Rejection of malformed / inconsistent overrides
4. JSON loading with error fallback
"""
import json

import pytest

from soil_validation.services.soil_data_types import Location, ValidationOptions
from soil_validation.services.soil_parameter_catalog import (
    ParameterRangeCatalog,
    clear_regional_ranges_cache,
    load_regional_ranges,
)


PUNJAB_PH = {
    "absolute": {"min": 3.0, "max": 11.0},
    "typical": {"min": 6.5, "max": 9.0},
    "optimal": {"min": 7.0, "max": 8.0},
}


def _options_for(state):
    return ValidationOptions(location=Location(state=state))


class TestBuiltInRanges:
    """Global default ranges."""

    def test_ph_ranges(self, catalog):
        ranges = catalog.get_parameter_ranges("pH")
        assert (ranges.absolute.min, ranges.absolute.max) == (3.0, 11.0)
        assert (ranges.typical.min, ranges.typical.max) == (4.5, 8.5)
        assert (ranges.optimal.min, ranges.optimal.max) == (6.0, 7.5)

    def test_nitrogen_ranges(self, catalog):
        ranges = catalog.get_parameter_ranges("Nitrogen")
        assert ranges.absolute.max == 1000
        assert (ranges.typical.min, ranges.typical.max) == (50, 500)
        assert (ranges.optimal.min, ranges.optimal.max) == (200, 300)

    def test_micronutrient_ranges(self, catalog):
        assert catalog.get_parameter_ranges("Zinc").typical.min == 0.2
        assert catalog.get_parameter_ranges("Boron").optimal.max == 1.0
        assert catalog.get_parameter_ranges("Sulfur").absolute.max == 100

    def test_every_builtin_range_is_consistent(self, catalog):
        for name in catalog.known_parameters():
            assert catalog.get_parameter_ranges(name).is_consistent(), name

    def test_known_parameters_order(self, catalog):
        names = catalog.known_parameters()
        assert len(names) == 12
        assert names[0] == "pH"
        assert names[-1] == "Sulfur"

    def test_unknown_parameter_uses_fallback(self, catalog):
        ranges = catalog.get_parameter_ranges("Molybdenum")
        assert (ranges.absolute.min, ranges.absolute.max) == (0, 1000)
        assert (ranges.typical.min, ranges.typical.max) == (0, 100)
        assert (ranges.optimal.min, ranges.optimal.max) == (10, 50)
        assert ranges.is_consistent()

    def test_lookup_is_case_sensitive(self, catalog):
        """Display names are matched exactly; 'ph' is not 'pH'."""
        assert catalog.get_parameter_ranges("ph") == ParameterRangeCatalog.FALLBACK


class TestRegionalOverrides:
    """Per-state overrides take precedence over global defaults."""

    @pytest.fixture
    def regional_catalog(self):
        return ParameterRangeCatalog(regional_overrides={"regions": {"Punjab": {"pH": PUNJAB_PH}}})

    def test_override_used_for_matching_state(self, regional_catalog):
        ranges = regional_catalog.get_parameter_ranges("pH", _options_for("Punjab"))
        assert (ranges.typical.min, ranges.typical.max) == (6.5, 9.0)

    def test_other_state_uses_global(self, regional_catalog):
        ranges = regional_catalog.get_parameter_ranges("pH", _options_for("Kerala"))
        assert (ranges.typical.min, ranges.typical.max) == (4.5, 8.5)

    def test_no_location_uses_global(self, regional_catalog):
        assert regional_catalog.get_parameter_ranges("pH").typical.max == 8.5
        assert regional_catalog.get_parameter_ranges("pH", ValidationOptions()).typical.max == 8.5

    def test_override_only_for_listed_parameters(self, regional_catalog):
        ranges = regional_catalog.get_parameter_ranges("Nitrogen", _options_for("Punjab"))
        assert (ranges.typical.min, ranges.typical.max) == (50, 500)

    def test_regional_states(self, regional_catalog):
        assert regional_catalog.regional_states() == ["Punjab"]

    def test_inconsistent_override_rejected(self):
        bad = {
            "absolute": {"min": 3.0, "max": 11.0},
            "typical": {"min": 7.5, "max": 9.0},
            "optimal": {"min": 6.0, "max": 7.0},  # optimal below typical
        }
        catalog = ParameterRangeCatalog(regional_overrides={"regions": {"Goa": {"pH": bad}}})
        assert catalog.regional_states() == []
        assert catalog.get_parameter_ranges("pH", _options_for("Goa")).typical.min == 4.5

    def test_zero_width_typical_override_rejected(self):
        flat = {
            "absolute": {"min": 3.0, "max": 11.0},
            "typical": {"min": 7.0, "max": 7.0},
            "optimal": {"min": 7.0, "max": 7.0},
        }
        catalog = ParameterRangeCatalog(regional_overrides={"regions": {"Goa": {"pH": flat}}})
        assert catalog.regional_states() == []

    def test_malformed_override_rejected(self):
        catalog = ParameterRangeCatalog(
            regional_overrides={"regions": {"Goa": {"pH": {"absolute": {"min": 3}}}}}
        )
        assert catalog.regional_states() == []


class TestRegionalRangesLoading:
    """JSON data file loading."""

    def test_missing_file_falls_back_to_empty(self, tmp_path):
        data = load_regional_ranges(str(tmp_path / "missing.json"))
        assert data == {"regions": {}}

    def test_invalid_json_falls_back_to_empty(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_regional_ranges(str(path)) == {"regions": {}}

    def test_loads_file_from_path(self, tmp_path):
        path = tmp_path / "regions.json"
        path.write_text(json.dumps({"regions": {"Punjab": {"pH": PUNJAB_PH}}}), encoding="utf-8")

        data = load_regional_ranges(str(path))
        catalog = ParameterRangeCatalog(regional_overrides=data)

        assert catalog.get_parameter_ranges("pH", _options_for("Punjab")).optimal.max == 8.0

    def test_bundled_data_file_has_no_overrides(self):
        clear_regional_ranges_cache()
        data = load_regional_ranges()
        assert data["regions"] == {}
        assert ParameterRangeCatalog().regional_states() == []
