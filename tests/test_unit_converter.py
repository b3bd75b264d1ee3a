"""
Test unit normalization and metric conversion.
"""
import pytest

from recipe_scaler.unit_converter import (
    NO_CONVERSION,
    MetricConversion,
    UnitCategory,
    canonical_unit,
    classify_unit,
    convert_ingredient_to_metric,
    convert_to_metric,
    convert_to_metric_with_density,
    format_quantity,
    is_metric_unit,
    is_valid_unit,
    lookup_density,
    normalize_unit,
    parse_quantity,
    smart_round,
    unit_display_label,
)


class TestNormalizeUnit:
    """Test unit spelling normalization."""

    @pytest.mark.parametrize("spelling,expected", [
        ("Tablespoons", "tbsp"),
        ("tbsp", "tbsp"),
        ("T", "tbsp"),
        ("t", "tsp"),
        ("cups", "cup"),
        ("fl. oz.", "fl oz"),
        ("Pounds", "lb"),
        ("grams", "g"),
        ("Litres", "l"),
        ("cloves", "clove"),
    ])
    def test_known_spellings(self, spelling, expected):
        assert normalize_unit(spelling) == expected

    def test_unknown_and_empty_fall_back_to_each(self):
        assert normalize_unit("handful") == "each"
        assert normalize_unit("") == "each"
        assert normalize_unit(None) == "each"

    def test_canonical_unit_keeps_unknown_words(self):
        assert canonical_unit("Cups") == "cup"
        assert canonical_unit("Handful") == "Handful"
        assert canonical_unit("  ") is None
        assert canonical_unit(None) is None

    def test_is_valid_unit(self):
        assert is_valid_unit("tsp")
        assert not is_valid_unit("handful")


class TestClassifyUnit:
    """Test unit categories."""

    def test_categories(self):
        assert classify_unit("g") is UnitCategory.METRIC
        assert classify_unit("cups") is UnitCategory.IMPERIAL_VOLUME
        assert classify_unit("lbs") is UnitCategory.IMPERIAL_WEIGHT
        assert classify_unit("pinch") is UnitCategory.NON_CONVERTIBLE
        assert classify_unit("handful") is UnitCategory.UNKNOWN

    def test_is_metric_unit(self):
        assert is_metric_unit("ml")
        assert not is_metric_unit("oz")

    def test_display_label(self):
        assert unit_display_label("milliliters") == "mL"
        assert unit_display_label("l") == "L"
        assert unit_display_label("cup") == "cup"


class TestParseQuantity:
    """Test quantity parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("2", 2.0),
        ("2.5", 2.5),
        ("1/2", 0.5),
        ("1 1/2", 1.5),
        ("2½", 2.5),
        ("¾", 0.75),
        ("2-3", 2.5),
        ("1 to 2", 1.5),
        (3, 3.0),
    ])
    def test_valid_quantities(self, text, expected):
        assert parse_quantity(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "abc", "1/0", "inf", "2 3", None, "1-2-3"])
    def test_invalid_quantities(self, text):
        assert parse_quantity(text) is None


class TestRounding:
    """Test smart rounding and quantity formatting."""

    def test_smart_round_examples(self):
        assert smart_round(227) == 225
        assert smart_round(454) == 450
        assert smart_round(7.09) == 7

    def test_smart_round_rounds_half_up(self):
        assert smart_round(12.5) == 15
        assert smart_round(2.5) == 3

    def test_smart_round_increments(self):
        assert smart_round(73) == 70
        assert smart_round(907) == 900
        assert smart_round(1360) == 1400

    def test_format_quantity(self):
        assert format_quantity(2.0) == "2"
        assert format_quantity(2.5) == "2.5"
        assert format_quantity(0.333) == "0.33"
        assert format_quantity(None) == ""


class TestConvertToMetric:
    """Test the conversion that leaves volume alone."""

    @pytest.mark.parametrize("quantity", ["250", "1.5", "1/2", "2-3"])
    def test_metric_passes_through(self, quantity):
        assert convert_to_metric(quantity, "g") == MetricConversion(quantity, "g")

    def test_metric_unit_is_canonicalized(self):
        assert convert_to_metric("500", "grams") == ("500", "g")
        assert convert_to_metric("1", "Litres") == ("1", "l")

    def test_weight_becomes_grams(self):
        assert convert_to_metric("8", "oz") == ("225", "g")
        assert convert_to_metric("1", "lb") == ("450", "g")
        assert convert_to_metric("2", "pounds") == ("900", "g")

    def test_volume_is_not_converted(self):
        assert convert_to_metric("1", "cup") == NO_CONVERSION
        assert convert_to_metric("2", "tbsp") == NO_CONVERSION

    def test_no_conversion_cases(self):
        assert convert_to_metric("2", "pinch") == NO_CONVERSION
        assert convert_to_metric("2", "handful") == NO_CONVERSION
        assert convert_to_metric(None, "g") == NO_CONVERSION
        assert convert_to_metric("2", None) == NO_CONVERSION
        assert convert_to_metric("some", "oz") == NO_CONVERSION


class TestDensityConversion:
    """Test the conversion that turns volume into weight."""

    def test_flour_cup_becomes_grams(self):
        assert convert_to_metric_with_density("1", "cup", "all-purpose flour") == ("120", "g")

    def test_unknown_ingredient_becomes_milliliters(self):
        assert convert_to_metric_with_density("1/3", "cup") == ("79", "ml")

    def test_liquids_stay_volumetric(self):
        assert convert_to_metric_with_density("1", "cup", "milk") == ("237", "ml")
        assert convert_to_metric_with_density("1", "cup", "buttermilk") == ("237", "ml")

    def test_spoon_of_butter(self):
        assert convert_to_metric_with_density("2", "tbsp", "butter") == ("28", "g")

    def test_weight_is_not_smart_rounded(self):
        assert convert_to_metric_with_density("1", "lb", "beef") == ("454", "g")

    def test_kitchen_units_have_no_conversion(self):
        assert convert_to_metric_with_density("2", "cloves", "garlic") == NO_CONVERSION

    def test_longest_density_key_wins(self):
        assert lookup_density("light brown sugar") == ("brown sugar", 220)
        assert lookup_density("buttermilk") == ("buttermilk", None)
        assert lookup_density("saffron") is None

    def test_dispatcher(self):
        assert convert_ingredient_to_metric("1", "cup", "flour") == NO_CONVERSION
        assert convert_ingredient_to_metric(
            "1", "cup", "flour", convert_volume=True) == ("120", "g")
