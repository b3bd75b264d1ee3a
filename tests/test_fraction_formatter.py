"""
Test fraction display of scaled quantities.
"""
import pytest

from recipe_scaler.models import ScaledIngredient
from recipe_scaler.services.fraction_formatter import (
    decimal_to_fraction,
    format_display_quantity,
    format_scaled_quantity,
    fraction_to_decimal,
)


class TestDecimalToFraction:
    """Test converting decimals to kitchen fractions."""

    def test_mixed_number(self):
        display = decimal_to_fraction(1.5)
        assert display.formatted == "1 1/2"
        assert (display.whole, display.numerator, display.denominator) == (1, 1, 2)

    def test_thirds_within_tolerance(self):
        assert decimal_to_fraction(0.333).formatted == "1/3"
        assert decimal_to_fraction(2.667).formatted == "2 2/3"

    def test_whole_numbers(self):
        display = decimal_to_fraction(2.0)
        assert display.formatted == "2"
        assert display.numerator == 0

    def test_proper_fraction_has_no_whole_part(self):
        display = decimal_to_fraction(0.75)
        assert display.formatted == "3/4"
        assert display.whole == 0

    def test_fallback_to_decimal(self):
        assert decimal_to_fraction(0.1).formatted == "0.1"
        assert decimal_to_fraction(1.9).formatted == "1.9"


class TestFormatDisplayQuantity:
    """Test the fraction/decimal display switch."""

    def test_fraction_symbols(self):
        assert format_display_quantity(1.5) == "1 1/2"

    def test_plain_decimals(self):
        assert format_display_quantity(1.5, use_fraction_symbols=False) == "1.5"

    def test_missing_quantity(self):
        assert format_display_quantity(None) == ""

    def test_fraction_to_decimal(self):
        assert fraction_to_decimal("1 1/2") == pytest.approx(1.5)
        assert fraction_to_decimal(None) is None


class TestFormatScaledQuantity:
    """Test formatting a scaled ingredient line."""

    def test_scaled_line(self, make_ingredient):
        scaled = ScaledIngredient(
            original=make_ingredient("flour", "2", "cup"),
            scaled_quantity=3.0,
        )
        assert format_scaled_quantity(scaled) == "3 cup flour"

    def test_line_without_quantity(self, make_ingredient):
        scaled = ScaledIngredient(original=make_ingredient("salt"))
        assert format_scaled_quantity(scaled) == "salt"
