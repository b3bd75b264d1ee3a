"""
Fraction Formatter.

Converts decimal quantities into cooking-friendly fractions ('1 1/2') and
back. Only the common kitchen fractions are used; anything else is shown
as a short decimal.
"""
from __future__ import annotations

import math

from ..models.scaling import FractionDisplay, ScaledIngredient
from ..unit_converter import format_quantity, parse_quantity

# (decimal value, numerator, denominator), checked in this order
COMMON_FRACTIONS = [
    (0.125, 1, 8),
    (0.25, 1, 4),
    (0.333, 1, 3),
    (0.5, 1, 2),
    (0.666, 2, 3),
    (0.75, 3, 4),
]
FRACTION_TOLERANCE = 0.02
WHOLE_NUMBER_TOLERANCE = 0.01


def decimal_to_fraction(value: float) -> FractionDisplay:
    """Convert a decimal quantity to a fraction display.

    Args:
        value: Quantity to display, e.g. 1.5

    Returns:
        FractionDisplay with whole/numerator/denominator and the formatted text

    Examples:
        >>> decimal_to_fraction(1.5).formatted
        '1 1/2'
        >>> decimal_to_fraction(0.333).formatted
        '1/3'
        >>> decimal_to_fraction(0.1).formatted
        '0.1'
    """
    whole = math.floor(value)
    remainder = value - whole

    if remainder < WHOLE_NUMBER_TOLERANCE:
        return FractionDisplay(whole=whole, formatted=str(whole))

    for decimal, numerator, denominator in COMMON_FRACTIONS:
        if abs(remainder - decimal) < FRACTION_TOLERANCE:
            fraction = f"{numerator}/{denominator}"
            formatted = f"{whole} {fraction}" if whole > 0 else fraction
            return FractionDisplay(
                whole=whole,
                numerator=numerator,
                denominator=denominator,
                formatted=formatted,
            )

    formatted = f"{value:.2f}".rstrip("0").rstrip(".")
    return FractionDisplay(whole=whole, formatted=formatted)


def fraction_to_decimal(text: str | None) -> float | None:
    """Convert quantity text such as '1 1/2' or '2-3' back to a number."""
    return parse_quantity(text)


def format_display_quantity(value: float | None, use_fraction_symbols: bool = True) -> str:
    """Format a scaled quantity as a fraction or as a plain decimal."""
    if value is None:
        return ""
    if use_fraction_symbols:
        return decimal_to_fraction(value).formatted
    return format_quantity(value)


def format_scaled_quantity(scaled: ScaledIngredient) -> str:
    """Format a scaled ingredient as '<quantity> <unit> <name>'.

    Ingredients without a quantity are shown by name alone.
    """
    name = scaled.original.ingredient_name
    if scaled.scaled_quantity is None:
        return name

    quantity = decimal_to_fraction(scaled.scaled_quantity).formatted
    unit = scaled.original.unit or ""
    return " ".join(part for part in (quantity, unit, name) if part).strip()
