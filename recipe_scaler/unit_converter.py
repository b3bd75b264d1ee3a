"""
Unit normalization and metric conversion for recipe ingredients.

Canonicalizes unit spellings, classifies units, and converts imperial
quantities to metric. Two conversion entry points exist on purpose:
``convert_to_metric`` never rewrites volume so ingredient ratios stay exact,
while ``convert_to_metric_with_density`` turns volume into weight for known
ingredients. Callers pick one explicitly (see ``convert_ingredient_to_metric``).
"""
from __future__ import annotations

import logging
import math
import re
from enum import Enum
from typing import NamedTuple

_LOGGER = logging.getLogger(__name__)


class UnitCategory(str, Enum):
    """Measurement class of a canonical unit."""

    METRIC = "metric"
    IMPERIAL_VOLUME = "imperial_volume"
    IMPERIAL_WEIGHT = "imperial_weight"
    NON_CONVERTIBLE = "non_convertible"
    UNKNOWN = "unknown"


class MetricConversion(NamedTuple):
    """Metric equivalent of a quantity; both fields are None when there is none."""

    metric_quantity: str | None
    metric_unit: str | None


NO_CONVERSION = MetricConversion(None, None)

# Spellings that only make sense with their original case
CASE_SENSITIVE_UNITS = {
    "T": "tbsp",
    "Tb": "tbsp",
    "t": "tsp",
}

# Lowercase spelling -> canonical unit token
UNIT_ALIASES = {
    # Imperial volume
    "cup": "cup",
    "cups": "cup",
    "c": "cup",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tbsp": "tbsp",
    "tbsps": "tbsp",
    "tbs": "tbsp",
    "tbl": "tbsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tsp": "tsp",
    "tsps": "tsp",
    "fluid ounce": "fl oz",
    "fluid ounces": "fl oz",
    "fl oz": "fl oz",
    "fl. oz": "fl oz",
    "floz": "fl oz",
    "pint": "pint",
    "pints": "pint",
    "pt": "pint",
    "quart": "quart",
    "quarts": "quart",
    "qt": "quart",
    "gallon": "gallon",
    "gallons": "gallon",
    "gal": "gallon",
    # Imperial weight
    "ounce": "oz",
    "ounces": "oz",
    "oz": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lb": "lb",
    "lbs": "lb",
    # Metric
    "gram": "g",
    "grams": "g",
    "gramme": "g",
    "grammes": "g",
    "g": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "kilo": "kg",
    "kilos": "kg",
    "kg": "kg",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "ml": "ml",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "l": "l",
    # Kitchen units with no metric equivalent
    "pinch": "pinch",
    "pinches": "pinch",
    "dash": "dash",
    "dashes": "dash",
    "clove": "clove",
    "cloves": "clove",
    "whole": "whole",
    "can": "can",
    "cans": "can",
    "package": "package",
    "packages": "package",
    "pkg": "package",
    "each": "each",
    "ea": "each",
    "knob": "knob",
    "knobs": "knob",
    "sprig": "sprig",
    "sprigs": "sprig",
    "bunch": "bunch",
    "bunches": "bunch",
    "head": "head",
    "heads": "head",
    "stalk": "stalk",
    "stalks": "stalk",
    "leaf": "leaf",
    "leaves": "leaf",
    "slice": "slice",
    "slices": "slice",
    "piece": "piece",
    "pieces": "piece",
}

METRIC_UNITS = frozenset({"g", "kg", "ml", "l"})
IMPERIAL_VOLUME_UNITS = frozenset(
    {"cup", "tbsp", "tsp", "fl oz", "pint", "quart", "gallon"})
IMPERIAL_WEIGHT_UNITS = frozenset({"oz", "lb"})
NON_CONVERTIBLE_UNITS = frozenset({
    "pinch", "dash", "clove", "whole", "can", "package", "each",
    "knob", "sprig", "bunch", "head", "stalk", "leaf", "slice", "piece",
})

UNIT_DISPLAY_LABELS = {
    "ml": "mL",
    "l": "L",
}

# Volume conversions to milliliters (US customary)
VOLUME_TO_ML = {
    "cup": 236.588,
    "tbsp": 14.787,
    "tsp": 4.929,
    "fl oz": 29.574,
    "pint": 473.176,
    "quart": 946.353,
    "gallon": 3785.41,
}

# Weight conversions to grams
WEIGHT_TO_G = {
    "oz": 28.3495,
    "lb": 453.592,
}

# Grams per US cup; None marks liquids that stay volumetric
DENSITY_GRAMS_PER_CUP: dict[str, float | None] = {
    "all-purpose flour": 120,
    "bread flour": 127,
    "whole wheat flour": 120,
    "flour": 120,
    "granulated sugar": 200,
    "brown sugar": 220,
    "powdered sugar": 120,
    "sugar": 200,
    "butter": 227,
    "cocoa powder": 120,
    "honey": 340,
    "oil": 224,
    "milk": None,
    "buttermilk": None,
    "water": None,
}

_UNICODE_FRACTIONS = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}
_UNICODE_FRACTION_CHARS = "".join(_UNICODE_FRACTIONS)
_MIXED_UNICODE_RE = re.compile(rf"(\d)([{_UNICODE_FRACTION_CHARS}])")
_RANGE_SPLIT_RE = re.compile(r"\s*(?:-|–|—|\bto\b)\s*")


def _lookup_unit(unit: str | None) -> str | None:
    """Return the canonical token for a unit spelling, or None if unknown."""
    if unit is None:
        return None
    text = unit.strip()
    if not text:
        return None
    if text in CASE_SENSITIVE_UNITS:
        return CASE_SENSITIVE_UNITS[text]
    key = " ".join(text.lower().rstrip(".").split())
    return UNIT_ALIASES.get(key)


def normalize_unit(unit: str | None) -> str:
    """Normalize a unit spelling to its canonical token.

    Args:
        unit: Unit as written, e.g. 'Cups', 'T', 'grams'

    Returns:
        The canonical unit token, or 'each' for empty or unknown units

    Examples:
        >>> normalize_unit('Tablespoons')
        'tbsp'
        >>> normalize_unit('T')
        'tbsp'
        >>> normalize_unit('handful')
        'each'
    """
    return _lookup_unit(unit) or "each"


def canonical_unit(unit: str | None) -> str | None:
    """Canonicalize a recognised unit, keeping unrecognised words as written."""
    if unit is None or not unit.strip():
        return None
    return _lookup_unit(unit) or unit.strip()


def is_valid_unit(unit: str | None) -> bool:
    """Return True if the unit spelling is recognised."""
    return _lookup_unit(unit) is not None


def classify_unit(unit: str | None) -> UnitCategory:
    """Classify a unit spelling into its measurement category."""
    canonical = _lookup_unit(unit)
    if canonical is None:
        return UnitCategory.UNKNOWN
    if canonical in METRIC_UNITS:
        return UnitCategory.METRIC
    if canonical in IMPERIAL_VOLUME_UNITS:
        return UnitCategory.IMPERIAL_VOLUME
    if canonical in IMPERIAL_WEIGHT_UNITS:
        return UnitCategory.IMPERIAL_WEIGHT
    return UnitCategory.NON_CONVERTIBLE


def is_metric_unit(unit: str | None) -> bool:
    return classify_unit(unit) is UnitCategory.METRIC


def unit_display_label(unit: str | None) -> str:
    """Return the label a unit is displayed with ('ml' -> 'mL')."""
    canonical = normalize_unit(unit)
    return UNIT_DISPLAY_LABELS.get(canonical, canonical)


def _parse_fraction(fraction_str: str) -> float:
    """Parse a fraction string like '1/2' or a plain number like '2.5'.

    Raises:
        ValueError: If the string is not a number or fraction
        ZeroDivisionError: If the denominator is zero
    """
    if "/" not in fraction_str:
        return float(fraction_str)

    parts = fraction_str.strip().split("/")
    if len(parts) != 2:
        raise ValueError(f"Invalid fraction format: {fraction_str}")

    numerator = float(parts[0].strip())
    denominator = float(parts[1].strip())

    if denominator == 0:
        raise ZeroDivisionError(
            f"Fraction has zero denominator: {fraction_str}")

    return numerator / denominator


def _apply_unicode_fractions(text: str) -> str:
    """Replace unicode fraction characters with ASCII fractions.

    Mixed numbers are split so they parse as a whole plus a fraction:
    '2½' -> '2 1/2'.
    """
    text = _MIXED_UNICODE_RE.sub(r"\1 \2", text)
    for fraction_char, ascii_fraction in _UNICODE_FRACTIONS.items():
        text = text.replace(fraction_char, ascii_fraction)
    return text


def _parse_single_quantity(text: str) -> float | None:
    """Parse '2', '2.5', '1/2' or a mixed number such as '1 1/2'."""
    parts = text.split()
    if not 1 <= len(parts) <= 2:
        return None
    try:
        values = [_parse_fraction(part) for part in parts]
    except (ValueError, ZeroDivisionError):
        return None
    if not all(math.isfinite(value) for value in values):
        return None
    if len(values) == 2:
        # Only "whole fraction" pairs are a single quantity
        whole, fraction = values
        if whole != int(whole) or not 0 <= fraction < 1:
            return None
    return sum(values)


def parse_quantity(quantity: str | float | int | None) -> float | None:
    """Parse a quantity string into a number.

    Accepts plain numbers, fractions, mixed numbers, unicode fractions and
    ranges (the midpoint is used).

    Args:
        quantity: Quantity as text, e.g. '2', '1/2', '1 1/2', '2½', '2-3'

    Returns:
        The numeric value, or None if the text is not a quantity

    Examples:
        >>> parse_quantity('1 1/2')
        1.5
        >>> parse_quantity('2-3')
        2.5
        >>> parse_quantity('abc') is None
        True
    """
    if quantity is None or isinstance(quantity, bool):
        return None
    if isinstance(quantity, (int, float)):
        return float(quantity) if math.isfinite(quantity) else None

    text = _apply_unicode_fractions(str(quantity)).strip()
    if not text:
        return None

    bounds = _RANGE_SPLIT_RE.split(text)
    if len(bounds) == 2:
        low = _parse_single_quantity(bounds[0])
        high = _parse_single_quantity(bounds[1])
        if low is None or high is None:
            _LOGGER.debug("Unparseable quantity range '%s'", quantity)
            return None
        return (low + high) / 2
    if len(bounds) > 2:
        return None

    value = _parse_single_quantity(text)
    if value is None:
        _LOGGER.debug("Unparseable quantity '%s'", quantity)
    return value


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def smart_round(value: float) -> int:
    """Round to a kitchen-friendly increment that depends on magnitude.

    Examples:
        >>> smart_round(227)
        225
        >>> smart_round(454)
        450
        >>> smart_round(7.09)
        7
    """
    if value < 10:
        step = 1
    elif value < 50:
        step = 5
    elif value < 100:
        step = 10
    elif value < 500:
        step = 25
    elif value < 1000:
        step = 50
    else:
        step = 100
    return _round_half_up(value / step) * step


def format_quantity(quantity: float | int | None) -> str:
    """
    Format quantity to remove unnecessary decimals.

    Args:
        quantity: The numeric quantity (can be int, float, or None)

    Returns:
        Formatted string (empty string if quantity is None)

    Examples:
        >>> format_quantity(2.0)
        '2'
        >>> format_quantity(2.5)
        '2.5'
    """
    if quantity is None:
        return ""

    if quantity == int(quantity):
        return str(int(quantity))

    return f"{quantity:.2f}".rstrip("0").rstrip(".")


def _pass_through(quantity: str | float | int, canonical: str) -> MetricConversion:
    if isinstance(quantity, str):
        return MetricConversion(quantity.strip(), canonical)
    return MetricConversion(format_quantity(quantity), canonical)


def _is_blank(value: str | float | int | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def convert_to_metric(
    quantity: str | float | int | None, unit: str | None
) -> MetricConversion:
    """Convert an ingredient quantity to metric without touching volume.

    Metric quantities pass through unchanged. Imperial weight becomes grams
    with smart rounding. Imperial volume and kitchen units such as 'pinch'
    have no conversion, so the ratio between ingredients stays exact.

    Args:
        quantity: Quantity text, e.g. '8', '1/2', '1-2'
        unit: Unit as written, e.g. 'oz', 'pounds', 'g'

    Returns:
        MetricConversion with both fields set, or both None

    Examples:
        >>> convert_to_metric('8', 'oz')
        MetricConversion(metric_quantity='225', metric_unit='g')
        >>> convert_to_metric('1', 'cup')
        MetricConversion(metric_quantity=None, metric_unit=None)
    """
    if _is_blank(quantity) or _is_blank(unit):
        return NO_CONVERSION

    canonical = _lookup_unit(unit)
    if canonical is None:
        _LOGGER.debug("No conversion for unknown unit '%s'", unit)
        return NO_CONVERSION

    if canonical in METRIC_UNITS:
        return _pass_through(quantity, canonical)

    if canonical not in WEIGHT_TO_G:
        return NO_CONVERSION

    value = parse_quantity(quantity)
    if value is None:
        return NO_CONVERSION

    grams = smart_round(value * WEIGHT_TO_G[canonical])
    _LOGGER.debug("Converted %s %s -> %d g", quantity, unit, grams)
    return MetricConversion(str(grams), "g")


def lookup_density(ingredient_name: str | None) -> tuple[str, float | None] | None:
    """Find the density entry that best matches an ingredient name.

    The longest table key found as whole words in the name wins, so
    'brown sugar' beats 'sugar' and 'buttermilk' beats 'butter'.

    Returns:
        (key, grams_per_cup) with grams_per_cup None for liquids, or None
    """
    if not ingredient_name:
        return None
    name = ingredient_name.strip().lower()
    best = None
    for key in DENSITY_GRAMS_PER_CUP:
        if re.search(rf"\b{re.escape(key)}\b", name):
            if best is None or len(key) > len(best):
                best = key
    if best is None:
        return None
    return best, DENSITY_GRAMS_PER_CUP[best]


def convert_to_metric_with_density(
    quantity: str | float | int | None,
    unit: str | None,
    ingredient_name: str | None = None,
) -> MetricConversion:
    """Convert to metric, turning volume into weight for known ingredients.

    Volume of an ingredient found in the density table becomes grams; other
    volume becomes milliliters. Weight becomes grams. Results are rounded
    to whole units without smart rounding.

    Args:
        quantity: Quantity text, e.g. '1', '1/3', '2-3'
        unit: Unit as written, e.g. 'cups', 'tbsp'
        ingredient_name: Ingredient name used for the density lookup

    Returns:
        MetricConversion with both fields set, or both None

    Examples:
        >>> convert_to_metric_with_density('1', 'cup', 'all-purpose flour')
        MetricConversion(metric_quantity='120', metric_unit='g')
        >>> convert_to_metric_with_density('1/3', 'cup')
        MetricConversion(metric_quantity='79', metric_unit='ml')
    """
    if _is_blank(quantity) or _is_blank(unit):
        return NO_CONVERSION

    canonical = _lookup_unit(unit)
    if canonical is None:
        return NO_CONVERSION

    if canonical in METRIC_UNITS:
        return _pass_through(quantity, canonical)

    if canonical in NON_CONVERTIBLE_UNITS:
        return NO_CONVERSION

    value = parse_quantity(quantity)
    if value is None:
        return NO_CONVERSION

    if canonical in WEIGHT_TO_G:
        return MetricConversion(
            str(_round_half_up(value * WEIGHT_TO_G[canonical])), "g")

    milliliters = value * VOLUME_TO_ML[canonical]
    density = lookup_density(ingredient_name)
    if density is not None and density[1] is not None:
        key, grams_per_cup = density
        cups = milliliters / VOLUME_TO_ML["cup"]
        grams = _round_half_up(cups * grams_per_cup)
        _LOGGER.debug("Density conversion for '%s' (%s): %s %s -> %d g",
                      ingredient_name, key, quantity, unit, grams)
        return MetricConversion(str(grams), "g")

    return MetricConversion(str(_round_half_up(milliliters)), "ml")


def convert_ingredient_to_metric(
    quantity: str | float | int | None,
    unit: str | None,
    ingredient_name: str | None = None,
    *,
    convert_volume: bool = False,
) -> MetricConversion:
    """Convert using the variant selected by ``convert_volume``."""
    if convert_volume:
        return convert_to_metric_with_density(quantity, unit, ingredient_name)
    return convert_to_metric(quantity, unit)
