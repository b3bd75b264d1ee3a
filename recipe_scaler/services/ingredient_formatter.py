"""
Ingredient Formatter.

This module formats parsed ingredients for display, storage and shopping
lists, parses ingredient lines without AI, and applies manual edits.
Manual edits are authoritative: they are never flagged for review.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from ..const import DEFAULT_CONFIDENCE
from ..models.ingredient import ParsedIngredient, ParsingMethod
from ..models.scaling import ScaledIngredient
from ..unit_converter import (
    canonical_unit,
    convert_ingredient_to_metric,
    convert_to_metric_with_density,
    format_quantity,
)
from .fraction_formatter import format_scaled_quantity

_LOGGER = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.85
MEDIUM_CONFIDENCE = 0.7

CONFIDENCE_COLORS = {
    "High": "green",
    "Medium": "yellow",
    "Low": "red",
}

_QUANTITY = r"[\d./½⅓⅔¼¾⅛⅜⅝⅞]+(?:\s+[\d./½⅓⅔¼¾⅛⅜⅝⅞]+)?(?:\s*[-–]\s*[\d./½⅓⅔¼¾⅛⅜⅝⅞]+)?"
_UNITS = (
    r"(?:cups?|tablespoons?|tbsps?|tbs|teaspoons?|tsps?|fl\.?\s*oz|ounces?|oz"
    r"|pounds?|lbs?|grams?|g|kilograms?|kg|milliliters?|ml|liters?|l"
    r"|pints?|quarts?|gallons?|pinch(?:es)?|dash(?:es)?|cloves?|cans?"
    r"|packages?|slices?|pieces?|sprigs?|bunch(?:es)?|heads?|stalks?|knobs?)"
)

# "250g flour"
_COMPACT_RE = re.compile(rf"^({_QUANTITY})({_UNITS})\.?\s+(.+)$", re.IGNORECASE)
# "1 1/2 cups flour"; the word boundary stops 'g' matching in 'garlic'
_STANDARD_RE = re.compile(rf"^({_QUANTITY})\s+({_UNITS})\b\.?\s+(.+)$", re.IGNORECASE)
# "2 eggs"
_UNITLESS_RE = re.compile(rf"^({_QUANTITY})\s+(.+)$", re.IGNORECASE)
# "3 T butter": capital T and lowercase t are spoon abbreviations
_SPOON_RE = re.compile(rf"^({_QUANTITY})\s+(T|t)\.?\s+(.+)$")


def format_ingredient(
    ingredient: ParsedIngredient,
    include_metric: bool = False,
    include_preparation: bool = True,
) -> str:
    """Format a parsed ingredient as one line.

    Args:
        ingredient: The parsed ingredient
        include_metric: Append the metric equivalent, e.g. '(240g)'
        include_preparation: Append preparation notes after a comma

    Returns:
        Formatted line, e.g. '2 cup flour (240g), sifted'
    """
    parts = [
        part for part in (
            ingredient.quantity,
            ingredient.unit,
            ingredient.ingredient_name,
        ) if part
    ]
    text = " ".join(parts)

    if include_metric and ingredient.has_metric:
        text += f" ({format_metric_conversion(ingredient)})"

    if include_preparation and ingredient.preparation_notes:
        text += f", {ingredient.preparation_notes}"

    return text


def format_ingredient_for_display(ingredient: ParsedIngredient) -> str:
    return format_ingredient(ingredient, include_metric=True, include_preparation=True)


def format_ingredient_for_storage(ingredient: ParsedIngredient) -> str:
    """Format an ingredient for the stored ingredient list.

    Lines a person wrote or edited are stored exactly as written.
    """
    if ingredient.parsing_method in (ParsingMethod.MANUAL, ParsingMethod.USER):
        return ingredient.original_text
    return format_ingredient(ingredient, include_metric=False, include_preparation=True)


def format_metric_conversion(ingredient: ParsedIngredient) -> str:
    if not ingredient.has_metric:
        return ""
    return f"{ingredient.metric_quantity}{ingredient.metric_unit}"


def has_metric_conversion(ingredient: ParsedIngredient) -> bool:
    return ingredient.has_metric


def confidence_label(confidence: float) -> str:
    """Return 'High', 'Medium' or 'Low' for a parser confidence."""
    if confidence >= HIGH_CONFIDENCE:
        return "High"
    if confidence >= MEDIUM_CONFIDENCE:
        return "Medium"
    return "Low"


def confidence_color(confidence: float) -> str:
    return CONFIDENCE_COLORS[confidence_label(confidence)]


def _split_line(text: str) -> dict[str, str | None]:
    """Break an ingredient line into quantity, unit, name and notes."""
    main, _, notes = text.partition(",")
    main = main.strip()
    fields: dict[str, str | None] = {
        "quantity": None,
        "unit": None,
        "ingredient_name": main or text,
        "preparation_notes": notes.strip() or None,
    }

    for pattern in (_SPOON_RE, _COMPACT_RE, _STANDARD_RE):
        match = pattern.match(main)
        if match:
            quantity, unit, name = match.groups()
            fields.update(
                quantity=quantity.strip(),
                unit=canonical_unit(unit),
                ingredient_name=name.strip(),
            )
            return fields

    match = _UNITLESS_RE.match(main)
    if match:
        quantity, name = match.groups()
        fields.update(quantity=quantity.strip(), ingredient_name=name.strip())

    return fields


def parse_ingredient_string(
    text: str,
    convert_volume: bool = False,
) -> ParsedIngredient:
    """Parse an ingredient line with patterns instead of AI.

    Handles compact ('250g flour'), standard ('1 1/2 cups flour, sifted')
    and unitless ('2 eggs') lines. The result is tagged as user-derived
    with medium confidence, so it is flagged for review.

    Args:
        text: Ingredient line as written
        convert_volume: Use the density-aware metric conversion

    Returns:
        The parsed ingredient

    Raises:
        ValueError: If the line is empty
    """
    if not text or not text.strip():
        raise ValueError("Ingredient text cannot be empty")

    fields = _split_line(text.strip())
    metric = convert_ingredient_to_metric(
        fields["quantity"],
        fields["unit"],
        fields["ingredient_name"],
        convert_volume=convert_volume,
    )
    _LOGGER.debug("Pattern-parsed '%s' as %s", text, fields)
    return ParsedIngredient(
        original_text=text.strip(),
        metric_quantity=metric.metric_quantity,
        metric_unit=metric.metric_unit,
        confidence=DEFAULT_CONFIDENCE,
        parsing_method=ParsingMethod.USER,
        **fields,
    )


def create_manual_parsed_ingredient(text: str) -> ParsedIngredient:
    """Create an ingredient from a line typed into the manual form."""
    parsed = parse_ingredient_string(text, convert_volume=True)
    return ParsedIngredient.model_validate({
        **parsed.model_dump(),
        "confidence": 1.0,
        "parsing_method": ParsingMethod.MANUAL,
    })


_RECALCULATE_METRIC_FIELDS = frozenset({"quantity", "unit", "ingredient_name"})


def apply_manual_edit(ingredient: ParsedIngredient, **changes: Any) -> ParsedIngredient:
    """Apply a manual edit to an ingredient.

    The result is always tagged manual with confidence 1.0 and is never
    flagged for review. When quantity, unit or name change and no metric
    value is given, the metric equivalent is recalculated.

    Args:
        ingredient: The ingredient being edited
        **changes: New field values, e.g. quantity='3', unit='cup'

    Returns:
        A new ParsedIngredient

    Raises:
        ValueError: If a change names an unknown field
    """
    unknown = set(changes) - set(ParsedIngredient.model_fields)
    if unknown:
        raise ValueError(f"Unknown ingredient fields: {', '.join(sorted(unknown))}")

    data = ingredient.model_dump()
    data.update(changes)

    metric_given = "metric_quantity" in changes or "metric_unit" in changes
    if not metric_given and _RECALCULATE_METRIC_FIELDS & set(changes):
        metric = convert_to_metric_with_density(
            data["quantity"], data["unit"], data["ingredient_name"])
        data["metric_quantity"], data["metric_unit"] = metric

    data["confidence"] = 1.0
    data["parsing_method"] = ParsingMethod.MANUAL
    _LOGGER.debug("Manual edit of '%s': %s", ingredient.original_text, changes)
    return ParsedIngredient.model_validate(data)


def get_ingredients_needing_review(
    ingredients: Sequence[ParsedIngredient],
) -> list[ParsedIngredient]:
    return [ingredient for ingredient in ingredients if ingredient.requires_manual_review]


def group_by_method(
    ingredients: Sequence[ParsedIngredient],
) -> dict[ParsingMethod, list[ParsedIngredient]]:
    groups: dict[ParsingMethod, list[ParsedIngredient]] = {
        method: [] for method in ParsingMethod
    }
    for ingredient in ingredients:
        groups[ingredient.parsing_method].append(ingredient)
    return groups


def format_scaled_ingredients(
    scaled_ingredients: Sequence[ScaledIngredient],
    convert_units: bool = False,
    convert_volume: bool = False,
) -> list[str]:
    """Format scaled ingredients as shopping list lines.

    Args:
        scaled_ingredients: Ingredients scaled to the current yield
        convert_units: Append the metric equivalent of the scaled amount
        convert_volume: Use the density-aware conversion for volume

    Returns:
        List of formatted lines
    """
    lines = []

    for idx, scaled in enumerate(scaled_ingredients):
        line = format_scaled_quantity(scaled)
        ingredient = scaled.original

        if convert_units and scaled.scaled_quantity is not None:
            metric = convert_ingredient_to_metric(
                format_quantity(scaled.scaled_quantity),
                ingredient.unit,
                ingredient.ingredient_name,
                convert_volume=convert_volume,
            )
            if metric.metric_quantity is not None and metric.metric_unit != ingredient.unit:
                line += f" ({metric.metric_quantity}{metric.metric_unit})"

        if ingredient.preparation_notes:
            line += f", {ingredient.preparation_notes}"

        _LOGGER.debug("Formatted ingredient %d as: '%s'", idx + 1, line)
        lines.append(line)

    return lines
