"""
Instruction Matcher.

Finds ingredient quantity references ("2 cups of flour", "**3 eggs**") in
instruction text and rebuilds them with a new quantity. Both the segmented
instruction view and the quick-scale text view are built on this module,
so they always agree on what counts as a reference.

A reference is, in order: optional emphasis markers, a quantity, an
optional unit, an optional 'of'/'with', an ingredient name with an optional
plural suffix, and optional closing emphasis markers.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from functools import lru_cache

from ..models.instruction import IngredientReference
from ..unit_converter import CASE_SENSITIVE_UNITS, UNIT_ALIASES
from .inflection import is_plural, is_uncountable, pluralize, singularize

_LOGGER = logging.getLogger(__name__)

QUANTITY_PATTERN = (
    r"\d+\s+\d+/\d+"
    r"|\d+/\d+"
    r"|\d+(?:\.\d+)?[½⅓⅔¼¾⅛⅜⅝⅞]?"
    r"|[½⅓⅔¼¾⅛⅜⅝⅞]"
)

# Unit spellings that never sit between a quantity and a counted name
NON_COUNTING_UNITS = frozenset({"each", "ea", "whole"})


def _unit_pattern() -> str:
    """Alternation of every unit spelling the converter knows, longest first."""
    spellings = sorted(
        (alias for alias in UNIT_ALIASES if alias not in NON_COUNTING_UNITS),
        key=lambda alias: (-len(alias), alias),
    )
    words = "|".join(
        r"\s*".join(re.escape(part) for part in alias.split())
        for alias in spellings
    )
    case_sensitive = "|".join(
        sorted(CASE_SENSITIVE_UNITS, key=lambda alias: (-len(alias), alias)))
    return rf"{words}|(?-i:{case_sensitive})"


UNIT_PATTERN = _unit_pattern()

# Units written as abbreviations never change with the quantity
ABBREVIATED_UNITS = frozenset({
    "tbsp", "tbsps", "tbs", "tbl", "tb", "t", "tsp", "tsps", "c",
    "oz", "fl oz", "fl. oz", "floz", "lb", "lbs", "pt", "qt", "gal",
    "g", "kg", "ml", "l", "pkg",
})

OPT_OUT_PHRASES = ("to taste", "as needed", "for garnish", "optional", "if desired")

# Tested against the text from a reference to the end of the instruction
OPT_OUT_PATTERNS = [
    re.compile(rf"\b{re.escape(phrase)}[\s.,;:!)\]]*$", re.IGNORECASE)
    for phrase in OPT_OUT_PHRASES
]


def _normalize_name(name: str) -> str:
    return " ".join(name.lower().split())


def _name_pattern(name: str) -> str:
    return r"\s+".join(re.escape(word) for word in name.split())


@lru_cache(maxsize=256)
def _compile_reference_pattern(
    names: tuple[str, ...],
) -> tuple[re.Pattern[str], dict[str, int]] | None:
    """Compile one pattern matching a reference to any of the names.

    Duplicate names map to the earliest registered ingredient. Names are
    tried longest first, so at a given start the longest name wins.
    """
    index_by_name: dict[str, int] = {}
    for index, name in enumerate(names):
        key = _normalize_name(name)
        if key and key not in index_by_name:
            index_by_name[key] = index

    if not index_by_name:
        return None

    ordered = sorted(index_by_name, key=lambda key: (-len(key), index_by_name[key]))
    alternation = "|".join(_name_pattern(key) for key in ordered)

    pattern = re.compile(
        r"(?<![\w/.\-])"
        r"(?P<pre>\*{0,2})"
        rf"(?P<quantity>{QUANTITY_PATTERN})"
        r"(?P<quantity_gap>\s*)"
        rf"(?:(?P<unit>{UNIT_PATTERN})\b(?P<unit_gap>\.?\s*))?"
        r"(?:(?P<preposition>of|with)(?P<preposition_gap>\s+))?"
        rf"(?P<name>{alternation})"
        r"(?P<plural>es|s)?(?![^\W\d_])"
        r"(?P<post>\*{0,2})",
        re.IGNORECASE,
    )
    return pattern, index_by_name


def is_opt_out(text: str) -> bool:
    """True if the text ends with a phrase such as 'to taste' or 'as needed'."""
    return any(pattern.search(text) for pattern in OPT_OUT_PATTERNS)


def _to_reference(
    match: re.Match[str],
    names: Sequence[str],
    index_by_name: dict[str, int],
    offset: int = 0,
) -> IngredientReference:
    index = index_by_name[_normalize_name(match.group("name"))]
    return IngredientReference(
        full_match=match.group(0),
        ingredient_name=names[index],
        ingredient_index=index,
        start_index=match.start() + offset,
        end_index=match.end() + offset,
        pre_format=match.group("pre"),
        original_quantity=match.group("quantity"),
        quantity_gap=match.group("quantity_gap"),
        unit=match.group("unit"),
        unit_gap=match.group("unit_gap") or "",
        preposition=match.group("preposition"),
        preposition_gap=match.group("preposition_gap") or "",
        name_text=match.group("name"),
        plural_suffix=match.group("plural") or "",
        post_format=match.group("post"),
    )


def find_ingredient_references(
    text: str,
    ingredient_names: Sequence[str],
    *,
    respect_opt_out: bool = True,
    max_references: int | None = None,
    offset: int = 0,
) -> list[IngredientReference]:
    """Find ingredient quantity references in instruction text.

    The text is scanned once, left to right. References never overlap.
    When several could start at the same offset, the longest wins, then
    the earliest registered ingredient.

    Args:
        text: Instruction text
        ingredient_names: Ingredient names in registration order
        respect_opt_out: Skip references followed by 'to taste' and similar
        max_references: Stop after this many references
        offset: Added to the reported indexes when text is a slice of a longer instruction

    Returns:
        References ordered by start offset
    """
    if not text:
        return []

    compiled = _compile_reference_pattern(tuple(ingredient_names))
    if compiled is None:
        return []
    pattern, index_by_name = compiled

    references: list[IngredientReference] = []
    for match in pattern.finditer(text):
        if respect_opt_out and is_opt_out(text[match.start():]):
            _LOGGER.debug("Skipping opt-out reference '%s'", match.group(0))
            continue
        if max_references is not None and len(references) >= max_references:
            _LOGGER.debug("Reference limit of %d reached", max_references)
            break
        references.append(
            _to_reference(match, ingredient_names, index_by_name, offset))

    return references


def match_reference_text(
    text: str,
    ingredient_name: str,
    ingredient_index: int = 0,
    offset: int = 0,
) -> IngredientReference | None:
    """Decompose text that is exactly one reference to the given ingredient."""
    compiled = _compile_reference_pattern((ingredient_name,))
    if compiled is None:
        return None
    pattern, index_by_name = compiled

    match = pattern.fullmatch(text)
    if match is None:
        return None
    reference = _to_reference(match, (ingredient_name,), index_by_name, offset)
    return reference.model_copy(update={"ingredient_index": ingredient_index})


def inflect_unit(unit: str, quantity: float) -> str:
    """Singular unit for exactly 1, plural otherwise; abbreviations stay put."""
    if _normalize_name(unit) in ABBREVIATED_UNITS:
        return unit
    singular = singularize(unit)
    return singular if quantity == 1 else pluralize(singular)


def inflect_name(name: str, quantity: float) -> str:
    """Agree a countable ingredient name with its quantity ('1 egg', '2 eggs')."""
    if is_uncountable(name):
        return name
    if quantity == 1:
        return singularize(name)
    return name if is_plural(name) else pluralize(name)


def rebuild_reference(
    reference: IngredientReference,
    quantity_text: str,
    quantity: float,
    preserve_formatting: bool = True,
) -> str:
    """Rebuild a reference with a new quantity.

    The unit agrees with the new quantity. Without a unit, the ingredient
    name agrees instead, since it is being counted. The name keeps its
    original capitalization. Emphasis markers are kept when
    ``preserve_formatting`` is set.
    """
    unit = reference.unit
    name = reference.name_text + reference.plural_suffix
    if unit:
        unit = inflect_unit(unit, quantity)
    else:
        name = inflect_name(name, quantity)

    parts = [
        reference.pre_format if preserve_formatting else "",
        quantity_text,
        reference.quantity_gap,
        unit or "",
        reference.unit_gap,
        reference.preposition or "",
        reference.preposition_gap,
        name,
        reference.post_format if preserve_formatting else "",
    ]
    return "".join(parts)
