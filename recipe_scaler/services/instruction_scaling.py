"""
Instruction Scaling.

Rewrites the quantities mentioned in instruction steps when the recipe
yield changes, e.g. "Mix 2 eggs with flour" becomes "Mix 4 eggs with flour"
for a doubled recipe. Works on raw text (quick scale) or on segmented
instructions, where references the user excluded stay untouched.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.instruction import (
    IngredientReference,
    InstructionScalingOptions,
    ScaledInstruction,
    StructuredInstruction,
)
from ..models.scaling import ScaledIngredient
from .fraction_formatter import format_display_quantity, fraction_to_decimal
from .inflection import singularize
from .instruction_matcher import (
    find_ingredient_references,
    is_opt_out,
    match_reference_text,
    rebuild_reference,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_OPTIONS = InstructionScalingOptions()

# Name match scores
EXACT_MATCH = 1.0
SINGULAR_PLURAL_MATCH = 0.9
PARTIAL_MATCH = 0.7


def ingredient_match_score(name: str, other: str) -> float:
    """Score how well two ingredient names refer to the same thing.

    Exact (case-insensitive) matches score 1.0, singular/plural variants
    0.9, and one name containing the other 0.7 ('flour' and
    'all-purpose flour'). Unrelated names score 0.
    """
    first = " ".join(name.lower().split())
    second = " ".join(other.lower().split())
    if not first or not second:
        return 0.0
    if first == second:
        return EXACT_MATCH
    if singularize(first) == singularize(second):
        return SINGULAR_PLURAL_MATCH
    if first in second or second in first:
        return PARTIAL_MATCH
    return 0.0


def match_ingredient(name: str, other: str, threshold: float = PARTIAL_MATCH) -> bool:
    score = ingredient_match_score(name, other)
    return score > 0 and score >= threshold


def find_scaled_ingredient(
    name: str,
    scaled_ingredients: Sequence[ScaledIngredient],
    threshold: float = PARTIAL_MATCH,
) -> ScaledIngredient | None:
    """Find the scaled ingredient best matching a name; first one wins ties."""
    best = None
    best_score = 0.0
    for scaled in scaled_ingredients:
        score = ingredient_match_score(name, scaled.original.ingredient_name)
        if score > best_score and score >= threshold:
            best, best_score = scaled, score
    return best


def _new_quantity(
    reference: IngredientReference,
    target: ScaledIngredient,
    options: InstructionScalingOptions,
) -> float | None:
    """Quantity the reference should show after scaling.

    The ingredient's scaled amount, unless ``scale_partial_amounts`` is set
    and the reference mentions part of the ingredient ("add 1 cup of the
    flour"); that part is then scaled by the same ratio.
    """
    if target.scaled_quantity is None or not options.scale_partial_amounts:
        return target.scaled_quantity
    mentioned = fraction_to_decimal(reference.original_quantity)
    original = fraction_to_decimal(target.original.quantity)
    if mentioned is None or not original or mentioned == original:
        return target.scaled_quantity
    return round(mentioned * target.scaled_quantity / original, 2)


def _scale_reference(
    reference: IngredientReference,
    scaled_ingredients: Sequence[ScaledIngredient],
    options: InstructionScalingOptions,
) -> tuple[str | None, IngredientReference]:
    target = find_scaled_ingredient(
        reference.ingredient_name,
        scaled_ingredients,
        options.match_confidence_threshold,
    )
    quantity = _new_quantity(reference, target, options) if target is not None else None
    if quantity is None:
        return None, reference

    if quantity == target.scaled_quantity and target.display_quantity and options.use_fraction_symbols:
        quantity_text = target.display_quantity
    else:
        quantity_text = format_display_quantity(quantity, options.use_fraction_symbols)

    replacement = rebuild_reference(
        reference, quantity_text, quantity, options.preserve_formatting)
    return replacement, reference.model_copy(update={"is_matched": True})


def _rewrite(
    text: str,
    references: Sequence[IngredientReference],
    scaled_ingredients: Sequence[ScaledIngredient],
    options: InstructionScalingOptions,
    offset: int = 0,
) -> tuple[str, list[IngredientReference], list[str]]:
    """Replace each reference in ``text``, whose indexes start at ``offset``.

    Returns:
        The rewritten text, the references in order and their warnings
    """
    result = text
    warnings: list[str] = []
    resolved: list[IngredientReference] = []
    # Right to left, so earlier offsets stay valid
    for reference in reversed(references):
        replacement, reference = _scale_reference(
            reference, scaled_ingredients, options)
        if replacement is None:
            warnings.append(f"Could not scale {reference.ingredient_name}")
        else:
            start = reference.start_index - offset
            end = reference.end_index - offset
            result = result[:start] + replacement + result[end:]
        resolved.append(reference)

    resolved.reverse()
    warnings.reverse()
    return result, resolved, warnings


def _finish(
    original: str,
    scaled: str,
    references: list[IngredientReference],
    warnings: list[str],
    options: InstructionScalingOptions,
) -> ScaledInstruction:
    if warnings and options.log_warnings:
        for warning in warnings:
            _LOGGER.warning("%s in instruction '%s'", warning, original)
    return ScaledInstruction(
        original=original,
        scaled=scaled,
        was_scaled=scaled != original,
        reference_count=len(references),
        references=references,
        warnings=warnings,
    )


def scale_instruction_text(
    text: str,
    scaled_ingredients: Sequence[ScaledIngredient],
    options: InstructionScalingOptions | None = None,
) -> ScaledInstruction:
    """Scale the quantities mentioned in one instruction.

    Args:
        text: Instruction text
        scaled_ingredients: Ingredients scaled to the current yield
        options: Scaling options, defaults to DEFAULT_OPTIONS

    Returns:
        ScaledInstruction with the rewritten text, the references found and
        a warning for each reference that could not be scaled
    """
    options = options or DEFAULT_OPTIONS
    if not text:
        return ScaledInstruction(original=text, scaled=text)

    names = [scaled.original.ingredient_name for scaled in scaled_ingredients]
    references = find_ingredient_references(
        text,
        names,
        respect_opt_out=not options.scale_to_taste,
        max_references=options.max_references_per_instruction,
    )

    result, resolved, warnings = _rewrite(
        text, references, scaled_ingredients, options)
    return _finish(text, result, resolved, warnings, options)


def scale_instructions(
    instructions: Sequence[str],
    scaled_ingredients: Sequence[ScaledIngredient],
    options: InstructionScalingOptions | None = None,
) -> list[ScaledInstruction]:
    """Scale each instruction, returning results in input order."""
    return [
        scale_instruction_text(text, scaled_ingredients, options)
        for text in instructions
    ]


def _opt_out_references(
    instruction_text: str,
    segment_text: str,
    offset: int,
    names: Sequence[str],
) -> list[IngredientReference]:
    """References inside a text segment that segmentation skipped as opt-out."""
    return [
        reference
        for reference in find_ingredient_references(
            segment_text, names, respect_opt_out=False, offset=offset)
        if is_opt_out(instruction_text[reference.start_index:])
    ]


def scale_structured_instruction(
    instruction: StructuredInstruction,
    scaled_ingredients: Sequence[ScaledIngredient],
    options: InstructionScalingOptions | None = None,
) -> ScaledInstruction:
    """Scale a segmented instruction, leaving excluded references as written.

    Segmentation keeps 'to taste' references as plain text. With
    ``scale_to_taste`` set they are found in the text segments again and
    scaled too. At most ``max_references_per_instruction`` references are
    scaled, in reading order.
    """
    options = options or DEFAULT_OPTIONS
    names = [scaled.original.ingredient_name for scaled in scaled_ingredients]
    limit = options.max_references_per_instruction

    pieces: list[str] = []
    warnings: list[str] = []
    references: list[IngredientReference] = []
    offset = 0
    for segment in instruction.segments:
        text = segment.text
        room = limit - len(references)
        if segment.type == "ingredient_ref":
            if not segment.scaling_disabled and room > 0:
                reference = match_reference_text(
                    text, segment.ingredient_name, segment.ingredient_index, offset)
                if reference is None:
                    _LOGGER.debug("Segment '%s' no longer matches %s",
                                  text, segment.ingredient_name)
                else:
                    text, found, failed = _rewrite(
                        text, [reference], scaled_ingredients, options, offset)
                    references.extend(found)
                    warnings.extend(failed)
        elif options.scale_to_taste and room > 0:
            opt_outs = _opt_out_references(
                instruction.original_text, text, offset, names)[:room]
            if opt_outs:
                text, found, failed = _rewrite(
                    text, opt_outs, scaled_ingredients, options, offset)
                references.extend(found)
                warnings.extend(failed)
        pieces.append(text)
        offset += len(segment.text)

    return _finish(instruction.original_text, "".join(pieces),
                   references, warnings, options)


def scale_structured_instructions(
    instructions: Sequence[StructuredInstruction],
    scaled_ingredients: Sequence[ScaledIngredient],
    options: InstructionScalingOptions | None = None,
) -> list[ScaledInstruction]:
    return [
        scale_structured_instruction(instruction, scaled_ingredients, options)
        for instruction in instructions
    ]
