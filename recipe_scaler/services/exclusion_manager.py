"""
Exclusion Manager.

Lets a user keep specific ingredient references in specific steps from
being scaled. An exclusion is matched by the triple (step number, excluded
text, ingredient name). All functions here are pure; lists passed in are
never modified.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from ..models.instruction import (
    IngredientRefSegment,
    ScalingExclusion,
    StructuredInstruction,
)

_LOGGER = logging.getLogger(__name__)


def create_exclusion(
    step_number: int, excluded_text: str, ingredient_name: str
) -> ScalingExclusion:
    """Create an exclusion with a new id and the current time."""
    return ScalingExclusion(
        id=f"exclusion-{uuid.uuid4().hex}",
        step_number=step_number,
        excluded_text=excluded_text,
        ingredient_name=ingredient_name,
    )


def _matches(
    exclusion: ScalingExclusion,
    step_number: int,
    excluded_text: str,
    ingredient_name: str,
) -> bool:
    return (
        exclusion.step_number == step_number
        and exclusion.excluded_text == excluded_text
        and exclusion.ingredient_name == ingredient_name
    )


def find_exclusion_for_reference(
    exclusions: Sequence[ScalingExclusion],
    step_number: int,
    excluded_text: str,
    ingredient_name: str,
) -> ScalingExclusion | None:
    return next(
        (
            exclusion for exclusion in exclusions
            if _matches(exclusion, step_number, excluded_text, ingredient_name)
        ),
        None,
    )


def is_reference_excluded(
    exclusions: Sequence[ScalingExclusion],
    step_number: int,
    excluded_text: str,
    ingredient_name: str,
) -> bool:
    return find_exclusion_for_reference(
        exclusions, step_number, excluded_text, ingredient_name) is not None


def get_excludable_references(
    instruction: StructuredInstruction,
) -> list[IngredientRefSegment]:
    """Return the ingredient reference segments of an instruction."""
    return [
        segment for segment in instruction.segments
        if segment.type == "ingredient_ref"
    ]


def apply_exclusions(
    instructions: Sequence[StructuredInstruction],
    exclusions: Sequence[ScalingExclusion],
) -> Sequence[StructuredInstruction]:
    """Mark excluded references as not scalable.

    Returns the input itself when there are no exclusions. Otherwise
    returns a new list where every matching reference segment is a copy
    with ``scaling_disabled`` set; all other segments and instructions are
    the same objects as in the input.

    Args:
        instructions: Segmented instructions
        exclusions: The recipe's exclusions

    Returns:
        Instructions with exclusions applied
    """
    if not exclusions:
        return instructions

    result = []
    for instruction in instructions:
        step_exclusions = [
            exclusion for exclusion in exclusions
            if exclusion.step_number == instruction.step_number
        ]
        if not step_exclusions:
            result.append(instruction)
            continue

        changed = False
        segments = []
        for segment in instruction.segments:
            if (
                segment.type == "ingredient_ref"
                and not segment.scaling_disabled
                and find_exclusion_for_reference(
                    step_exclusions,
                    instruction.step_number,
                    segment.original_text,
                    segment.ingredient_name,
                ) is not None
            ):
                segment = segment.model_copy(update={"scaling_disabled": True})
                changed = True
            segments.append(segment)

        if changed:
            instruction = instruction.model_copy(update={"segments": segments})
        result.append(instruction)

    _LOGGER.debug("Applied %d exclusions to %d instructions",
                  len(exclusions), len(instructions))
    return result


def add_exclusion(
    exclusions: Sequence[ScalingExclusion], exclusion: ScalingExclusion
) -> list[ScalingExclusion]:
    """Return the exclusions with one added, unless its triple is already there."""
    if is_reference_excluded(
        exclusions,
        exclusion.step_number,
        exclusion.excluded_text,
        exclusion.ingredient_name,
    ):
        return list(exclusions)
    return [*exclusions, exclusion]


def remove_exclusion(
    exclusions: Sequence[ScalingExclusion], exclusion_id: str
) -> list[ScalingExclusion]:
    return [exclusion for exclusion in exclusions if exclusion.id != exclusion_id]
