"""
Instruction Parser.

Splits instruction steps into text and ingredient reference segments.
Joining the segments of an instruction always gives back its original text.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from ..models.ingredient import ParsedIngredient
from ..models.instruction import (
    IngredientReference,
    IngredientRefSegment,
    InstructionSegment,
    StructuredInstruction,
    TextSegment,
)
from .instruction_matcher import find_ingredient_references

_LOGGER = logging.getLogger(__name__)


def _ingredient_names(ingredients: Sequence[ParsedIngredient | str]) -> list[str]:
    return [
        ingredient if isinstance(ingredient, str) else ingredient.ingredient_name
        for ingredient in ingredients
    ]


def reference_to_segment(reference: IngredientReference) -> IngredientRefSegment:
    return IngredientRefSegment(
        original_text=reference.full_match,
        ingredient_name=reference.ingredient_name,
        original_quantity=reference.original_quantity,
        unit=reference.unit,
        preposition=reference.preposition,
        ingredient_index=reference.ingredient_index,
        pre_format=reference.pre_format or None,
        post_format=reference.post_format or None,
    )


def parse_instruction(
    text: str,
    step_number: int,
    ingredients: Sequence[ParsedIngredient | str],
) -> StructuredInstruction:
    """Parse one instruction step into segments.

    Args:
        text: The instruction as written
        step_number: 1-based step number
        ingredients: Parsed ingredients (or plain names) of the recipe

    Returns:
        StructuredInstruction whose segments join back to ``text``
    """
    references = find_ingredient_references(text, _ingredient_names(ingredients))

    segments: list[InstructionSegment] = []
    cursor = 0
    for reference in references:
        if reference.start_index > cursor:
            segments.append(TextSegment(content=text[cursor:reference.start_index]))
        segments.append(reference_to_segment(reference))
        cursor = reference.end_index

    if cursor < len(text) or not segments:
        segments.append(TextSegment(content=text[cursor:]))

    _LOGGER.debug("Step %d: %d ingredient references", step_number, len(references))
    return StructuredInstruction(
        id=f"instruction-{step_number}-{uuid.uuid4().hex[:12]}",
        original_text=text,
        step_number=step_number,
        segments=segments,
    )


def parse_all_instructions(
    instructions: Sequence[str],
    ingredients: Sequence[ParsedIngredient | str],
) -> list[StructuredInstruction]:
    """Parse every step, numbering them from 1 in input order."""
    return [
        parse_instruction(text, index + 1, ingredients)
        for index, text in enumerate(instructions)
    ]


def reconstruct_instruction_text(segments: Sequence[InstructionSegment]) -> str:
    return "".join(segment.text for segment in segments)
