"""
Instruction data models for the Recipe Scaler engine.

Instructions are stored as typed segment lists so that ingredient quantity
references can be scaled, or excluded from scaling, one by one.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import Field

from ..const import CONFIDENCE_THRESHOLD, MAX_REFERENCES_PER_INSTRUCTION
from .base import CamelModel


class TextSegment(CamelModel):
    """Plain instruction text between ingredient references."""

    type: Literal["text"] = "text"
    content: str

    @property
    def text(self) -> str:
        return self.content


class IngredientRefSegment(CamelModel):
    """A quantity reference to an ingredient inside an instruction."""

    type: Literal["ingredient_ref"] = "ingredient_ref"
    original_text: str = Field(
        description="The matched text, e.g. '2 cups of flour'"
    )
    ingredient_name: str = Field(
        description="The ingredient name as registered in the ingredient list"
    )
    original_quantity: str
    unit: str | None = None
    preposition: str | None = None
    ingredient_index: int
    scaling_disabled: bool = False
    pre_format: str | None = None
    post_format: str | None = None

    @property
    def text(self) -> str:
        return self.original_text


InstructionSegment = Annotated[
    Union[TextSegment, IngredientRefSegment],
    Field(discriminator="type"),
]


class StructuredInstruction(CamelModel):
    """One instruction step broken into text and ingredient reference segments."""

    id: str
    original_text: str
    step_number: int
    segments: list[InstructionSegment] = Field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScalingExclusion(CamelModel):
    """A user override that keeps one reference in one step unscaled."""

    id: str
    step_number: int
    excluded_text: str
    ingredient_name: str
    created_at: datetime = Field(default_factory=_utcnow)


class IngredientReference(CamelModel):
    """A quantity reference found in instruction text.

    Holds every lexical part of the match so it can be rebuilt exactly
    with a different quantity.
    """

    full_match: str
    ingredient_name: str
    ingredient_index: int
    start_index: int
    end_index: int
    pre_format: str = ""
    original_quantity: str
    quantity_gap: str = ""
    unit: str | None = None
    unit_gap: str = ""
    preposition: str | None = None
    preposition_gap: str = ""
    name_text: str
    plural_suffix: str = ""
    post_format: str = ""
    is_matched: bool = False


class InstructionScalingOptions(CamelModel):
    """Options for rewriting quantities in instruction text."""

    preserve_formatting: bool = True
    use_fraction_symbols: bool = True
    scale_to_taste: bool = False
    match_confidence_threshold: float = Field(
        default=CONFIDENCE_THRESHOLD, ge=0.0, le=1.0)
    log_warnings: bool = False
    max_references_per_instruction: int = Field(
        default=MAX_REFERENCES_PER_INSTRUCTION, gt=0)
    scale_partial_amounts: bool = Field(
        default=False,
        description="Scale a reference to part of an ingredient by the yield "
                    "ratio instead of showing the ingredient's full scaled amount",
    )


class ScaledInstruction(CamelModel):
    """Result of scaling one instruction."""

    original: str
    scaled: str
    was_scaled: bool = False
    reference_count: int = 0
    references: list[IngredientReference] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
