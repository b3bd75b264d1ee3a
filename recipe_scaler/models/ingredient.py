"""
Ingredient data models for the Recipe Scaler engine.

A ParsedIngredient is the structured form of one ingredient line, produced
by the AI parser, the rule-based fallback parser, or the manual edit form.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from ..const import CONFIDENCE_THRESHOLD, DEFAULT_CONFIDENCE
from ..unit_converter import format_quantity
from .base import CamelModel


class ParsingMethod(str, Enum):
    """Where a parsed ingredient came from."""

    AI = "ai"
    MANUAL = "manual"
    USER = "user"


class ParsedIngredient(CamelModel):
    """A structured representation of a single ingredient line.

    Attributes:
        original_text: Verbatim source line, used as a stable join key
        quantity: Amount as text, keeping fractions ('1/2') and ranges ('2-3')
        unit: Canonical unit token, e.g. 'cup', 'tbsp', 'each'
        ingredient_name: Ingredient name without quantity or unit
        preparation_notes: Notes such as 'chopped' or 'softened'
        metric_quantity: Metric amount, set together with metric_unit
        metric_unit: Metric unit, set together with metric_quantity
        confidence: Parser confidence in [0, 1]
        parsing_method: Provenance tag
        requires_manual_review: Derived; True for low-confidence non-manual parses
    """

    original_text: str = Field(
        min_length=1,
        description="The ingredient line as written, e.g. '2 cups flour, sifted'"
    )
    quantity: str | None = Field(
        default=None,
        description="The amount as text, e.g. '2', '1/2', '2-3'"
    )
    unit: str | None = Field(
        default=None,
        description="The canonical unit, e.g. 'cup', 'tbsp', 'g'"
    )
    ingredient_name: str = Field(
        min_length=1,
        description="The ingredient name, e.g. 'all-purpose flour'"
    )
    preparation_notes: str | None = Field(
        default=None,
        description="Preparation notes, e.g. 'sifted', 'finely chopped'"
    )
    metric_quantity: str | None = Field(
        default=None,
        description="The metric amount, e.g. '240'"
    )
    metric_unit: str | None = Field(
        default=None,
        description="The metric unit, e.g. 'g', 'ml'"
    )
    confidence: float = Field(
        default=DEFAULT_CONFIDENCE,
        ge=0.0,
        le=1.0,
        description="Parser confidence between 0 and 1"
    )
    parsing_method: ParsingMethod = Field(
        default=ParsingMethod.AI,
        description="How the ingredient was parsed: ai, manual or user"
    )
    requires_manual_review: bool = Field(
        default=False,
        description="Whether the parse should be reviewed by a person"
    )

    @field_validator("quantity", "metric_quantity", mode="before")
    @classmethod
    def _quantity_as_text(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return format_quantity(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("unit", "preparation_notes", "metric_unit", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _check_metric_pair_and_review(self) -> ParsedIngredient:
        if (self.metric_quantity is None) != (self.metric_unit is None):
            raise ValueError(
                "metric_quantity and metric_unit must be set together")
        self.requires_manual_review = (
            self.confidence < CONFIDENCE_THRESHOLD
            and self.parsing_method != ParsingMethod.MANUAL
        )
        return self

    @property
    def has_metric(self) -> bool:
        return self.metric_quantity is not None
