"""
Recipe document models for the Recipe Scaler engine.

Recipe mirrors the stored recipe document; RecipeParseResult is what a
JSON-LD import returns.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from .base import CamelModel
from .ingredient import ParsedIngredient
from .instruction import ScalingExclusion, StructuredInstruction


class Recipe(CamelModel):
    """The top-level recipe document.

    Attributes:
        name: The recipe title
        recipe_ingredient: Ingredient lines as written
        recipe_instructions: Instruction steps as written
        recipe_yield: Declared yield, e.g. 4 or '6-8 servings'
        parsed_ingredients: Structured ingredients, aligned with recipe_ingredient
        parsed_instructions: Segmented instructions, aligned with recipe_instructions
        scaling_exclusions: References the user chose not to scale
    """

    id: str | None = None
    name: str = Field(description="The title of the recipe")
    description: str | None = None
    image: str | None = Field(
        default=None,
        description="URL of the recipe image"
    )
    author: str | None = None
    source_url: str | None = None
    date_published: str | None = None
    prep_time: str | None = None
    cook_time: str | None = None
    total_time: str | None = None
    recipe_yield: str | int | float | None = Field(
        default=None,
        description="The declared yield, e.g. 4 or '6-8 servings'"
    )
    recipe_category: list[str] = Field(default_factory=list)
    recipe_cuisine: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    calories: float | None = None
    recipe_ingredient: list[str] = Field(default_factory=list)
    recipe_instructions: list[str] = Field(default_factory=list)
    parsed_ingredients: list[ParsedIngredient] | None = None
    ingredient_parsing_completed: bool | None = None
    ingredient_parsing_date: datetime | None = None
    parsed_instructions: list[StructuredInstruction] | None = None
    scaling_exclusions: list[ScalingExclusion] | None = None

    @field_validator("recipe_yield", mode="before")
    @classmethod
    def _first_yield(cls, value: Any) -> Any:
        # JSON-LD often lists the yield as ["4", "4 servings"]
        if isinstance(value, list):
            return value[0] if value else None
        return value


class ValidationIssue(CamelModel):
    """An error or warning found while importing a recipe."""

    code: str
    message: str
    field: str | None = None
    line: int | None = None
    column: int | None = None


class RecipeParseResult(CamelModel):
    """Outcome of parsing a JSON-LD recipe."""

    success: bool
    recipe: Recipe | None = None
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


ValidationMode = Literal["strict", "lenient"]
