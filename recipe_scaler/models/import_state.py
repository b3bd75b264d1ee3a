"""Progress and state models for the recipe import flow."""
from __future__ import annotations

from enum import Enum

from pydantic import Field

from .base import CamelModel
from .ingredient import ParsedIngredient
from .recipe import Recipe


class ParsingProgress(CamelModel):
    """Progress of a batched ingredient parse."""

    current_batch: int
    total_batches: int
    parsed_count: int
    total_count: int
    estimated_time_remaining_ms: int = 0
    can_cancel: bool = True


class BatchParsingResult(CamelModel):
    """Outcome of parsing ingredient lines in batches.

    parsed_ingredients and failed_ingredients together cover every input
    line; parsed ones are keyed by their original text.
    """

    parsed_ingredients: list[ParsedIngredient] = Field(default_factory=list)
    failed_ingredients: list[str] = Field(default_factory=list)
    total_batches: int = 0
    duration_ms: int = 0


class ImportStatus(str, Enum):
    """Stages of a recipe import."""

    IDLE = "idle"
    PARSING_JSON = "parsing_json"
    PARSING_INGREDIENTS = "parsing_ingredients"
    COMPLETE = "complete"
    ERROR = "error"


class ImportState(CamelModel):
    """Snapshot of the import flow."""

    status: ImportStatus = ImportStatus.IDLE
    generation: int = 0
    recipe: Recipe | None = None
    progress: ParsingProgress | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
