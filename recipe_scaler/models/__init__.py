"""Data models for the Recipe Scaler engine."""
from .import_state import (
    BatchParsingResult,
    ImportState,
    ImportStatus,
    ParsingProgress,
)
from .ingredient import ParsedIngredient, ParsingMethod
from .instruction import (
    IngredientReference,
    IngredientRefSegment,
    InstructionScalingOptions,
    InstructionSegment,
    ScaledInstruction,
    ScalingExclusion,
    StructuredInstruction,
    TextSegment,
)
from .recipe import Recipe, RecipeParseResult, ValidationIssue
from .scaling import (
    FractionDisplay,
    ScaledIngredient,
    YieldAdjustmentState,
    YieldValidationError,
)

__all__ = [
    "BatchParsingResult",
    "FractionDisplay",
    "ImportState",
    "ImportStatus",
    "IngredientReference",
    "IngredientRefSegment",
    "InstructionScalingOptions",
    "InstructionSegment",
    "ParsedIngredient",
    "ParsingMethod",
    "ParsingProgress",
    "Recipe",
    "RecipeParseResult",
    "ScaledIngredient",
    "ScaledInstruction",
    "ScalingExclusion",
    "StructuredInstruction",
    "TextSegment",
    "ValidationIssue",
    "YieldAdjustmentState",
    "YieldValidationError",
]
