"""Yield-scaling data models: session state, errors and scaled ingredients."""
from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import CamelModel
from .ingredient import ParsedIngredient


class FractionDisplay(CamelModel):
    """A quantity split into whole and fractional parts for display."""

    whole: int
    numerator: int = 0
    denominator: int = 1
    formatted: str


class ScaledIngredient(CamelModel):
    """An ingredient with its quantity scaled by the yield multiplier.

    Derived from the current multiplier and ingredient list; never stored.
    """

    original: ParsedIngredient
    scaled_quantity: float | None = None
    display_quantity: str = ""
    was_scaled: bool = False
    warning: str | None = None


class YieldAdjustmentState(CamelModel):
    """Current and original yield of one recipe view."""

    original_yield: float = Field(gt=0)
    current_yield: float
    yield_multiplier: float = 1.0
    is_adjusted: bool = False
    original_yield_string: str = ""


YieldErrorType = Literal["below_minimum", "above_maximum", "invalid_number"]


class YieldValidationError(CamelModel):
    """A rejected yield, with the nearest acceptable value when there is one."""

    type: YieldErrorType
    message: str
    suggested_value: float | None = None
