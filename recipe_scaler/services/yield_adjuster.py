"""
Yield Adjuster.

Holds the yield of one recipe view, validates changes against the allowed
bounds, and scales ingredient quantities by the resulting multiplier.
"""
from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence

from ..const import (
    MULTIPLIER_DECIMALS,
    QUANTITY_DECIMALS,
    SMALL_AMOUNT_THRESHOLD,
    SMALL_AMOUNT_WARNING,
    YIELD_MAX_FACTOR,
    YIELD_MIN_FACTOR,
)
from ..models.ingredient import ParsedIngredient
from ..models.scaling import (
    ScaledIngredient,
    YieldAdjustmentState,
    YieldValidationError,
)
from .fraction_formatter import format_display_quantity, fraction_to_decimal

_LOGGER = logging.getLogger(__name__)

_YIELD_RANGE_RE = re.compile(r"(\d+)\s*-\s*(\d+)")
_YIELD_NUMBER_RE = re.compile(r"\d+")


def _round_half_up(value: float, decimals: int) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def parse_yield(value: str | int | float | None) -> float:
    """Parse a declared recipe yield into a positive number.

    Args:
        value: Yield as declared, e.g. 4, '4 servings', '6-8 servings'

    Returns:
        The yield, the rounded midpoint for ranges, or 1 if unparseable

    Examples:
        >>> parse_yield('6-8 servings')
        7
        >>> parse_yield('Makes 12 cookies')
        12
        >>> parse_yield(None)
        1
    """
    if not value or isinstance(value, bool):
        return 1

    if isinstance(value, (int, float)):
        return value if math.isfinite(value) and value > 0 else 1

    text = str(value)
    range_match = _YIELD_RANGE_RE.search(text)
    if range_match:
        low, high = (int(group) for group in range_match.groups())
        midpoint = math.floor((low + high) / 2 + 0.5)
        return midpoint if midpoint > 0 else 1

    number_match = _YIELD_NUMBER_RE.search(text)
    if number_match:
        number = int(number_match.group())
        return number if number > 0 else 1

    _LOGGER.debug("Could not parse yield '%s', defaulting to 1", value)
    return 1


def yield_bounds(original_yield: float) -> tuple[float, float]:
    return original_yield * YIELD_MIN_FACTOR, original_yield * YIELD_MAX_FACTOR


def validate_yield(value: float, original_yield: float) -> YieldValidationError | None:
    """Check a requested yield against the allowed range.

    Returns:
        None if the yield is acceptable, otherwise the error with the nearest
        bound as suggested value
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan

    if not math.isfinite(number):
        return YieldValidationError(
            type="invalid_number",
            message="Please enter a valid number",
        )

    minimum, maximum = yield_bounds(original_yield)
    if number < minimum:
        return YieldValidationError(
            type="below_minimum",
            message=f"Minimum yield is {minimum:.1f} servings",
            suggested_value=minimum,
        )
    if number > maximum:
        return YieldValidationError(
            type="above_maximum",
            message=f"Maximum yield is {maximum:.0f} servings",
            suggested_value=maximum,
        )
    return None


def calculate_multiplier(current_yield: float, original_yield: float) -> float:
    """Return current/original rounded to four decimals (1.0 if original is 0)."""
    if original_yield == 0:
        return 1.0
    return _round_half_up(current_yield / original_yield, MULTIPLIER_DECIMALS)


def scale_quantity(quantity: float | None, multiplier: float) -> float | None:
    if quantity is None:
        return None
    return _round_half_up(quantity * multiplier, QUANTITY_DECIMALS)


def scale_ingredient(
    ingredient: ParsedIngredient,
    multiplier: float,
    use_fraction_symbols: bool = True,
) -> ScaledIngredient:
    """Scale one ingredient; ingredients without a numeric quantity stay as they are."""
    quantity = fraction_to_decimal(ingredient.quantity)
    if quantity is None:
        return ScaledIngredient(original=ingredient)

    scaled = scale_quantity(quantity, multiplier)
    warning = None
    if 0 < scaled < SMALL_AMOUNT_THRESHOLD:
        warning = SMALL_AMOUNT_WARNING

    return ScaledIngredient(
        original=ingredient,
        scaled_quantity=scaled,
        display_quantity=format_display_quantity(scaled, use_fraction_symbols),
        was_scaled=multiplier != 1,
        warning=warning,
    )


def scale_ingredients(
    ingredients: Sequence[ParsedIngredient],
    multiplier: float,
    use_fraction_symbols: bool = True,
) -> list[ScaledIngredient]:
    """Scale every ingredient by the multiplier, keeping input order."""
    _LOGGER.debug("Scaling %d ingredients by %.4f",
                  len(ingredients), multiplier)
    return [
        scale_ingredient(ingredient, multiplier, use_fraction_symbols)
        for ingredient in ingredients
    ]


class YieldAdjuster:
    """Yield state for one recipe view.

    Direct changes through ``adjust_yield`` are validated and report errors;
    ``increment``/``decrement`` silently stop at the bounds.
    """

    def __init__(
        self,
        recipe_yield: str | int | float | None,
        ingredients: Sequence[ParsedIngredient] | None = None,
        use_fraction_symbols: bool = True,
    ) -> None:
        original = parse_yield(recipe_yield)
        self._state = YieldAdjustmentState(
            original_yield=original,
            current_yield=original,
            original_yield_string="" if recipe_yield is None else str(recipe_yield),
        )
        self._error: YieldValidationError | None = None
        self._ingredients = list(ingredients or [])
        self._use_fraction_symbols = use_fraction_symbols
        self._ingredients_version = 0
        self._cache_key: tuple[int, float] | None = None
        self._cache: list[ScaledIngredient] = []
        _LOGGER.debug("Yield adjuster created with original yield %s (%r)",
                      original, recipe_yield)

    @property
    def state(self) -> YieldAdjustmentState:
        return self._state

    @property
    def error(self) -> YieldValidationError | None:
        return self._error

    @property
    def current_yield(self) -> float:
        return self._state.current_yield

    @property
    def multiplier(self) -> float:
        return self._state.yield_multiplier

    def _set_yield(self, value: float) -> None:
        value = float(value)
        original = self._state.original_yield
        self._state = self._state.model_copy(update={
            "current_yield": value,
            "yield_multiplier": calculate_multiplier(value, original),
            "is_adjusted": value != original,
        })
        self._error = None

    def adjust_yield(self, value: float) -> YieldValidationError | None:
        """Set the yield directly.

        Returns:
            None on success; otherwise the validation error, which is also
            kept on ``error`` while the state stays unchanged
        """
        error = validate_yield(value, self._state.original_yield)
        if error is not None:
            _LOGGER.debug("Rejected yield %r: %s", value, error.message)
            self._error = error
            return error

        self._set_yield(value)
        _LOGGER.debug("Yield set to %s (multiplier %.4f)",
                      value, self._state.yield_multiplier)
        return None

    def increment(self) -> None:
        current = self._state.current_yield
        new_value = 1.0 if current < 1 else current + 1
        if validate_yield(new_value, self._state.original_yield) is None:
            self._set_yield(new_value)

    def decrement(self) -> None:
        current = self._state.current_yield
        new_value = 0.5 if current == 1 else current - 1
        if validate_yield(new_value, self._state.original_yield) is None:
            self._set_yield(new_value)

    def reset(self) -> None:
        self._set_yield(self._state.original_yield)

    def set_ingredients(self, ingredients: Sequence[ParsedIngredient]) -> None:
        self._ingredients = list(ingredients)
        self._ingredients_version += 1

    @property
    def scaled_ingredients(self) -> list[ScaledIngredient]:
        """Ingredients scaled by the current multiplier, memoized."""
        key = (self._ingredients_version, self._state.yield_multiplier)
        if key != self._cache_key:
            self._cache = scale_ingredients(
                self._ingredients,
                self._state.yield_multiplier,
                self._use_fraction_symbols,
            )
            self._cache_key = key
        return self._cache
