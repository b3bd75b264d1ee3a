"""
Recipe Import and Scaling Service.

This module orchestrates importing a recipe from JSON-LD (pasted or fetched
from a URL), parsing its ingredients in batches, segmenting its
instructions, and building the scaled view of a recipe for a target yield.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import requests

from ..const import MAX_BATCH_SIZE, UNPARSED_INGREDIENTS_WARNING
from ..extractors.scraper import fetch_recipe_json_ld
from ..models.import_state import ImportState, ImportStatus, ParsingProgress
from ..models.ingredient import ParsedIngredient
from ..models.instruction import InstructionScalingOptions
from ..models.recipe import Recipe, ValidationMode
from ..models.scaling import YieldValidationError
from ..parsers.base_parser import BaseIngredientParser
from ..parsers.jsonld_parser import JSONLDRecipeParser
from ..parsers.pattern_parser import PatternIngredientParser
from .batch_parser import ParsingCancelledError, parse_ingredients_in_batches
from .exclusion_manager import apply_exclusions
from .ingredient_formatter import format_scaled_ingredients, parse_ingredient_string
from .instruction_parser import parse_all_instructions
from .instruction_scaling import scale_instructions, scale_structured_instructions
from .yield_adjuster import YieldAdjuster

_LOGGER = logging.getLogger(__name__)


class InvalidYieldError(ValueError):
    """Raised when a recipe is scaled to a yield outside its bounds."""

    def __init__(self, error: YieldValidationError) -> None:
        super().__init__(error.message)
        self.error = error


class RecipeImporter:
    """Imports recipes from JSON-LD.

    The importer moves through idle, parsing_json, parsing_ingredients and
    then complete or error. Every run gets a new generation number; updates
    from a run that is no longer current are dropped, so a cancelled or
    superseded run never overwrites a newer one.
    """

    def __init__(
        self,
        ingredient_parser: BaseIngredientParser | None = None,
        batch_size: int = MAX_BATCH_SIZE,
        convert_volume: bool = False,
        mode: ValidationMode = "lenient",
        on_state_change=None,
    ) -> None:
        """Initialize the importer.

        Args:
            ingredient_parser: Parser for ingredient lines, pattern-based by default
            batch_size: Ingredient lines per parser call
            convert_volume: Convert volume to grams where a density is known
            mode: JSON-LD validation mode
            on_state_change: Called with each accepted ImportState
        """
        self.ingredient_parser = ingredient_parser or PatternIngredientParser(
            convert_volume=convert_volume)
        self.batch_size = batch_size
        self.convert_volume = convert_volume
        self.mode = mode
        self._on_state_change = on_state_change
        self._lock = threading.Lock()
        self._generation = 0
        self._cancel_event = threading.Event()
        self._state = ImportState()

    @property
    def state(self) -> ImportState:
        with self._lock:
            return self._state

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _start(self) -> tuple[int, threading.Event]:
        with self._lock:
            self._cancel_event.set()
            self._generation += 1
            self._cancel_event = cancel_event = threading.Event()
            generation = self._generation
            self._state = ImportState(
                status=ImportStatus.PARSING_JSON, generation=generation)
            state = self._state
        self._notify(state)
        return generation, cancel_event

    def _update(self, generation: int, **changes: Any) -> bool:
        """Apply changes from the run with this generation.

        Returns:
            False if the run is stale and the changes were dropped
        """
        with self._lock:
            if generation != self._generation:
                _LOGGER.debug("Dropping update from stale import %d (current %d)",
                              generation, self._generation)
                return False
            self._state = self._state.model_copy(update=changes)
            state = self._state
        self._notify(state)
        return True

    def _finish(self, final: ImportState) -> bool:
        """Install the final state of a run unless a newer run has started."""
        with self._lock:
            if final.generation != self._generation:
                _LOGGER.debug("Dropping result of stale import %d (current %d)",
                              final.generation, self._generation)
                return False
            self._state = final
        self._notify(final)
        return True

    def _notify(self, state: ImportState) -> None:
        if self._on_state_change is not None:
            self._on_state_change(state)

    def cancel(self) -> None:
        """Cancel the running import and return to idle."""
        with self._lock:
            self._cancel_event.set()
            self._generation += 1
            self._state = ImportState(generation=self._generation)
            state = self._state
        _LOGGER.info("Import cancelled")
        self._notify(state)

    def reset(self) -> None:
        """Forget the last import."""
        self.cancel()

    def _parse_ingredients(
        self,
        generation: int,
        lines: Sequence[str],
        cancel_event: threading.Event,
    ) -> tuple[list[ParsedIngredient], int]:
        """Parse ingredient lines, falling back to patterns for failed lines.

        Returns:
            Parsed ingredients in line order, and how many lines needed the fallback
        """
        def on_progress(progress: ParsingProgress) -> None:
            self._update(generation, progress=progress)

        try:
            result = parse_ingredients_in_batches(
                lines,
                self.ingredient_parser.parse_ingredients,
                on_progress=on_progress,
                cancel_event=cancel_event,
                batch_size=self.batch_size,
            )
            parsed = result.parsed_ingredients
        except ParsingCancelledError:
            raise
        except Exception as e:
            _LOGGER.error("Ingredient parsing failed: %s", e, exc_info=True)
            parsed = []

        by_text: dict[str, deque[ParsedIngredient]] = defaultdict(deque)
        for ingredient in parsed:
            by_text[ingredient.original_text].append(ingredient)

        ingredients = []
        fallbacks = 0
        for line in lines:
            queue = by_text.get(line.strip())
            if queue:
                ingredients.append(queue.popleft())
            else:
                fallbacks += 1
                ingredients.append(
                    parse_ingredient_string(line, convert_volume=self.convert_volume))
        return ingredients, fallbacks

    def import_json_ld(self, text: str, source_url: str | None = None) -> ImportState:
        """Import a recipe from JSON-LD text.

        Args:
            text: JSON-LD (or HTML containing it)
            source_url: Where the recipe came from, if known

        Returns:
            The final state of this run
        """
        generation, cancel_event = self._start()
        _LOGGER.info("Starting recipe import %d", generation)

        result = JSONLDRecipeParser(self.mode).parse(text, source_url)
        warnings = [warning.message for warning in result.warnings]
        if not result.success or result.recipe is None:
            final = ImportState(
                status=ImportStatus.ERROR,
                generation=generation,
                errors=[error.message for error in result.errors],
                warnings=warnings,
            )
            self._finish(final)
            return final

        recipe = result.recipe
        lines = [line for line in recipe.recipe_ingredient if line.strip()]
        self._update(generation, status=ImportStatus.PARSING_INGREDIENTS,
                     recipe=recipe, warnings=warnings)

        try:
            ingredients, fallbacks = self._parse_ingredients(
                generation, lines, cancel_event)
        except ParsingCancelledError:
            _LOGGER.info("Import %d cancelled during ingredient parsing", generation)
            return ImportState(generation=generation)

        if fallbacks:
            warnings.append(UNPARSED_INGREDIENTS_WARNING.format(count=fallbacks))

        recipe = recipe.model_copy(update={
            "parsed_ingredients": ingredients,
            "ingredient_parsing_completed": True,
            "ingredient_parsing_date": datetime.now(timezone.utc),
            "parsed_instructions": parse_all_instructions(
                recipe.recipe_instructions, ingredients),
        })

        final = ImportState(
            status=ImportStatus.COMPLETE,
            generation=generation,
            recipe=recipe,
            progress=self.state.progress,
            warnings=warnings,
        )
        if self._finish(final):
            _LOGGER.info("Imported recipe '%s' with %d ingredients (%d warnings)",
                         recipe.name, len(ingredients), len(warnings))
        return final

    def import_url(self, url: str) -> ImportState:
        """Fetch a recipe page and import its JSON-LD."""
        try:
            text = fetch_recipe_json_ld(url)
        except (requests.exceptions.RequestException, ValueError) as e:
            _LOGGER.error("Error fetching recipe from %s: %s", url, str(e))
            generation, _ = self._start()
            final = ImportState(
                status=ImportStatus.ERROR, generation=generation, errors=[str(e)])
            self._finish(final)
            return final
        return self.import_json_ld(text, source_url=url)


def scale_recipe(
    recipe: Recipe,
    target_yield: float | None = None,
    options: InstructionScalingOptions | None = None,
    convert_units: bool = False,
    convert_volume: bool = False,
) -> dict[str, Any]:
    """Build the scaled view of a recipe.

    Args:
        recipe: The recipe to scale
        target_yield: Yield to scale to, the recipe's own yield by default
        options: Instruction scaling options
        convert_units: Append metric equivalents to the ingredient lines
        convert_volume: Use the density-aware conversion for volume

    Returns:
        Dictionary with the yield state, ingredient lines, instructions and warnings

    Raises:
        InvalidYieldError: If target_yield is outside the allowed range
    """
    options = options or InstructionScalingOptions()
    ingredients = recipe.parsed_ingredients
    if ingredients is None:
        ingredients = [
            parse_ingredient_string(line, convert_volume=convert_volume)
            for line in recipe.recipe_ingredient if line.strip()
        ]

    adjuster = YieldAdjuster(
        recipe.recipe_yield, ingredients, options.use_fraction_symbols)
    if target_yield is not None:
        error = adjuster.adjust_yield(target_yield)
        if error is not None:
            raise InvalidYieldError(error)

    scaled_ingredients = adjuster.scaled_ingredients
    if recipe.parsed_instructions:
        instructions = apply_exclusions(
            recipe.parsed_instructions, recipe.scaling_exclusions or [])
        scaled_instructions = scale_structured_instructions(
            instructions, scaled_ingredients, options)
    else:
        scaled_instructions = scale_instructions(
            recipe.recipe_instructions, scaled_ingredients, options)

    warnings = [
        f"{scaled.original.ingredient_name}: {scaled.warning}"
        for scaled in scaled_ingredients if scaled.warning
    ]
    for instruction in scaled_instructions:
        warnings.extend(instruction.warnings)

    _LOGGER.info("Scaled recipe '%s' from %s to %s (x%s)", recipe.name,
                 adjuster.state.original_yield, adjuster.current_yield,
                 adjuster.multiplier)
    return {
        "name": recipe.name,
        "yield": adjuster.state.model_dump(by_alias=True),
        "ingredients": format_scaled_ingredients(
            scaled_ingredients, convert_units, convert_volume),
        "instructions": [instruction.scaled for instruction in scaled_instructions],
        "warnings": warnings,
    }
