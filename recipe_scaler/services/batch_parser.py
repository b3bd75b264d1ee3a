"""
Batch Ingredient Parser.

Splits ingredient lines into batches no larger than the parser accepts,
reports progress after each batch, and supports cancellation. A batch that
fails does not stop the run; its lines are reported as failed.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from ..const import ESTIMATED_MS_PER_BATCH, MAX_BATCH_SIZE, MAX_INGREDIENT_LENGTH
from ..models.import_state import BatchParsingResult, ParsingProgress
from ..models.ingredient import ParsedIngredient

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

ParseFunction = Callable[[list[str]], Sequence[ParsedIngredient]]
ProgressCallback = Callable[[ParsingProgress], None]


class IngredientValidationError(ValueError):
    """Raised when an ingredient batch is rejected before parsing."""


class ParsingCancelledError(Exception):
    """Raised when a batched parse is cancelled."""


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive lists of at most ``size`` items."""
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


def validate_ingredient_batch(
    ingredients: Any,
    max_batch_size: int = MAX_BATCH_SIZE,
) -> tuple[bool, str | None]:
    """Check that a batch can be sent to the ingredient parser.

    Returns:
        (True, None) for a valid batch, otherwise (False, reason)
    """
    if not isinstance(ingredients, (list, tuple)):
        return False, "Ingredients must be an array"
    if not ingredients:
        return False, "Ingredients array cannot be empty"
    if len(ingredients) > max_batch_size:
        return False, f"Maximum {max_batch_size} ingredients per request"
    for index, ingredient in enumerate(ingredients):
        if not isinstance(ingredient, str):
            return False, f"Ingredient at index {index} must be a string"
        if len(ingredient) > MAX_INGREDIENT_LENGTH:
            return False, (
                f"Ingredient at index {index} exceeds "
                f"{MAX_INGREDIENT_LENGTH} characters"
            )
    return True, None


def ensure_valid_batch(ingredients: Any) -> None:
    """Raise IngredientValidationError for a batch the parser would reject."""
    valid, error = validate_ingredient_batch(ingredients)
    if not valid:
        raise IngredientValidationError(error)


def calculate_optimal_batch_size(total: int, max_batch_size: int = MAX_BATCH_SIZE) -> int:
    """Spread the lines evenly over the fewest batches that fit."""
    if total <= 0:
        return max_batch_size
    batches = math.ceil(total / max_batch_size)
    return math.ceil(total / batches)


def estimate_parsing_time(total: int, batch_size: int = MAX_BATCH_SIZE) -> int:
    """Estimated parse time in milliseconds."""
    if total <= 0:
        return 0
    return math.ceil(total / batch_size) * ESTIMATED_MS_PER_BATCH


def format_progress_percentage(progress: ParsingProgress) -> str:
    if progress.total_count <= 0:
        return "0%"
    return f"{round(progress.parsed_count / progress.total_count * 100)}%"


def format_time_remaining(milliseconds: int) -> str:
    """Format a remaining time as '<1s', '5s' or '1m 30s'."""
    if milliseconds < 1000:
        return "<1s"
    seconds = math.ceil(milliseconds / 1000)
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds}s" if seconds else f"{minutes}m"


def parse_ingredients_in_batches(
    ingredients: Sequence[str],
    parse_fn: ParseFunction,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    batch_size: int = MAX_BATCH_SIZE,
) -> BatchParsingResult:
    """Parse ingredient lines batch by batch.

    Args:
        ingredients: Ingredient lines
        parse_fn: Parses one batch; returns one ParsedIngredient per line
        on_progress: Called after each batch
        cancel_event: Checked before each batch
        batch_size: Lines per batch, at most MAX_BATCH_SIZE

    Returns:
        Parsed ingredients plus the lines whose batch failed

    Raises:
        ParsingCancelledError: If ``cancel_event`` is set
    """
    started = time.monotonic()
    batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))
    batches = chunk(list(ingredients), batch_size)
    total_batches = len(batches)
    total_count = len(ingredients)

    parsed: list[ParsedIngredient] = []
    failed: list[str] = []

    _LOGGER.info("Parsing %d ingredients in %d batches",
                 total_count, total_batches)

    for index, batch in enumerate(batches):
        if cancel_event is not None and cancel_event.is_set():
            _LOGGER.info("Ingredient parsing cancelled after %d batches", index)
            raise ParsingCancelledError("Ingredient parsing was cancelled")

        try:
            results = list(parse_fn(batch))
            if len(results) != len(batch):
                raise ValueError(
                    f"Parser returned {len(results)} results for {len(batch)} ingredients")
            parsed.extend(results)
        except ParsingCancelledError:
            raise
        except Exception as e:
            _LOGGER.error("Batch %d/%d failed: %s", index + 1,
                          total_batches, e, exc_info=True)
            failed.extend(batch)

        if on_progress is not None:
            remaining = total_batches - index - 1
            on_progress(ParsingProgress(
                current_batch=index + 1,
                total_batches=total_batches,
                parsed_count=len(parsed) + len(failed),
                total_count=total_count,
                estimated_time_remaining_ms=remaining * ESTIMATED_MS_PER_BATCH,
                can_cancel=remaining > 0,
            ))

    duration_ms = int((time.monotonic() - started) * 1000)
    _LOGGER.info("Parsed %d ingredients (%d failed) in %d ms",
                 len(parsed), len(failed), duration_ms)
    return BatchParsingResult(
        parsed_ingredients=parsed,
        failed_ingredients=failed,
        total_batches=total_batches,
        duration_ms=duration_ms,
    )
