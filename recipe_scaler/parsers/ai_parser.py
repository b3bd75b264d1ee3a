"""
AI-based Ingredient Parser using LangExtract.

This module handles AI-powered parsing of ingredient lines into structured
ingredients using Google's LangExtract library with Gemini models. Lines the
model skips are parsed with the rule-based fallback instead.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

import langextract as lx
from langextract import tokenizer
from pydantic import ValidationError

from ..const import DEFAULT_CONFIDENCE, DEFAULT_MODEL
from ..models.ingredient import ParsedIngredient, ParsingMethod
from ..services.batch_parser import ensure_valid_batch
from ..services.ingredient_formatter import parse_ingredient_string
from ..unit_converter import canonical_unit
from .ai_examples import INGREDIENT_EXAMPLES
from .ai_prompts import INGREDIENT_PROMPT
from .base_parser import BaseIngredientParser

_LOGGER = logging.getLogger(__name__)

# External key -> ParsedIngredient field
_FIELD_ALIASES = {
    "quantity": "quantity",
    "unit": "unit",
    "name": "ingredient_name",
    "ingredientName": "ingredient_name",
    "ingredient_name": "ingredient_name",
    "preparation": "preparation_notes",
    "preparationNotes": "preparation_notes",
    "preparation_notes": "preparation_notes",
    "metricQuantity": "metric_quantity",
    "metric_quantity": "metric_quantity",
    "metricUnit": "metric_unit",
    "metric_unit": "metric_unit",
    "confidence": "confidence",
}


class IngredientParsingError(Exception):
    """Raised when the AI model cannot parse an ingredient batch."""


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if confidence != confidence:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, confidence))


def normalize_parsed_ingredient(item: dict[str, Any], line: str) -> ParsedIngredient:
    """Turn one external parse result into a ParsedIngredient.

    Args:
        item: Result with camelCase or snake_case keys
        line: The ingredient line the result belongs to

    Returns:
        An AI-tagged ParsedIngredient
    """
    fields: dict[str, Any] = {}
    for key, value in item.items():
        field = _FIELD_ALIASES.get(key)
        if field is not None:
            fields[field] = value

    confidence = _clean_confidence(fields.get("confidence", DEFAULT_CONFIDENCE))
    metric_quantity = _clean_text(fields.get("metric_quantity"))
    metric_unit = _clean_text(fields.get("metric_unit"))
    if metric_quantity is None or metric_unit is None:
        metric_quantity = metric_unit = None

    return ParsedIngredient(
        original_text=line.strip() or line,
        quantity=_clean_text(fields.get("quantity")),
        unit=canonical_unit(_clean_text(fields.get("unit"))),
        ingredient_name=_clean_text(fields.get("ingredient_name")) or line.strip(),
        preparation_notes=_clean_text(fields.get("preparation_notes")),
        metric_quantity=metric_quantity,
        metric_unit=metric_unit,
        confidence=confidence,
        parsing_method=ParsingMethod.AI,
    )


def normalize_parsed_ingredients(
    items: Sequence[dict[str, Any]] | str,
    lines: Sequence[str],
) -> list[ParsedIngredient]:
    """Normalize a list of external parse results, one per line.

    Args:
        items: Parse results, or the JSON array text holding them
        lines: Ingredient lines in the order the results refer to

    Returns:
        Parsed ingredients, one per line

    Raises:
        IngredientParsingError: If the results are not a list or do not match the lines
    """
    if isinstance(items, str):
        try:
            items = json.loads(items)
        except json.JSONDecodeError as e:
            raise IngredientParsingError(f"Invalid parser response: {e}") from e

    if not isinstance(items, list):
        raise IngredientParsingError("Parser response must be a JSON array")
    if len(items) != len(lines):
        raise IngredientParsingError(
            f"Expected {len(lines)} parsed ingredients, got {len(items)}")

    results = []
    for index, (item, line) in enumerate(zip(items, lines)):
        if not isinstance(item, dict):
            raise IngredientParsingError(
                f"Parsed ingredient at index {index} must be an object")
        try:
            results.append(normalize_parsed_ingredient(item, line))
        except ValidationError as e:
            raise IngredientParsingError(
                f"Invalid parsed ingredient at index {index}: {e}") from e
    return results


def _line_key(text: str) -> str:
    return " ".join(text.lower().split())


class AIIngredientParser(BaseIngredientParser):
    """Parses ingredient lines using AI (LangExtract)."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL) -> None:
        """Initialize the AI ingredient parser.

        Args:
            api_key: API key for the language model
            model: The model to use for extraction

        Raises:
            ValueError: If API key is empty
        """
        if not api_key or not api_key.strip():
            raise ValueError("API key cannot be empty")

        self.api_key = api_key
        self.model = model
        # Use UnicodeTokenizer for multi-language support
        self.tokenizer = tokenizer.UnicodeTokenizer()
        _LOGGER.debug("Initialized AIIngredientParser with model %s", model)

    def _extract(self, lines: Sequence[str]) -> list[Any]:
        result = lx.extract(
            text_or_documents="\n".join(lines),
            prompt_description=INGREDIENT_PROMPT,
            model_id=self.model,
            examples=INGREDIENT_EXAMPLES,
            tokenizer=self.tokenizer,
            api_key=self.api_key
        )
        if not result or not getattr(result, "extractions", None):
            return []
        return [
            extraction for extraction in result.extractions
            if extraction.extraction_class == "ingredient"
        ]

    def _assign(self, lines: Sequence[str], extractions: list[Any]) -> list[dict[str, Any] | None]:
        """Pair each line with the first unused extraction that covers it."""
        assigned: list[dict[str, Any] | None] = [None] * len(lines)
        unused = list(extractions)
        for index, line in enumerate(lines):
            key = _line_key(line)
            for extraction in unused:
                text = _line_key(extraction.extraction_text or "")
                if text and (text == key or text in key or key in text):
                    assigned[index] = extraction.attributes or {
                        "name": extraction.extraction_text}
                    unused.remove(extraction)
                    break
        return assigned

    def parse_ingredients(self, lines: Sequence[str]) -> list[ParsedIngredient]:
        """Parse ingredient lines using AI.

        Args:
            lines: Up to 20 ingredient lines

        Returns:
            One ParsedIngredient per line, in input order

        Raises:
            IngredientValidationError: If the batch is invalid
            IngredientParsingError: If the model call fails
        """
        ensure_valid_batch(list(lines))
        _LOGGER.info("Parsing %d ingredients using AI", len(lines))

        try:
            _LOGGER.debug("Calling LangExtract with model %s", self.model)
            extractions = self._extract(lines)
        except Exception as e:
            _LOGGER.error("Error during AI ingredient parsing: %s",
                          str(e), exc_info=True)
            raise IngredientParsingError(str(e)) from e

        parsed = []
        for line, attributes in zip(lines, self._assign(lines, extractions)):
            if attributes is None:
                _LOGGER.warning("AI skipped ingredient '%s', using pattern parser", line)
                fallback = parse_ingredient_string(line)
                parsed.append(fallback.model_copy(
                    update={"parsing_method": ParsingMethod.AI}))
                continue
            parsed.append(normalize_parsed_ingredient(attributes, line))

        _LOGGER.info("Successfully parsed %d ingredients using AI", len(parsed))
        return parsed
