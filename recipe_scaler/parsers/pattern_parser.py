"""Ingredient parser based on line patterns, used when no AI model is configured."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.ingredient import ParsedIngredient
from ..services.batch_parser import ensure_valid_batch
from ..services.ingredient_formatter import parse_ingredient_string
from .base_parser import BaseIngredientParser

_LOGGER = logging.getLogger(__name__)


class PatternIngredientParser(BaseIngredientParser):
    """Parses ingredient lines with regular expressions."""

    def __init__(self, convert_volume: bool = False) -> None:
        self.convert_volume = convert_volume

    def parse_ingredients(self, lines: Sequence[str]) -> list[ParsedIngredient]:
        ensure_valid_batch(list(lines))
        _LOGGER.debug("Pattern-parsing %d ingredient lines", len(lines))
        return [
            parse_ingredient_string(line, convert_volume=self.convert_volume)
            for line in lines
        ]
