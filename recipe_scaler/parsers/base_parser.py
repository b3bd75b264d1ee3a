"""
Base Parsers.

This module defines the interfaces recipe and ingredient parsers implement.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..models.ingredient import ParsedIngredient
from ..models.recipe import Recipe


class BaseRecipeParser(ABC):
    """Abstract base class for recipe parsers.

    Recipe parsers turn raw input into a Recipe document.
    """

    @abstractmethod
    def parse_recipe(self, text: str) -> Recipe | None:
        """Parse recipe information from text.

        Args:
            text: The raw recipe input to parse

        Returns:
            A Recipe, or None if parsing fails
        """


class BaseIngredientParser(ABC):
    """Abstract base class for ingredient line parsers."""

    @abstractmethod
    def parse_ingredients(self, lines: Sequence[str]) -> list[ParsedIngredient]:
        """Parse ingredient lines.

        Args:
            lines: Ingredient lines as written

        Returns:
            One ParsedIngredient per line, in input order
        """
