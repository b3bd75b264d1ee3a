"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""
import copy

import pytest

from recipe_scaler.models import ParsedIngredient, ParsingMethod
from recipe_scaler.services.yield_adjuster import scale_ingredients


SAMPLE_JSON_LD = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Buttermilk Pancakes",
    "description": "Fluffy weekend pancakes &amp; syrup",
    "image": [
        {"@type": "ImageObject", "url": "https://example.com/pancakes.jpg"},
    ],
    "author": {"@type": "Person", "name": "Ann Baker"},
    "datePublished": "2024-03-01",
    "prepTime": "PT10M",
    "cookTime": "PT15M",
    "totalTime": "PT25M",
    "recipeYield": ["4", "4 servings"],
    "recipeCategory": "Breakfast",
    "recipeCuisine": ["American"],
    "keywords": "pancakes, breakfast, easy",
    "nutrition": {"@type": "NutritionInformation", "calories": "220 calories"},
    "recipeIngredient": [
        "2 cups all-purpose flour",
        "2 eggs",
        "1 1/2 cups milk",
        "1 tsp salt",
    ],
    "recipeInstructions": [
        {"@type": "HowToStep", "text": "Whisk 2 cups all-purpose flour with 1 tsp salt."},
        {"@type": "HowToStep", "text": "Beat in 2 eggs and 1 1/2 cups milk."},
        {"@type": "HowToStep", "text": "Cook on a hot griddle."},
    ],
}


@pytest.fixture
def sample_json_ld():
    """A complete Schema.org Recipe node (a fresh copy per test)."""
    return copy.deepcopy(SAMPLE_JSON_LD)


@pytest.fixture
def make_ingredient():
    """
    Factory for ParsedIngredient records.

    Usage in tests:
        flour = make_ingredient("flour", "2", "cup")
    """
    def _make(name, quantity=None, unit=None, **kwargs):
        original_text = kwargs.pop("original_text", None) or " ".join(
            part for part in (quantity, unit, name) if part)
        kwargs.setdefault("confidence", 0.95)
        kwargs.setdefault("parsing_method", ParsingMethod.AI)
        return ParsedIngredient(
            original_text=original_text,
            quantity=quantity,
            unit=unit,
            ingredient_name=name,
            **kwargs,
        )
    return _make


@pytest.fixture
def doubled(make_ingredient):
    """Eggs, flour, salt and milk scaled by 2."""
    ingredients = [
        make_ingredient("eggs", "2"),
        make_ingredient("flour", "2", "cup"),
        make_ingredient("salt", "1", "cup"),
        make_ingredient("milk", "1/2", "cup"),
    ]
    return scale_ingredients(ingredients, 2.0)
