"""
Test the recipe data models.
"""
import pytest
from pydantic import ValidationError

from recipe_scaler.models import (
    ImportState,
    ParsedIngredient,
    ParsingMethod,
    Recipe,
    StructuredInstruction,
)


class TestParsedIngredient:
    """Test the ParsedIngredient model."""

    def test_low_confidence_needs_review(self, make_ingredient):
        assert make_ingredient("flour", "2", "cup", confidence=0.5).requires_manual_review
        assert not make_ingredient("flour", "2", "cup", confidence=0.7).requires_manual_review

    def test_manual_entries_never_need_review(self, make_ingredient):
        ingredient = make_ingredient(
            "flour", "2", "cup", confidence=0.1, parsing_method=ParsingMethod.MANUAL)
        assert not ingredient.requires_manual_review

    def test_review_flag_is_derived(self, make_ingredient):
        ingredient = make_ingredient("flour", confidence=0.9, requires_manual_review=True)
        assert not ingredient.requires_manual_review

    def test_numeric_quantity_becomes_text(self, make_ingredient):
        assert make_ingredient("flour", 2.0, original_text="2 flour").quantity == "2"
        assert make_ingredient("flour", 0.5, original_text="0.5 flour").quantity == "0.5"

    def test_blank_fields_become_none(self, make_ingredient):
        ingredient = make_ingredient("salt", "  ", " ", original_text="salt")
        assert ingredient.quantity is None
        assert ingredient.unit is None

    def test_metric_pair_must_be_complete(self, make_ingredient):
        with pytest.raises(ValidationError):
            make_ingredient("flour", "2", "cup", metric_quantity="240")

        ingredient = make_ingredient("flour", "2", "cup",
                                     metric_quantity="240", metric_unit="g")
        assert ingredient.has_metric

    @pytest.mark.parametrize("confidence", [-0.1, 1.5])
    def test_confidence_bounds(self, make_ingredient, confidence):
        with pytest.raises(ValidationError):
            make_ingredient("flour", confidence=confidence)

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ParsedIngredient(original_text="2 cups", ingredient_name="")

    def test_camel_case_round_trip(self, make_ingredient):
        ingredient = make_ingredient("flour", "2", "cup", preparation_notes="sifted")
        data = ingredient.model_dump(by_alias=True)

        assert data["ingredientName"] == "flour"
        assert data["preparationNotes"] == "sifted"
        assert data["parsingMethod"] == ParsingMethod.AI
        assert ParsedIngredient.model_validate(data) == ingredient


class TestRecipe:
    """Test the Recipe document model."""

    def test_yield_list_takes_first(self):
        assert Recipe(name="Pancakes", recipe_yield=["4", "4 servings"]).recipe_yield == "4"
        assert Recipe(name="Pancakes", recipe_yield=[]).recipe_yield is None

    def test_reads_camel_case_document(self):
        recipe = Recipe.model_validate({
            "name": "Pancakes",
            "recipeYield": 4,
            "recipeIngredient": ["2 eggs"],
            "recipeInstructions": ["Beat 2 eggs."],
            "parsedInstructions": [{
                "id": "step-1",
                "originalText": "Beat 2 eggs.",
                "stepNumber": 1,
                "segments": [
                    {"type": "text", "content": "Beat "},
                    {"type": "ingredient_ref", "originalText": "2 eggs",
                     "ingredientName": "eggs", "originalQuantity": "2",
                     "ingredientIndex": 0},
                    {"type": "text", "content": "."},
                ],
            }],
        })

        segments = recipe.parsed_instructions[0].segments
        assert [segment.type for segment in segments] == ["text", "ingredient_ref", "text"]
        assert "".join(segment.text for segment in segments) == "Beat 2 eggs."
        assert recipe.recipe_ingredient == ["2 eggs"]

    def test_unknown_segment_type_rejected(self):
        with pytest.raises(ValidationError):
            StructuredInstruction.model_validate({
                "id": "step-1",
                "originalText": "x",
                "stepNumber": 1,
                "segments": [{"type": "image", "content": "x"}],
            })


class TestImportState:
    def test_defaults_to_idle(self):
        state = ImportState()
        assert state.status == "idle"
        assert state.generation == 0
        assert state.recipe is None
