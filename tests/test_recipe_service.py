"""
Test the import flow and the scaled recipe view.
"""
import json

import pytest
import requests

from recipe_scaler.models import ImportStatus, InstructionScalingOptions, Recipe
from recipe_scaler.parsers.base_parser import BaseIngredientParser
from recipe_scaler.parsers.jsonld_parser import JsonLdImportError
from recipe_scaler.services import recipe_service
from recipe_scaler.services.exclusion_manager import create_exclusion
from recipe_scaler.services.ingredient_formatter import parse_ingredient_string
from recipe_scaler.services.recipe_service import (
    InvalidYieldError,
    RecipeImporter,
    scale_recipe,
)


class FailingParser(BaseIngredientParser):
    def parse_ingredients(self, lines):
        raise RuntimeError("model unavailable")


class CancellingParser(BaseIngredientParser):
    """Cancels the import from inside the first batch."""

    def __init__(self):
        self.importer = None
        self.calls = 0

    def parse_ingredients(self, lines):
        self.calls += 1
        self.importer.cancel()
        return [parse_ingredient_string(line) for line in lines]


@pytest.fixture
def imported(sample_json_ld):
    """The sample recipe imported with the pattern parser."""
    state = RecipeImporter().import_json_ld(json.dumps(sample_json_ld))
    assert state.status == ImportStatus.COMPLETE
    return state.recipe


class TestRecipeImporter:
    """Test the import state machine."""

    def test_import_completes(self, sample_json_ld):
        importer = RecipeImporter()
        state = importer.import_json_ld(json.dumps(sample_json_ld))

        assert state.status == ImportStatus.COMPLETE
        assert state.errors == []
        assert state.warnings == []
        assert importer.state == state
        assert importer.generation == 1
        assert state.generation == 1

        recipe = state.recipe
        assert recipe.ingredient_parsing_completed
        assert recipe.ingredient_parsing_date is not None
        assert [p.original_text for p in recipe.parsed_ingredients] == \
            sample_json_ld["recipeIngredient"]
        assert [i.step_number for i in recipe.parsed_instructions] == [1, 2, 3]
        assert state.progress.parsed_count == 4

    def test_state_transitions(self, sample_json_ld):
        seen = []
        importer = RecipeImporter(on_state_change=seen.append)
        importer.import_json_ld(json.dumps(sample_json_ld))

        assert [s.status for s in seen] == [
            ImportStatus.PARSING_JSON,
            ImportStatus.PARSING_INGREDIENTS,
            ImportStatus.PARSING_INGREDIENTS,
            ImportStatus.COMPLETE,
        ]
        assert seen[2].progress.current_batch == 1

    def test_failed_parser_falls_back(self, sample_json_ld):
        state = RecipeImporter(ingredient_parser=FailingParser()).import_json_ld(
            json.dumps(sample_json_ld))

        assert state.status == ImportStatus.COMPLETE
        assert state.warnings == ["4 ingredients could not be parsed automatically"]
        assert len(state.recipe.parsed_ingredients) == 4
        assert all(p.requires_manual_review for p in state.recipe.parsed_ingredients)

    def test_invalid_json(self):
        importer = RecipeImporter()
        state = importer.import_json_ld('{"name": ')

        assert state.status == ImportStatus.ERROR
        assert state.errors[0].startswith("Invalid JSON")
        assert state.recipe is None
        assert importer.state == state

    def test_lenient_warnings_are_kept(self, sample_json_ld):
        del sample_json_ld["image"]
        state = RecipeImporter().import_json_ld(json.dumps(sample_json_ld))

        assert state.status == ImportStatus.COMPLETE
        assert state.warnings == ["Recipe image is missing"]

    def test_strict_mode(self, sample_json_ld):
        del sample_json_ld["image"]
        state = RecipeImporter(mode="strict").import_json_ld(json.dumps(sample_json_ld))
        assert state.status == ImportStatus.ERROR

    def test_cancel_drops_the_running_import(self, sample_json_ld):
        parser = CancellingParser()
        seen = []
        importer = RecipeImporter(ingredient_parser=parser, batch_size=1,
                                  on_state_change=seen.append)
        parser.importer = importer

        state = importer.import_json_ld(json.dumps(sample_json_ld))

        assert state.status == ImportStatus.IDLE
        assert parser.calls == 1
        assert importer.state.status == ImportStatus.IDLE
        assert importer.state.generation == 2
        # Nothing from the cancelled run after the cancel
        assert seen[-1].status == ImportStatus.IDLE
        assert ImportStatus.COMPLETE not in [s.status for s in seen]

    def test_new_import_supersedes_old(self, sample_json_ld):
        importer = RecipeImporter()
        importer.import_json_ld('{"name": ')
        state = importer.import_json_ld(json.dumps(sample_json_ld))

        assert state.generation == 2
        assert importer.state.status == ImportStatus.COMPLETE

    def test_reset(self, sample_json_ld):
        importer = RecipeImporter()
        importer.import_json_ld(json.dumps(sample_json_ld))
        importer.reset()

        assert importer.state.status == ImportStatus.IDLE
        assert importer.state.recipe is None

    def test_import_url(self, monkeypatch, sample_json_ld):
        monkeypatch.setattr(recipe_service, "fetch_recipe_json_ld",
                            lambda url: json.dumps(sample_json_ld))

        state = RecipeImporter().import_url("https://example.com/pancakes")

        assert state.status == ImportStatus.COMPLETE
        assert state.recipe.source_url == "https://example.com/pancakes"

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectionError("connection refused"),
        JsonLdImportError("No Recipe JSON-LD found"),
        ValueError("Cannot access internal IP addresses"),
    ])
    def test_import_url_errors(self, monkeypatch, error):
        def fetch(url):
            raise error

        monkeypatch.setattr(recipe_service, "fetch_recipe_json_ld", fetch)

        state = RecipeImporter().import_url("https://example.com/pancakes")

        assert state.status == ImportStatus.ERROR
        assert state.errors == [str(error)]


class TestScaleRecipe:
    """Test the scaled recipe view."""

    def test_double(self, imported):
        result = scale_recipe(imported, 8)

        assert result["name"] == "Buttermilk Pancakes"
        assert result["yield"]["currentYield"] == 8
        assert result["yield"]["yieldMultiplier"] == 2.0
        assert result["ingredients"] == [
            "4 cup all-purpose flour",
            "4 eggs",
            "3 cup milk",
            "2 tsp salt",
        ]
        assert result["instructions"] == [
            "Whisk 4 cups all-purpose flour with 2 tsp salt.",
            "Beat in 4 eggs and 3 cups milk.",
            "Cook on a hot griddle.",
        ]
        assert result["warnings"] == []

    def test_default_yield_is_unchanged(self, imported):
        result = scale_recipe(imported)
        assert result["yield"]["yieldMultiplier"] == 1.0
        assert result["instructions"][0] == "Whisk 2 cups all-purpose flour with 1 tsp salt."

    def test_unparsed_recipe_uses_text(self, sample_json_ld):
        recipe = Recipe(
            name="Pancakes",
            recipe_yield=4,
            recipe_ingredient=sample_json_ld["recipeIngredient"],
            recipe_instructions=["Beat in 2 eggs and 1 1/2 cups milk."],
        )
        result = scale_recipe(recipe, 2)

        assert result["instructions"] == ["Beat in 1 egg and 3/4 cups milk."]
        assert len(result["ingredients"]) == 4

    def test_exclusions(self, imported):
        recipe = imported.model_copy(update={
            "scaling_exclusions": [create_exclusion(2, "2 eggs", "eggs")],
        })
        result = scale_recipe(recipe, 8)
        assert result["instructions"][1] == "Beat in 2 eggs and 3 cups milk."

    def test_without_fractions(self, imported):
        options = InstructionScalingOptions(use_fraction_symbols=False)
        result = scale_recipe(imported, 5, options)
        assert result["instructions"][1] == "Beat in 2.5 eggs and 1.88 cups milk."

    def test_metric_lines(self, imported):
        result = scale_recipe(imported, 8, convert_units=True, convert_volume=True)
        assert result["ingredients"][0] == "4 cup all-purpose flour (480g)"

    @pytest.mark.parametrize("target,error_type", [(100, "above_maximum"), (1, "below_minimum")])
    def test_invalid_yield(self, imported, target, error_type):
        with pytest.raises(InvalidYieldError) as excinfo:
            scale_recipe(imported, target)
        assert excinfo.value.error.type == error_type

    def test_scale_to_taste(self, sample_json_ld):
        sample_json_ld["recipeInstructions"].append("Sprinkle with 1 tsp salt to taste.")
        recipe = RecipeImporter().import_json_ld(json.dumps(sample_json_ld)).recipe

        assert scale_recipe(recipe, 8)["instructions"][3] == \
            "Sprinkle with 1 tsp salt to taste."

        options = InstructionScalingOptions(scale_to_taste=True)
        assert scale_recipe(recipe, 8, options)["instructions"][3] == \
            "Sprinkle with 2 tsp salt to taste."
