"""
Test rewriting instruction quantities for a new yield.
"""
import pytest

from recipe_scaler.models import InstructionScalingOptions
from recipe_scaler.services.exclusion_manager import apply_exclusions, create_exclusion
from recipe_scaler.services.instruction_parser import parse_instruction
from recipe_scaler.services.instruction_scaling import (
    find_scaled_ingredient,
    ingredient_match_score,
    match_ingredient,
    scale_instruction_text,
    scale_instructions,
    scale_structured_instruction,
)
from recipe_scaler.services.yield_adjuster import scale_ingredients


class TestMatchIngredient:
    """Test fuzzy ingredient name matching."""

    def test_scores(self):
        assert ingredient_match_score("Flour", "flour") == 1.0
        assert ingredient_match_score("egg", "eggs") == 0.9
        assert ingredient_match_score("flour", "all-purpose flour") == 0.7
        assert ingredient_match_score("flour", "sugar") == 0.0
        assert ingredient_match_score("", "sugar") == 0.0

    def test_threshold(self):
        assert match_ingredient("flour", "all-purpose flour")
        assert not match_ingredient("flour", "all-purpose flour", threshold=0.8)
        assert not match_ingredient("flour", "sugar", threshold=0.0)

    def test_best_match_wins(self, make_ingredient):
        scaled = scale_ingredients([
            make_ingredient("bread flour", "1", "cup"),
            make_ingredient("flour", "2", "cup"),
        ], 2.0)
        assert find_scaled_ingredient("flour", scaled) is scaled[1]

    def test_first_wins_ties(self, make_ingredient):
        scaled = scale_ingredients([
            make_ingredient("bread flour", "1", "cup"),
            make_ingredient("all-purpose flour", "2", "cup"),
        ], 2.0)
        assert find_scaled_ingredient("flour", scaled) is scaled[0]

    def test_no_match(self, doubled):
        assert find_scaled_ingredient("saffron", doubled) is None


class TestScaleInstructionText:
    """Test the quick-scale path on raw text."""

    def test_basic_scaling(self, doubled):
        result = scale_instruction_text("Mix 2 eggs with flour", doubled)
        assert result.scaled == "Mix 4 eggs with flour"
        assert result.was_scaled
        assert result.reference_count == 1
        assert result.references[0].is_matched

    def test_opt_out_is_left_alone(self, doubled):
        text = "Season with 1 cup salt to taste"
        result = scale_instruction_text(text, doubled)
        assert result.scaled == text
        assert not result.was_scaled
        assert result.reference_count == 0

    def test_scale_to_taste(self, doubled):
        options = InstructionScalingOptions(scale_to_taste=True)
        result = scale_instruction_text("Season with 1 cup salt to taste", doubled, options)
        assert result.scaled == "Season with 2 cups salt to taste"

    def test_unit_agrees_with_new_quantity(self, make_ingredient):
        halved = scale_ingredients([make_ingredient("flour", "2", "cup")], 0.5)
        result = scale_instruction_text("Add 2 cups flour", halved)
        assert result.scaled == "Add 1 cup flour"

    def test_fraction_display(self, make_ingredient):
        scaled = scale_ingredients([make_ingredient("flour", "1", "cup")], 1.5)
        assert scale_instruction_text("Add 1 cup of flour", scaled).scaled == \
            "Add 1 1/2 cups of flour"

        options = InstructionScalingOptions(use_fraction_symbols=False)
        assert scale_instruction_text("Add 1 cup of flour", scaled, options).scaled == \
            "Add 1.5 cups of flour"

    def test_emphasis_is_preserved(self, doubled):
        result = scale_instruction_text("Add **2 eggs** and stir", doubled)
        assert result.scaled == "Add **4 eggs** and stir"

    def test_emphasis_can_be_dropped(self, doubled):
        options = InstructionScalingOptions(preserve_formatting=False)
        result = scale_instruction_text("Add **2 eggs** and stir", doubled, options)
        assert result.scaled == "Add 4 eggs and stir"

    def test_capitalization_is_preserved(self, make_ingredient):
        halved = scale_ingredients([make_ingredient("eggs", "2")], 0.5)
        assert scale_instruction_text("Crack 2 Eggs", halved).scaled == "Crack 1 Egg"

    def test_abbreviated_units_do_not_change(self, make_ingredient):
        scaled = scale_ingredients([make_ingredient("salt", "1", "tsp")], 3.0)
        assert scale_instruction_text("Add 1 tsp salt.", scaled).scaled == "Add 3 tsp salt."

    def test_partial_amount_takes_the_scaled_amount(self, make_ingredient):
        scaled = scale_ingredients([make_ingredient("flour", "3", "cup")], 2.0)
        result = scale_instruction_text("Add 1 cup flour, then the rest", scaled)
        assert result.scaled == "Add 6 cups flour, then the rest"

    def test_partial_amount_scaled_by_ratio_when_enabled(self, make_ingredient):
        scaled = scale_ingredients([make_ingredient("flour", "3", "cup")], 2.0)
        options = InstructionScalingOptions(scale_partial_amounts=True)
        result = scale_instruction_text("Add 1 cup flour, then the rest", scaled, options)
        assert result.scaled == "Add 2 cups flour, then the rest"

    @pytest.mark.parametrize("text,expected", [
        ("Add 1 quart water", "Add 2 quarts water"),
        ("Add 1 pint water", "Add 2 pints water"),
        ("Add 1 gallon of water", "Add 2 gallons of water"),
        ("Add 1 c water", "Add 2 c water"),
        ("Add 1 qt. water", "Add 2 qt. water"),
        ("Add 1 T water", "Add 2 T water"),
    ])
    def test_every_known_unit_is_scaled(self, make_ingredient, text, expected):
        scaled = scale_ingredients([make_ingredient("water", "1", "cup")], 2.0)
        result = scale_instruction_text(text, scaled)
        assert result.scaled == expected
        assert result.reference_count == 1

    def test_several_references(self, doubled):
        result = scale_instruction_text("Beat 2 eggs, then add 2 cups flour and 1/2 cup milk.", doubled)
        assert result.scaled == "Beat 4 eggs, then add 4 cups flour and 1 cup milk."
        assert result.reference_count == 3

    def test_unscalable_reference_warns(self, make_ingredient):
        scaled = scale_ingredients([make_ingredient("salt")], 2.0)
        result = scale_instruction_text("Add 1 tsp salt", scaled)
        assert result.scaled == "Add 1 tsp salt"
        assert result.warnings == ["Could not scale salt"]
        assert not result.references[0].is_matched

    def test_reference_limit(self, doubled):
        options = InstructionScalingOptions(max_references_per_instruction=1)
        result = scale_instruction_text("Add 2 eggs and 2 cups flour", doubled, options)
        assert result.scaled == "Add 4 eggs and 2 cups flour"

    def test_empty_text(self, doubled):
        result = scale_instruction_text("", doubled)
        assert result.scaled == ""
        assert not result.was_scaled

    def test_scale_instructions_keeps_order(self, doubled):
        results = scale_instructions(["Crack 2 eggs", "Serve.", "Add 2 cups flour"], doubled)
        assert [r.scaled for r in results] == ["Crack 4 eggs", "Serve.", "Add 4 cups flour"]


class TestScaleStructuredInstruction:
    """Test the segmented path with exclusions."""

    def test_agrees_with_quick_scale(self, doubled):
        text = "Beat 2 eggs, then add **2 cups flour** and 1/2 cup milk."
        names = [s.original.ingredient_name for s in doubled]
        instruction = parse_instruction(text, 1, names)
        structured = scale_structured_instruction(instruction, doubled)
        assert structured.scaled == scale_instruction_text(text, doubled).scaled

    def test_excluded_reference_is_not_scaled(self, doubled):
        instruction = parse_instruction("Mix 2 cups flour and 2 eggs", 1, ["flour", "eggs"])
        exclusion = create_exclusion(1, "2 eggs", "eggs")
        [excluded] = apply_exclusions([instruction], [exclusion])

        result = scale_structured_instruction(excluded, doubled)
        assert result.scaled == "Mix 4 cups flour and 2 eggs"
        assert result.reference_count == 1

    def test_segment_name_matches_fuzzily(self, make_ingredient):
        instruction = parse_instruction("Add 2 cups flour", 1, ["flour"])
        scaled = scale_ingredients([make_ingredient("all-purpose flour", "2", "cup")], 2.0)
        assert scale_structured_instruction(instruction, scaled).scaled == "Add 4 cups flour"

    def test_scale_to_taste(self, doubled):
        text = "Beat 2 eggs, then season with 1 cup salt to taste."
        names = [s.original.ingredient_name for s in doubled]
        instruction = parse_instruction(text, 1, names)

        unscaled = scale_structured_instruction(instruction, doubled)
        assert unscaled.scaled == text
        assert unscaled.reference_count == 0

        options = InstructionScalingOptions(scale_to_taste=True)
        result = scale_structured_instruction(instruction, doubled, options)
        assert result.scaled == "Beat 4 eggs, then season with 2 cups salt to taste."
        assert result.reference_count == 2
        assert result.references[1].start_index == text.index("1 cup salt")
        assert result.scaled == scale_instruction_text(text, doubled, options).scaled

    def test_reference_limit(self, doubled):
        instruction = parse_instruction("Add 2 eggs and 2 cups flour", 1, ["eggs", "flour"])
        options = InstructionScalingOptions(max_references_per_instruction=1)
        result = scale_structured_instruction(instruction, doubled, options)
        assert result.scaled == "Add 4 eggs and 2 cups flour"
        assert result.reference_count == 1
