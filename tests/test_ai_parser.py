"""
Test the AI ingredient parser with the model call replaced.
"""
from types import SimpleNamespace

import pytest

from recipe_scaler.models import ParsingMethod
from recipe_scaler.parsers import ai_parser
from recipe_scaler.parsers.ai_parser import (
    AIIngredientParser,
    IngredientParsingError,
    normalize_parsed_ingredient,
    normalize_parsed_ingredients,
)
from recipe_scaler.services.batch_parser import IngredientValidationError


def _extraction(text, **attributes):
    return SimpleNamespace(
        extraction_class="ingredient",
        extraction_text=text,
        attributes=attributes,
    )


@pytest.fixture
def fake_extract(monkeypatch):
    """Replace lx.extract; set ``.extractions`` or ``.error`` on the returned object."""
    calls = []
    fake = SimpleNamespace(extractions=[], error=None, calls=calls)

    def _extract(**kwargs):
        calls.append(kwargs)
        if fake.error is not None:
            raise fake.error
        return SimpleNamespace(extractions=fake.extractions)

    monkeypatch.setattr(ai_parser.lx, "extract", _extract)
    return fake


class TestNormalize:
    """Test normalization of external parse results."""

    def test_camel_case_keys(self):
        ingredient = normalize_parsed_ingredient({
            "quantity": "2",
            "unit": "Cups",
            "ingredientName": "flour",
            "preparationNotes": "sifted",
            "metricQuantity": "240",
            "metricUnit": "g",
            "confidence": "0.95",
        }, " 2 cups flour, sifted ")

        assert ingredient.original_text == "2 cups flour, sifted"
        assert ingredient.unit == "cup"
        assert ingredient.preparation_notes == "sifted"
        assert (ingredient.metric_quantity, ingredient.metric_unit) == ("240", "g")
        assert ingredient.confidence == 0.95
        assert ingredient.parsing_method == ParsingMethod.AI

    def test_half_metric_pair_is_dropped(self):
        ingredient = normalize_parsed_ingredient(
            {"name": "flour", "metric_quantity": "240"}, "flour")
        assert ingredient.metric_quantity is None
        assert ingredient.metric_unit is None

    @pytest.mark.parametrize("value,expected", [
        ("high", 0.5),
        (None, 0.5),
        (float("nan"), 0.5),
        (1.7, 1.0),
        (-2, 0.0),
    ])
    def test_confidence_is_clamped(self, value, expected):
        ingredient = normalize_parsed_ingredient({"name": "salt", "confidence": value}, "salt")
        assert ingredient.confidence == expected

    def test_name_falls_back_to_line(self):
        ingredient = normalize_parsed_ingredient({"quantity": "1"}, "1 lemon")
        assert ingredient.ingredient_name == "1 lemon"
        assert ingredient.requires_manual_review

    def test_json_text(self):
        parsed = normalize_parsed_ingredients(
            '[{"name": "eggs", "quantity": 2, "confidence": 0.9}]', ["2 eggs"])
        assert parsed[0].quantity == "2"

    @pytest.mark.parametrize("items,lines", [
        ("[not json", ["2 eggs"]),
        ('{"name": "eggs"}', ["2 eggs"]),
        ([], ["2 eggs"]),
        (["eggs"], ["2 eggs"]),
    ])
    def test_bad_responses(self, items, lines):
        with pytest.raises(IngredientParsingError):
            normalize_parsed_ingredients(items, lines)


class TestAIIngredientParser:
    """Test the LangExtract-backed parser."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            AIIngredientParser(api_key="  ")

    def test_parses_lines(self, fake_extract):
        fake_extract.extractions = [
            _extraction("2 cups flour", quantity="2", unit="cups", name="flour",
                        confidence="0.95"),
            _extraction("1 tsp salt", quantity="1", unit="teaspoon", name="salt",
                        metric_quantity="5", metric_unit="g", confidence="0.9"),
        ]
        parser = AIIngredientParser(api_key="key", model="gemini-2.5-flash")

        parsed = parser.parse_ingredients(["2 cups flour", "1 tsp salt"])

        assert [(p.quantity, p.unit, p.ingredient_name) for p in parsed] == [
            ("2", "cup", "flour"),
            ("1", "tsp", "salt"),
        ]
        call = fake_extract.calls[0]
        assert call["text_or_documents"] == "2 cups flour\n1 tsp salt"
        assert call["model_id"] == "gemini-2.5-flash"
        assert call["api_key"] == "key"

    def test_out_of_order_extractions(self, fake_extract):
        fake_extract.extractions = [
            _extraction("3 eggs", quantity="3", name="eggs", confidence="0.95"),
            _extraction("1 cup milk", quantity="1", unit="cup", name="milk",
                        confidence="0.95"),
        ]
        parser = AIIngredientParser(api_key="key")

        parsed = parser.parse_ingredients(["1 cup milk", "3 eggs"])

        assert [p.ingredient_name for p in parsed] == ["milk", "eggs"]

    def test_skipped_line_uses_pattern_parser(self, fake_extract):
        fake_extract.extractions = [
            _extraction("2 cups flour", quantity="2", unit="cup", name="flour",
                        confidence="0.95"),
            SimpleNamespace(extraction_class="note", extraction_text="3 eggs",
                            attributes={}),
        ]
        parser = AIIngredientParser(api_key="key")

        parsed = parser.parse_ingredients(["2 cups flour", "3 eggs"])

        eggs = parsed[1]
        assert eggs.original_text == "3 eggs"
        assert eggs.quantity == "3"
        assert eggs.ingredient_name == "eggs"
        assert eggs.parsing_method == ParsingMethod.AI
        assert eggs.requires_manual_review

    def test_model_failure(self, fake_extract):
        fake_extract.error = RuntimeError("quota exceeded")
        parser = AIIngredientParser(api_key="key")

        with pytest.raises(IngredientParsingError, match="quota exceeded"):
            parser.parse_ingredients(["2 eggs"])

    def test_invalid_batch(self, fake_extract):
        parser = AIIngredientParser(api_key="key")
        with pytest.raises(IngredientValidationError):
            parser.parse_ingredients(["2 eggs"] * 21)
        assert fake_extract.calls == []
