"""
JSON-LD Recipe Parser.

This module imports recipes from Schema.org JSON-LD, as pasted by a user or
embedded in a web page. Input is cleaned up (code fences, wrapping quotes,
escaped quotes), validated, and the Recipe node is mapped onto a Recipe
document. Missing optional fields become warnings rather than errors.
"""
from __future__ import annotations

import html
import json
import logging
import re
import time
from typing import Any

from bs4 import BeautifulSoup

from ..const import JSON_LD_MAX_INPUT_SIZE
from ..models.recipe import Recipe, RecipeParseResult, ValidationIssue, ValidationMode
from .base_parser import BaseRecipeParser

_LOGGER = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(
    r"^```[a-zA-Z+\-]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")

TIME_FIELDS = ("prepTime", "cookTime", "totalTime")


class JsonLdImportError(ValueError):
    """Raised when no usable recipe JSON-LD can be found."""


def is_recipe(item: Any) -> bool:
    """Check if a JSON-LD item represents a Recipe."""
    if not isinstance(item, dict):
        return False
    item_type = item.get("@type")
    if isinstance(item_type, str):
        return item_type == "Recipe"
    if isinstance(item_type, list):
        return "Recipe" in item_type
    return False


def find_recipe_in_json_ld(data: Any) -> dict[str, Any] | None:
    """Find the Recipe node in parsed JSON-LD.

    Handles a list of nodes, an ``@graph`` container and a bare Recipe.
    """
    if isinstance(data, list):
        for item in data:
            found = find_recipe_in_json_ld(item)
            if found is not None:
                return found
        return None

    if isinstance(data, dict):
        if is_recipe(data):
            return data
        graph = data.get("@graph")
        if isinstance(graph, list):
            return next((item for item in graph if is_recipe(item)), None)

    return None


def find_recipe_in_html(markup: str | bytes) -> dict[str, Any] | None:
    """Find the Recipe node in the JSON-LD scripts of an HTML page."""
    soup = BeautifulSoup(markup, features="html.parser")
    scripts = soup.find_all("script", type="application/ld+json")
    _LOGGER.debug("Found %d JSON-LD scripts", len(scripts))

    for idx, script in enumerate(scripts):
        if not script.string:
            continue
        try:
            data = json.loads(script.string)
        except json.JSONDecodeError as e:
            _LOGGER.debug("Failed to parse JSON-LD script %d: %s", idx, e)
            continue
        recipe = find_recipe_in_json_ld(data)
        if recipe is not None:
            _LOGGER.debug("Found recipe data in JSON-LD script %d", idx)
            return recipe

    return None


def _is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


def preprocess_json_input(text: str) -> str:
    """Clean up pasted JSON-LD before parsing.

    Strips a byte order mark, markdown code fences, wrapping backticks or
    quotes, and unescapes quotes when the whole document was escaped.
    """
    cleaned = text.lstrip("\ufeff").strip()

    fence = _CODE_FENCE_RE.match(cleaned)
    if fence:
        cleaned = fence.group(1).strip()

    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "`'\"":
        inner = cleaned.strip(cleaned[0]).strip()
        if inner.startswith(("{", "[")):
            cleaned = inner

    if '\\"' in cleaned and not _is_valid_json(cleaned):
        unescaped = cleaned.replace('\\"', '"')
        if _is_valid_json(unescaped):
            cleaned = unescaped

    return cleaned


def detect_input_format(text: str) -> str:
    """Return 'json', 'html' or 'unknown' for cleaned input."""
    stripped = text.lstrip()
    if stripped.startswith(("{", "[")):
        return "json"
    lowered = stripped[:2000].lower()
    if lowered.startswith("<") and ("<script" in text.lower() or "<html" in lowered):
        return "html"
    return "unknown"


def validate_json(text: str) -> tuple[Any, ValidationIssue | None]:
    """Parse JSON, reporting the line and column of a syntax error."""
    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        return None, ValidationIssue(
            code="invalid_json",
            message=f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            line=e.lineno,
            column=e.colno,
        )


def ensure_array(value: Any, split_commas: bool = False) -> list[str]:
    """Coerce a JSON-LD value to a list of non-empty strings."""
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    result = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("name") or item.get("text")
        if item is None:
            continue
        text = html.unescape(str(item)).strip()
        parts = text.split(",") if split_commas else [text]
        result.extend(part.strip() for part in parts if part.strip())
    return result


def extract_image_url(image: Any) -> str | None:
    """Get an image URL from a string, an ImageObject or a list of either."""
    if isinstance(image, str):
        return image.strip() or None
    if isinstance(image, list):
        for item in image:
            url = extract_image_url(item)
            if url:
                return url
        return None
    if isinstance(image, dict):
        return extract_image_url(image.get("url") or image.get("@id"))
    return None


def extract_author(author: Any) -> str | None:
    """Get the author name(s) from a string, a Person or a list of either."""
    if isinstance(author, str):
        return author.strip() or None
    if isinstance(author, dict):
        name = author.get("name")
        return str(name).strip() if name else None
    if isinstance(author, list):
        names = [name for name in (extract_author(item) for item in author) if name]
        return ", ".join(names) or None
    return None


def extract_calories(nutrition: Any) -> float | None:
    if not isinstance(nutrition, dict):
        return None
    calories = nutrition.get("calories")
    if isinstance(calories, (int, float)) and not isinstance(calories, bool):
        return float(calories)
    if isinstance(calories, str):
        match = _NUMBER_RE.search(calories)
        if match:
            return float(match.group())
    return None


def _step_text(step: dict[str, Any]) -> str | None:
    text = str(step.get("text") or "").strip()
    name = str(step.get("name") or "").strip()
    if text and name and name != text and not text.startswith(name):
        return f"{name}: {text}"
    return text or name or None


def extract_instructions(instructions: Any) -> list[str]:
    """Flatten recipeInstructions into a list of step strings.

    Accepts a newline-separated string, plain strings, HowToStep nodes and
    HowToSection nodes containing steps.
    """
    if instructions is None:
        return []
    if isinstance(instructions, str):
        return [
            html.unescape(line).strip()
            for line in instructions.splitlines() if line.strip()
        ]
    if isinstance(instructions, dict):
        instructions = [instructions]
    if not isinstance(instructions, list):
        return []

    steps: list[str] = []
    for item in instructions:
        if isinstance(item, str):
            if item.strip():
                steps.append(html.unescape(item).strip())
        elif isinstance(item, dict):
            if "itemListElement" in item:
                steps.extend(extract_instructions(item["itemListElement"]))
            else:
                text = _step_text(item)
                if text:
                    steps.append(html.unescape(text))
    return steps


def extract_recipe_fields(node: dict[str, Any], source_url: str | None = None) -> dict[str, Any]:
    """Map a JSON-LD Recipe node onto Recipe fields."""
    recipe_yield = node.get("recipeYield")
    if isinstance(recipe_yield, list):
        recipe_yield = recipe_yield[0] if recipe_yield else None

    name = node.get("name")
    description = node.get("description")
    return {
        "name": html.unescape(str(name)).strip() if name else "",
        "description": html.unescape(str(description)).strip() if description else None,
        "image": extract_image_url(node.get("image")),
        "author": extract_author(node.get("author")),
        "source_url": source_url or node.get("url"),
        "date_published": node.get("datePublished"),
        "prep_time": node.get("prepTime"),
        "cook_time": node.get("cookTime"),
        "total_time": node.get("totalTime"),
        "recipe_yield": recipe_yield,
        "recipe_category": ensure_array(node.get("recipeCategory")),
        "recipe_cuisine": ensure_array(node.get("recipeCuisine")),
        "keywords": ensure_array(node.get("keywords"), split_commas=True),
        "calories": extract_calories(node.get("nutrition")),
        "recipe_ingredient": ensure_array(node.get("recipeIngredient")),
        "recipe_instructions": extract_instructions(node.get("recipeInstructions")),
    }


def validate_recipe_fields(
    fields: dict[str, Any], mode: ValidationMode = "lenient"
) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    """Check extracted fields.

    Returns:
        (errors, warnings); a missing name is always an error, a missing
        image only in strict mode
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    if not fields.get("name"):
        errors.append(ValidationIssue(
            code="missing_field", field="name", message="Recipe name is required"))

    if not fields.get("image"):
        issue = ValidationIssue(
            code="missing_field", field="image", message="Recipe image is missing")
        (errors if mode == "strict" else warnings).append(issue)

    if not fields.get("recipe_ingredient"):
        warnings.append(ValidationIssue(
            code="missing_field", field="recipeIngredient",
            message="Recipe has no ingredients"))
    if not fields.get("recipe_instructions"):
        warnings.append(ValidationIssue(
            code="missing_field", field="recipeInstructions",
            message="Recipe has no instructions"))
    if fields.get("recipe_yield") in (None, ""):
        warnings.append(ValidationIssue(
            code="missing_field", field="recipeYield",
            message="Recipe yield is missing, scaling assumes 1 serving"))
    if not any(fields.get(key) for key in ("prep_time", "cook_time", "total_time")):
        warnings.append(ValidationIssue(
            code="missing_field", field="totalTime",
            message="Recipe has no timing information"))

    return errors, warnings


class JSONLDRecipeParser(BaseRecipeParser):
    """Parses recipe data from structured JSON-LD format.

    This parser handles pre-structured recipe data that follows the Schema.org
    Recipe format, requiring no AI inference.
    """

    def __init__(self, mode: ValidationMode = "lenient") -> None:
        """Initialize the JSON-LD recipe parser.

        Args:
            mode: 'lenient' treats a missing image as a warning, 'strict' as an error
        """
        self.mode = mode
        _LOGGER.debug("Initialized JSONLDRecipeParser (%s)", mode)

    def _failure(self, issue: ValidationIssue, metadata: dict[str, Any]) -> RecipeParseResult:
        _LOGGER.warning("JSON-LD import failed: %s", issue.message)
        return RecipeParseResult(success=False, errors=[issue], metadata=metadata)

    def parse(self, text: str, source_url: str | None = None) -> RecipeParseResult:
        """Parse pasted JSON-LD (or an HTML page containing it).

        Args:
            text: JSON-LD text or HTML
            source_url: Where the recipe came from, if known

        Returns:
            RecipeParseResult with the recipe on success, and any errors and warnings
        """
        started = time.monotonic()
        size = len(text.encode("utf-8")) if text else 0
        metadata: dict[str, Any] = {"input_size": size, "source_url": source_url}

        if not text or not text.strip():
            return self._failure(ValidationIssue(
                code="empty_input", message="No JSON-LD provided"), metadata)

        if size > JSON_LD_MAX_INPUT_SIZE:
            return self._failure(ValidationIssue(
                code="size_limit",
                message=f"Input is too large ({size} bytes, maximum {JSON_LD_MAX_INPUT_SIZE})",
            ), metadata)

        cleaned = preprocess_json_input(text)
        input_format = detect_input_format(cleaned)
        metadata["input_format"] = input_format

        if input_format == "html":
            node = find_recipe_in_html(cleaned)
        else:
            data, issue = validate_json(cleaned)
            if issue is not None:
                return self._failure(issue, metadata)
            node = find_recipe_in_json_ld(data)

        if node is None:
            return self._failure(ValidationIssue(
                code="no_recipe", message="No Recipe found in JSON-LD"), metadata)

        fields = extract_recipe_fields(node, source_url)
        errors, warnings = validate_recipe_fields(fields, self.mode)
        metadata["parse_time_ms"] = int((time.monotonic() - started) * 1000)
        metadata["ingredient_count"] = len(fields["recipe_ingredient"])
        metadata["instruction_count"] = len(fields["recipe_instructions"])

        if errors:
            _LOGGER.warning("JSON-LD recipe rejected: %s",
                            "; ".join(error.message for error in errors))
            return RecipeParseResult(
                success=False, errors=errors, warnings=warnings, metadata=metadata)

        recipe = Recipe(**fields)
        _LOGGER.info("Parsed JSON-LD recipe '%s' with %d ingredients and %d steps",
                     recipe.name, len(recipe.recipe_ingredient),
                     len(recipe.recipe_instructions))
        return RecipeParseResult(
            success=True, recipe=recipe, warnings=warnings, metadata=metadata)

    def parse_recipe(self, text: str) -> Recipe | None:
        """Parse JSON-LD text, returning None when it is unusable."""
        return self.parse(text).recipe
