#!/usr/bin/env python3
"""
Recipe Scaler - Import recipes and scale them to a different yield

Imports a recipe from a website or a JSON-LD file, parses its ingredients
(with Google's LangExtract when an API key is available), and prints the
ingredient list and instructions scaled to the requested yield.
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from recipe_scaler.const import DEFAULT_MODEL
from recipe_scaler.models import ImportStatus, InstructionScalingOptions
from recipe_scaler.parsers.ai_parser import AIIngredientParser
from recipe_scaler.services.recipe_service import (
    InvalidYieldError,
    RecipeImporter,
    scale_recipe,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _safe_title(title: str) -> str:
    safe = "".join(c for c in title if c.isalnum() or c in (' ', '-', '_')).rstrip()
    return safe.replace(' ', '_').lower() or "recipe"


def import_and_scale(args: argparse.Namespace, api_key: str | None) -> bool:
    """Import the recipe, save it, and print the scaled view.

    Returns:
        True if successful, False otherwise
    """
    parser = AIIngredientParser(api_key=api_key, model=args.model) if api_key else None
    importer = RecipeImporter(
        ingredient_parser=parser,
        convert_volume=args.convert_volume,
        mode="strict" if args.strict else "lenient",
    )

    if args.source.startswith(("http://", "https://")):
        state = importer.import_url(args.source)
    else:
        try:
            text = _read_source(args.source)
        except OSError as e:
            logger.error("Cannot read %s: %s", args.source, e)
            return False
        state = importer.import_json_ld(text)

    for warning in state.warnings:
        logger.warning(warning)
    if state.status != ImportStatus.COMPLETE or state.recipe is None:
        for error in state.errors:
            logger.error(error)
        return False

    recipe = state.recipe
    if args.output_dir:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        json_file = args.output_dir / f"{_safe_title(recipe.name)}.json"
        logger.info("Saving structured recipe to: %s", json_file)
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(recipe.model_dump(mode="json", by_alias=True), f,
                      indent=2, ensure_ascii=False)

    options = InstructionScalingOptions(
        use_fraction_symbols=not args.no_fractions,
        scale_to_taste=args.scale_to_taste,
    )
    try:
        scaled = scale_recipe(recipe, args.target_yield, options,
                              convert_units=args.metric,
                              convert_volume=args.convert_volume)
    except InvalidYieldError as e:
        logger.error("%s", e)
        return False

    yield_state = scaled["yield"]
    print(f"\n{recipe.name}")
    print(f"Yield: {yield_state['currentYield']:g} "
          f"(original {yield_state['originalYield']:g}, x{yield_state['yieldMultiplier']:g})")
    print("\nIngredients:")
    for line in scaled["ingredients"]:
        print(f"  - {line}")
    print("\nInstructions:")
    for number, step in enumerate(scaled["instructions"], start=1):
        print(f"  {number}. {step}")
    for warning in scaled["warnings"]:
        logger.warning(warning)

    return True


def main():
    """Main entry point for the recipe scaler."""
    parser = argparse.ArgumentParser(
        description="Import a recipe from JSON-LD and scale it to a different yield"
    )
    parser.add_argument(
        "source",
        type=str,
        help="Recipe URL, path to a JSON-LD file, or - for stdin"
    )
    parser.add_argument(
        "--yield",
        dest="target_yield",
        type=float,
        help="Target yield (default: the recipe's own yield)"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory to save the imported recipe as JSON"
    )
    parser.add_argument(
        "--api-key",
        help="API key for AI ingredient parsing (can also be set via "
             "GEMINI_API_KEY or LANGEXTRACT_API_KEY env var)"
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL,
        help=f"Model to use for ingredient parsing (default: {DEFAULT_MODEL})"
    )
    parser.add_argument(
        "--no-fractions",
        action="store_true",
        help="Show decimals instead of fraction symbols"
    )
    parser.add_argument(
        "--scale-to-taste",
        action="store_true",
        help="Also scale amounts marked 'to taste', 'optional' and similar"
    )
    parser.add_argument(
        "--metric",
        action="store_true",
        help="Append metric equivalents to ingredient lines"
    )
    parser.add_argument(
        "--convert-volume",
        action="store_true",
        help="Convert volume to grams where the ingredient density is known"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject recipes without an image"
    )

    args = parser.parse_args()

    api_key = args.api_key or os.getenv("GEMINI_API_KEY") or os.getenv("LANGEXTRACT_API_KEY")
    if not api_key:
        logger.info("No API key provided, ingredients will be parsed by pattern")

    sys.exit(0 if import_and_scale(args, api_key) else 1)


if __name__ == "__main__":
    main()
