"""
Service Handlers.

This module contains the Home Assistant service handler functions for
importing recipes and scaling them to a target yield.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ServiceValidationError
from pydantic import ValidationError

from recipe_scaler.models import ImportStatus, InstructionScalingOptions, Recipe
from recipe_scaler.parsers.ai_parser import AIIngredientParser
from recipe_scaler.services.recipe_service import (
    InvalidYieldError,
    RecipeImporter,
    scale_recipe,
)

from .const import (
    DOMAIN,
    CONF_API_KEY,
    CONF_DEFAULT_MODEL,
    CONF_USE_FRACTIONS,
    CONF_SCALE_TO_TASTE,
    CONF_CONVERT_UNITS,
    CONF_CONVERT_VOLUME,
    EVENT_RECIPE_IMPORTED,
    EVENT_IMPORT_FAILED,
    EVENT_RECIPE_SCALED,
    DATA_URL,
    DATA_JSON_LD,
    DATA_RECIPE,
    DATA_TARGET_YIELD,
    DATA_ERROR,
    DATA_WARNINGS,
)

_LOGGER = logging.getLogger(__name__)


def get_entry_config(hass: HomeAssistant) -> dict[str, Any] | None:
    """Get configuration from the first available config entry.

    Returns:
        Configuration dict or None if no entries exist
    """
    if not hass.data.get(DOMAIN):
        return None

    entry_id = next(iter(hass.data[DOMAIN]))
    return hass.data[DOMAIN][entry_id]


def create_importer(config: dict[str, Any]) -> RecipeImporter:
    """Build an importer; AI ingredient parsing needs an API key."""
    parser = None
    if config.get(CONF_API_KEY):
        parser = AIIngredientParser(
            api_key=config[CONF_API_KEY], model=config[CONF_DEFAULT_MODEL])
    return RecipeImporter(
        ingredient_parser=parser,
        convert_volume=config.get(CONF_CONVERT_VOLUME, False),
    )


def _require_config(hass: HomeAssistant) -> dict[str, Any]:
    config = get_entry_config(hass)
    if not config:
        _LOGGER.error("No configuration found for Recipe Scaler")
        raise ServiceValidationError("Recipe Scaler is not configured")
    return config


async def handle_import_recipe(hass: HomeAssistant, call: ServiceCall) -> dict[str, Any]:
    """Handle the import recipe service call.

    Args:
        hass: Home Assistant instance
        call: Service call with either url or json_ld

    Returns:
        Dictionary with the imported recipe and warnings, or error
    """
    config = _require_config(hass)
    url = call.data.get(DATA_URL)
    json_ld = call.data.get(DATA_JSON_LD)
    if not url and not json_ld:
        raise ServiceValidationError("Either url or json_ld is required")

    importer = create_importer(config)
    if url:
        _LOGGER.info("Importing recipe from %s", url)
        state = await hass.async_add_executor_job(importer.import_url, url)
    else:
        _LOGGER.info("Importing recipe from %d characters of JSON-LD", len(json_ld))
        state = await hass.async_add_executor_job(importer.import_json_ld, json_ld)

    if state.status != ImportStatus.COMPLETE or state.recipe is None:
        error_msg = "; ".join(state.errors) or "Recipe import did not complete"
        _LOGGER.warning("Recipe import failed: %s", error_msg)
        hass.bus.async_fire(
            EVENT_IMPORT_FAILED,
            {
                DATA_URL: url,
                DATA_ERROR: error_msg,
            }
        )
        return {DATA_ERROR: error_msg}

    recipe_data = state.recipe.model_dump(mode="json", by_alias=True)
    hass.bus.async_fire(
        EVENT_RECIPE_IMPORTED,
        {
            DATA_URL: url,
            DATA_RECIPE: recipe_data,
        }
    )
    _LOGGER.info("Recipe import successful: '%s'", state.recipe.name)
    return {
        DATA_RECIPE: recipe_data,
        DATA_WARNINGS: state.warnings,
    }


async def handle_scale_recipe(hass: HomeAssistant, call: ServiceCall) -> dict[str, Any]:
    """Handle the scale recipe service call.

    Args:
        hass: Home Assistant instance
        call: Service call with a recipe document and optional target_yield

    Returns:
        Dictionary with the scaled ingredient lines and instructions
    """
    config = _require_config(hass)

    try:
        recipe = Recipe.model_validate(call.data[DATA_RECIPE])
    except ValidationError as e:
        raise ServiceValidationError(f"Invalid recipe: {e}") from e

    options = InstructionScalingOptions(
        use_fraction_symbols=config.get(CONF_USE_FRACTIONS, True),
        scale_to_taste=config.get(CONF_SCALE_TO_TASTE, False),
    )
    target_yield = call.data.get(DATA_TARGET_YIELD)

    try:
        result = await hass.async_add_executor_job(
            scale_recipe,
            recipe,
            target_yield,
            options,
            config.get(CONF_CONVERT_UNITS, False),
            config.get(CONF_CONVERT_VOLUME, False),
        )
    except InvalidYieldError as e:
        raise ServiceValidationError(str(e)) from e

    hass.bus.async_fire(
        EVENT_RECIPE_SCALED,
        {
            "name": recipe.name,
            DATA_TARGET_YIELD: result["yield"]["currentYield"],
        }
    )
    return result
