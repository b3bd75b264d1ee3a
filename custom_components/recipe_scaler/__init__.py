"""
Recipe Scaler Integration for Home Assistant.

This integration provides services to import recipes from Schema.org JSON-LD
and to scale their ingredients and instructions to a different yield.
"""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from recipe_scaler.const import DEFAULT_MODEL

from .const import (
    DOMAIN,
    CONF_API_KEY,
    CONF_DEFAULT_MODEL,
    CONF_USE_FRACTIONS,
    CONF_SCALE_TO_TASTE,
    CONF_CONVERT_UNITS,
    CONF_CONVERT_VOLUME,
    SERVICE_IMPORT,
    SERVICE_SCALE,
    DATA_URL,
    DATA_JSON_LD,
    DATA_RECIPE,
    DATA_TARGET_YIELD,
)
from .service_handlers import handle_import_recipe, handle_scale_recipe

_LOGGER = logging.getLogger(__name__)

# Config flow only - no YAML support
CONFIG_SCHEMA = cv.empty_config_schema(DOMAIN)

SERVICE_IMPORT_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Exclusive(DATA_URL, "source"): cv.url,
            vol.Exclusive(DATA_JSON_LD, "source"): cv.string,
        }
    ),
    cv.has_at_least_one_key(DATA_URL, DATA_JSON_LD),
)

SERVICE_SCALE_SCHEMA = vol.Schema(
    {
        vol.Required(DATA_RECIPE): dict,
        vol.Optional(DATA_TARGET_YIELD): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)),
    }
)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the Recipe Scaler integration."""
    hass.data.setdefault(DOMAIN, {})
    _LOGGER.debug("Recipe Scaler integration setup complete")
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Recipe Scaler from a config entry."""
    _LOGGER.info("Setting up Recipe Scaler config entry")

    options = entry.options
    api_key = options.get(CONF_API_KEY, "")
    if not api_key:
        _LOGGER.info("No API key configured, ingredients will be parsed by pattern")

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = {
        CONF_API_KEY: api_key,
        CONF_DEFAULT_MODEL: options.get(CONF_DEFAULT_MODEL, DEFAULT_MODEL),
        CONF_USE_FRACTIONS: options.get(CONF_USE_FRACTIONS, True),
        CONF_SCALE_TO_TASTE: options.get(CONF_SCALE_TO_TASTE, False),
        CONF_CONVERT_UNITS: options.get(CONF_CONVERT_UNITS, False),
        CONF_CONVERT_VOLUME: options.get(CONF_CONVERT_VOLUME, False),
    }

    # Services are shared, register them for the first entry only
    if len(hass.data[DOMAIN]) == 1:
        await _setup_services(hass)
        _LOGGER.info("Recipe Scaler services registered")

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the config entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    _LOGGER.info("Unloading Recipe Scaler config entry")

    hass.data[DOMAIN].pop(entry.entry_id, None)

    if not hass.data[DOMAIN]:
        hass.services.async_remove(DOMAIN, SERVICE_IMPORT)
        hass.services.async_remove(DOMAIN, SERVICE_SCALE)
        _LOGGER.info("Recipe Scaler services unregistered")

    return True


async def _setup_services(hass: HomeAssistant) -> None:
    """Set up the integration services."""

    async def _handle_import_recipe(call: ServiceCall) -> dict[str, Any]:
        return await handle_import_recipe(hass, call)

    async def _handle_scale_recipe(call: ServiceCall) -> dict[str, Any]:
        return await handle_scale_recipe(hass, call)

    hass.services.async_register(
        DOMAIN,
        SERVICE_IMPORT,
        _handle_import_recipe,
        schema=SERVICE_IMPORT_SCHEMA,
        supports_response=True,
    )

    hass.services.async_register(
        DOMAIN,
        SERVICE_SCALE,
        _handle_scale_recipe,
        schema=SERVICE_SCALE_SCHEMA,
        supports_response=True,
    )
