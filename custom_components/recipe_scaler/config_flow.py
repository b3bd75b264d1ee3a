"""Config flow for Recipe Scaler integration."""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from recipe_scaler.const import AVAILABLE_MODELS, DEFAULT_MODEL

from .const import (
    DOMAIN,
    CONF_API_KEY,
    CONF_DEFAULT_MODEL,
    CONF_USE_FRACTIONS,
    CONF_SCALE_TO_TASTE,
    CONF_CONVERT_UNITS,
    CONF_CONVERT_VOLUME,
)

_LOGGER = logging.getLogger(__name__)

OPTION_DEFAULTS = {
    CONF_API_KEY: "",
    CONF_DEFAULT_MODEL: DEFAULT_MODEL,
    CONF_USE_FRACTIONS: True,
    CONF_SCALE_TO_TASTE: False,
    CONF_CONVERT_UNITS: False,
    CONF_CONVERT_VOLUME: False,
}


def _clean_options(user_input: dict[str, Any]) -> dict[str, Any]:
    """Strip the API key; an empty key means rule-based ingredient parsing."""
    cleaned = dict(user_input)
    cleaned[CONF_API_KEY] = (cleaned.get(CONF_API_KEY) or "").strip()
    return cleaned


def _options_schema(current: dict[str, Any]) -> vol.Schema:
    values = {**OPTION_DEFAULTS, **current}
    return vol.Schema(
        {
            vol.Optional(
                CONF_API_KEY,
                default=values[CONF_API_KEY],
            ): selector.TextSelector(
                selector.TextSelectorConfig(
                    type=selector.TextSelectorType.PASSWORD,
                ),
            ),
            vol.Optional(
                CONF_DEFAULT_MODEL,
                default=values[CONF_DEFAULT_MODEL],
            ): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=AVAILABLE_MODELS,
                    mode=selector.SelectSelectorMode.DROPDOWN,
                ),
            ),
            vol.Optional(
                CONF_USE_FRACTIONS,
                default=values[CONF_USE_FRACTIONS],
            ): selector.BooleanSelector(),
            vol.Optional(
                CONF_SCALE_TO_TASTE,
                default=values[CONF_SCALE_TO_TASTE],
            ): selector.BooleanSelector(),
            vol.Optional(
                CONF_CONVERT_UNITS,
                default=values[CONF_CONVERT_UNITS],
            ): selector.BooleanSelector(),
            vol.Optional(
                CONF_CONVERT_VOLUME,
                default=values[CONF_CONVERT_VOLUME],
            ): selector.BooleanSelector(),
        }
    )


class RecipeScalerConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Recipe Scaler."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle the initial step."""
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        if user_input is not None:
            _LOGGER.info("Creating Recipe Scaler config entry")
            return self.async_create_entry(
                title="Recipe Scaler",
                data={},
                options=_clean_options(user_input),
            )

        return self.async_show_form(
            step_id="user",
            data_schema=_options_schema({}),
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> RecipeScalerOptionsFlow:
        """Get the options flow for this handler."""
        return RecipeScalerOptionsFlow(config_entry)


class RecipeScalerOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow for Recipe Scaler."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self._entry = config_entry

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the options."""
        if user_input is not None:
            _LOGGER.info("Updating Recipe Scaler options")
            return self.async_create_entry(title="", data=_clean_options(user_input))

        return self.async_show_form(
            step_id="init",
            data_schema=_options_schema(dict(self._entry.options)),
        )
