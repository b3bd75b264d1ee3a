"""Constants for the Recipe Scaler integration."""

DOMAIN = "recipe_scaler"

# Configuration and option keys
CONF_API_KEY = "api_key"
CONF_DEFAULT_MODEL = "default_model"
CONF_USE_FRACTIONS = "use_fraction_symbols"
CONF_SCALE_TO_TASTE = "scale_to_taste"
CONF_CONVERT_UNITS = "convert_to_metric"
CONF_CONVERT_VOLUME = "convert_volume_to_weight"

# Service names
SERVICE_IMPORT = "import_recipe"
SERVICE_SCALE = "scale_recipe"

# Event names
EVENT_RECIPE_IMPORTED = "recipe_scaler_recipe_imported"
EVENT_IMPORT_FAILED = "recipe_scaler_import_failed"
EVENT_RECIPE_SCALED = "recipe_scaler_recipe_scaled"

# Service data keys
DATA_URL = "url"
DATA_JSON_LD = "json_ld"
DATA_RECIPE = "recipe"
DATA_TARGET_YIELD = "target_yield"
DATA_ERROR = "error"
DATA_WARNINGS = "warnings"
