"""Constants for the Recipe Scaler engine."""

# Yield bounds, as factors of the original yield
YIELD_MIN_FACTOR = 0.5
YIELD_MAX_FACTOR = 10

# Rounding
QUANTITY_DECIMALS = 2
MULTIPLIER_DECIMALS = 4

# Scaled amounts below this get a warning attached
SMALL_AMOUNT_THRESHOLD = 0.1
SMALL_AMOUNT_WARNING = "Very small amount"

# Ingredient parsing
CONFIDENCE_THRESHOLD = 0.7
DEFAULT_CONFIDENCE = 0.5
MAX_BATCH_SIZE = 20
MAX_INGREDIENT_LENGTH = 500
ESTIMATED_MS_PER_BATCH = 2000

# Instruction scaling
MAX_REFERENCES_PER_INSTRUCTION = 20

# JSON-LD import
JSON_LD_MAX_INPUT_SIZE = 2 * 1024 * 1024

# Network
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RESPONSE_SIZE = 5 * 1024 * 1024
DEFAULT_MAX_REDIRECTS = 5

# AI parsing
DEFAULT_MODEL = "gemini-2.5-flash-lite"
AVAILABLE_MODELS = [
    "gemini-2.5-flash-lite",
    "gemini-2.5-flash",
    "gemini-2.5-pro",
]

# Import warnings
UNPARSED_INGREDIENTS_WARNING = "{count} ingredients could not be parsed automatically"
