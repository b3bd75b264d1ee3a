"""Recipe Scaler: ingredient parsing, unit conversion and yield scaling for recipes."""

__version__ = "0.1.0"
