"""Recipe and ingredient parsers."""
