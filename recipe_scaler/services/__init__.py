"""Parsing, scaling and import services."""
