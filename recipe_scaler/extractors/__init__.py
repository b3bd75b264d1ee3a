"""Fetching recipe data from the web."""
