"""Engines module - extraction, parsing and deduplication components."""
