"""Configuration module - settings and environment management."""

from tuoitre_crawler.config.settings import (
    ConfigurationError,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "Settings",
    "load_settings",
]
