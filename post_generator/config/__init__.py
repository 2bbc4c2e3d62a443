"""Configuration module - settings and environment management."""

from post_generator.config.settings import (
    ConfigurationError,
    DEFAULT_API_URL,
    DEFAULT_MODEL,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_API_URL",
    "DEFAULT_MODEL",
    "Settings",
    "load_settings",
]
