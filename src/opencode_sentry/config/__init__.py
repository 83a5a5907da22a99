"""Configuration management using pydantic-settings."""

from .settings import SentrySettings, clear_settings_cache, get_settings

__all__ = [
    "SentrySettings",
    "clear_settings_cache",
    "get_settings",
]
