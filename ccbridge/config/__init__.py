"""Configuration module for the ccbridge gateway."""

from .settings import (
    ConfigurationError,
    ProviderSettings,
    ServerSettings,
    Settings,
    get_settings,
)


__all__ = [
    "ConfigurationError",
    "ProviderSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
