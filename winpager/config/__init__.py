"""Configuration management."""

from .paths import AppPaths
from .settings import (
    DisplaySettings,
    PagingSettings,
    ServerSettings,
    Settings,
    SettingsManager,
    get_settings,
)

__all__ = [
    "AppPaths",
    "DisplaySettings",
    "PagingSettings",
    "ServerSettings",
    "Settings",
    "SettingsManager",
    "get_settings",
]
