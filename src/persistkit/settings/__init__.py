"""Public interface for persistkit configuration settings."""

from .config import (
    ENV_VAR_NAME,
    PROJECT_ROOT,
    PluginSettings,
    Settings,
    StorageSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "StorageSettings",
    "PluginSettings",
    "get_settings",
    "reload_settings",
    "PROJECT_ROOT",
    "ENV_VAR_NAME",
]
