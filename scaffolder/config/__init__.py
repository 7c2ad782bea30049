"""
Scaffolder Configuration - TOML-based settings management.

This module provides:
- Settings schema declaration and validation
- A process-scoped Settings object (CLI > settings file > defaults)
- An editable store for the persisted settings file

Example usage:
    from scaffolder.config import load_settings

    settings = load_settings({"gh_auth_token": token}, verbose=True)
    settings.primary_query  # CatalogQuery(owner="ui5-community", ...)
"""

from scaffolder.config.schema import SETTINGS_SCHEMA, ConfigField
from scaffolder.config.settings import Settings, default_config_file, load_settings
from scaffolder.config.store import ConfigStore

__all__ = [
    "SETTINGS_SCHEMA",
    "ConfigField",
    "ConfigStore",
    "Settings",
    "default_config_file",
    "load_settings",
]
