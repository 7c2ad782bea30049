"""
Persisted Settings Store.

Reads and edits the settings file behind the --config-* operations.

Key features:
- Schema validation on every write
- Immediate flush to the TOML file
- Comment and formatting preservation through tomlkit
"""

from pathlib import Path
from typing import Any

from scaffolder.config.schema import SETTINGS_SCHEMA, ConfigField, ValidationError
from scaffolder.config.settings import load_persisted
from scaffolder.config.toml_handler import (
    SettingsFileError,
    load_settings_document,
    new_settings_document,
    save_settings_document,
)
from scaffolder.errors import ConfigError


class ConfigStore:
    """
    Editable view on the persisted settings file.

    Example:
        store = ConfigStore(default_config_file())
        store.set("add_gh_org", "my-org")
        store.get("add_gh_org")  # "my-org"
    """

    def __init__(self, config_file: Path, schema: dict[str, ConfigField] | None = None):
        self.config_file = config_file
        self.schema = schema or SETTINGS_SCHEMA

    def _field(self, key: str) -> ConfigField:
        if key not in self.schema:
            known = ", ".join(sorted(self.schema))
            raise ConfigError(f"Unknown setting '{key}'. Known settings: {known}")
        return self.schema[key]

    def get(self, key: str) -> Any:
        """Return the persisted value of a setting, or its default."""
        field = self._field(key)
        return load_persisted(self.config_file).get(key, field.default)

    def items(self) -> list[tuple[str, Any, bool]]:
        """
        List every setting.

        Returns:
            Tuples of (key, effective value, whether the value is persisted)
        """
        persisted = load_persisted(self.config_file)
        return [
            (key, persisted.get(key, field.default), key in persisted)
            for key, field in self.schema.items()
        ]

    def set(self, key: str, value: Any) -> None:
        """
        Persist a setting.

        Raises:
            ConfigError: If the key is unknown, the value invalid, or the write fails
        """
        field = self._field(key)
        try:
            field.validate(value)
        except ValidationError as e:
            raise ConfigError(f"Invalid value for '{key}': {e}") from e

        try:
            if self.config_file.exists():
                doc = load_settings_document(self.config_file)
                doc[key] = value
            else:
                doc = new_settings_document(self.schema, {key: value})
            save_settings_document(self.config_file, doc)
        except SettingsFileError as e:
            raise ConfigError(str(e)) from e

    def unset(self, key: str) -> bool:
        """
        Remove a persisted setting.

        Returns:
            True if the setting was present
        """
        self._field(key)
        try:
            doc = load_settings_document(self.config_file)
            if key not in doc:
                return False
            del doc[key]
            save_settings_document(self.config_file, doc)
        except SettingsFileError as e:
            raise ConfigError(str(e)) from e
        return True
