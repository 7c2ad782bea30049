"""
Process Settings.

Builds the single configuration object a scaffolder run works with.

Values are merged with the following precedence:
1. Command-line overrides
2. Persisted settings file
3. Built-in schema defaults

The Settings object is constructed once at start-up and handed to the
components that need it.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from scaffolder.catalog.models import CatalogQuery
from scaffolder.config.schema import (
    SETTINGS_SCHEMA,
    ValidationError,
    generate_default_config,
    validate_config,
)
from scaffolder.config.toml_handler import SettingsFileError, read_settings_file
from scaffolder.errors import ConfigError

CONFIG_ENV_VAR = "SCAFFOLDER_CONFIG"


def default_config_file() -> Path:
    """Return the settings file location ($SCAFFOLDER_CONFIG or XDG config dir)."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit).expanduser()

    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "scaffolder" / "config.toml"


@dataclass(frozen=True)
class Settings:
    """
    Effective settings for one process run.

    Attributes:
        gh_org: Organization listed for plugins
        sub_generator_prefix: Repository prefix marking a plugin
        gh_auth_token: Optional API token
        add_gh_org: Optional additional organization or user
        add_sub_generator_prefix: Repository prefix for the additional source
        cache_dir: Optional cache root override
        api_url: Base URL of the hosting API
        verbose: Whether detailed diagnostics are shown
        skip_update: Whether cached plugins are reused without staleness checks
        config_file: Settings file the values were read from
    """

    gh_org: str = "ui5-community"
    sub_generator_prefix: str = "generator-ui5-"
    gh_auth_token: str | None = None
    add_gh_org: str | None = None
    add_sub_generator_prefix: str | None = "generator-"
    cache_dir: Path | None = None
    api_url: str = "https://api.github.com"
    verbose: bool = False
    skip_update: bool = False
    config_file: Path | None = None

    @property
    def primary_query(self) -> CatalogQuery:
        """Catalog query for the main plugin source."""
        return CatalogQuery(owner=self.gh_org, name_prefix=self.sub_generator_prefix)

    @property
    def additional_query(self) -> CatalogQuery | None:
        """Catalog query for the additional source, if one is configured."""
        if self.add_gh_org and self.add_sub_generator_prefix:
            return CatalogQuery(
                owner=self.add_gh_org, name_prefix=self.add_sub_generator_prefix
            )
        return None


def load_persisted(config_file: Path) -> dict[str, Any]:
    """
    Read and validate the persisted settings file.

    A missing file is an empty configuration.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    if not config_file.exists():
        return {}

    try:
        data = read_settings_file(config_file)
        validate_config(data, SETTINGS_SCHEMA)
    except (SettingsFileError, ValidationError) as e:
        raise ConfigError(f"Invalid settings file {config_file}: {e}") from e

    return data


def load_settings(
    overrides: dict[str, Any] | None = None,
    config_file: Path | None = None,
    verbose: bool = False,
    skip_update: bool = False,
) -> Settings:
    """
    Build the Settings for this process.

    Args:
        overrides: Values given on the command line; None or empty values are ignored
        config_file: Settings file to read (defaults to default_config_file())
        verbose: Detailed diagnostics flag
        skip_update: Skip-cache-update flag

    Returns:
        Settings instance

    Raises:
        ConfigError: If the settings file or an override is invalid
    """
    config_file = config_file or default_config_file()

    values = generate_default_config(SETTINGS_SCHEMA)
    values.update(load_persisted(config_file))

    for key, value in (overrides or {}).items():
        if key not in SETTINGS_SCHEMA:
            raise ConfigError(f"Unknown setting: {key}")
        if value is None or value == "":
            continue
        try:
            SETTINGS_SCHEMA[key].validate(value)
        except ValidationError as e:
            raise ConfigError(f"Invalid value for --{key.replace('_', '-')}: {e}") from e
        values[key] = value

    cache_dir = values.get("cache_dir")

    return Settings(
        gh_org=values["gh_org"],
        sub_generator_prefix=values["sub_generator_prefix"],
        gh_auth_token=values.get("gh_auth_token"),
        add_gh_org=values.get("add_gh_org"),
        add_sub_generator_prefix=values.get("add_sub_generator_prefix"),
        cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
        api_url=values["api_url"],
        verbose=verbose,
        skip_update=skip_update,
        config_file=config_file,
    )
