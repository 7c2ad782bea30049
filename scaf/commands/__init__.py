"""Command implementations of the scaf CLI."""

from typing import Any

from scaffolder.config.settings import Settings, load_settings

OVERRIDE_OPTIONS = (
    "gh_auth_token",
    "gh_org",
    "sub_generator_prefix",
    "add_gh_org",
    "add_sub_generator_prefix",
    "cache_dir",
)


def settings_from_args(args: Any) -> Settings:
    """
    Build the process settings from parsed command-line arguments.

    Raises:
        ConfigError: If the persisted settings are invalid
    """
    overrides = {name: getattr(args, name, None) for name in OVERRIDE_OPTIONS}
    return load_settings(
        overrides,
        verbose=bool(getattr(args, "verbose", False)),
        skip_update=bool(getattr(args, "skip_update", False)),
    )
