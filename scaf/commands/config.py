"""
scaf config commands (--config-list, --config-get, --config-set, --config-unset).

Edit the persisted settings. Command-line flags still take precedence over
the values stored here.
"""

import sys
from typing import Any

from scaffolder.config.schema import SETTINGS_SCHEMA
from scaffolder.config.settings import default_config_file
from scaffolder.config.store import ConfigStore
from scaffolder.errors import ConfigError


def _display(key: str, value: Any) -> str:
    if value is None:
        return "(not set)"
    if SETTINGS_SCHEMA[key].secret:
        return "*" * 8
    return str(value)


def config_command(args: Any, store: ConfigStore | None = None) -> int:
    """
    Execute config command.

    Args:
        args: Parsed command-line arguments
        store: Settings store (defaults to the default settings file)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    store = store or ConfigStore(default_config_file())

    if args.config_list:
        print(f"# {store.config_file}")
        for key, value, persisted in store.items():
            origin = "" if persisted else "  (default)"
            print(f"{key} = {_display(key, value)}{origin}")
        return 0

    if args.config_get:
        print(_display(args.config_get, store.get(args.config_get)))
        return 0

    if args.config_set:
        key, separator, value = args.config_set.partition("=")
        if not separator:
            raise ConfigError("Expected KEY=VALUE, e.g. --config-set add_gh_org=my-org")
        store.set(key.strip(), value.strip())
        return 0

    if args.config_unset:
        if not store.unset(args.config_unset):
            print(f"Setting '{args.config_unset}' was not set", file=sys.stderr)
        return 0

    return 0
