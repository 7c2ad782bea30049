"""
Dynamic Sub-Module Loader.

This module imports the sub-module packages of a cached plugin.

Key features:
- importlib integration for dynamic loading
- Module caching per plugin and sub-module
- Plugin-local dependency directory on sys.path
- Generator classes are instantiated, generator objects used as-is
"""

import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

GENERATOR_ATTRIBUTE = "generator"
DEPENDENCIES_DIR = ".site-packages"


class LoaderError(Exception):
    """Base exception for loader-related errors."""

    pass


# Module cache: module_name -> module
_module_cache: dict[str, ModuleType] = {}


def module_name_for(plugin_name: str, sub_name: str) -> str:
    """Return the sys.modules name used for a plugin sub-module."""
    safe = re.sub(r"\W", "_", f"{plugin_name}__{sub_name}")
    return f"scaffolder_plugin_{safe}"


def add_dependencies_path(plugin_dir: Path) -> Path | None:
    """
    Make a plugin's installed dependencies importable.

    Returns:
        The dependency directory if it exists
    """
    deps_dir = plugin_dir / DEPENDENCIES_DIR
    if not deps_dir.is_dir():
        return None
    entry = str(deps_dir)
    if entry not in sys.path:
        sys.path.insert(0, entry)
    return deps_dir


def load_module(package_dir: Path, module_name: str) -> ModuleType:
    """
    Import a sub-module package from its directory.

    Args:
        package_dir: Directory containing __init__.py
        module_name: Name to register in sys.modules

    Returns:
        Loaded module

    Raises:
        LoaderError: If loading fails
    """
    entry_point = package_dir / "__init__.py"
    if not entry_point.exists():
        raise LoaderError(f"Entry point not found: {entry_point}")

    if module_name in _module_cache:
        return _module_cache[module_name]

    try:
        spec = importlib.util.spec_from_file_location(
            module_name,
            entry_point,
            submodule_search_locations=[str(package_dir)],
        )

        if spec is None or spec.loader is None:
            raise LoaderError(f"Failed to create module spec for {entry_point}")

        module = importlib.util.module_from_spec(spec)

        # Add to sys.modules before execution so relative imports resolve
        sys.modules[module_name] = module

        spec.loader.exec_module(module)

        _module_cache[module_name] = module

        return module

    except Exception as e:
        sys.modules.pop(module_name, None)
        if isinstance(e, LoaderError):
            raise
        raise LoaderError(f"Failed to load {entry_point}: {e}") from e


def load_generator(plugin_dir: Path, package_dir: Path, plugin_name: str) -> Any:
    """
    Load the generator exposed by a sub-module package.

    Args:
        plugin_dir: Cached plugin directory
        package_dir: Sub-module package directory
        plugin_name: Plugin name (used for the module name)

    Returns:
        Generator object

    Raises:
        LoaderError: If the package cannot be imported or exposes no usable generator
    """
    add_dependencies_path(plugin_dir)
    module = load_module(package_dir, module_name_for(plugin_name, package_dir.name))

    generator = getattr(module, GENERATOR_ATTRIBUTE, None)
    if generator is None:
        raise LoaderError(
            f"{package_dir} does not define a '{GENERATOR_ATTRIBUTE}' attribute"
        )

    if isinstance(generator, type):
        try:
            generator = generator()
        except Exception as e:
            raise LoaderError(f"Failed to create generator from {package_dir}: {e}") from e

    if not callable(getattr(generator, "run", None)):
        raise LoaderError(f"Generator in {package_dir} has no run() method")

    return generator


def unload_plugin_modules(plugin_name: str) -> None:
    """
    Forget all loaded sub-modules of a plugin.

    Args:
        plugin_name: Name of plugin to unload
    """
    prefix = module_name_for(plugin_name, "")
    for module_name in list(_module_cache):
        if module_name.startswith(prefix):
            del _module_cache[module_name]
            sys.modules.pop(module_name, None)


def clear_cache() -> None:
    """Clear all cached sub-modules."""
    for module_name in list(_module_cache):
        del _module_cache[module_name]
        sys.modules.pop(module_name, None)
