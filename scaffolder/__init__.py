"""
Scaffolder - fetches, caches and runs scaffolding plugins hosted on GitHub.

Plugins are repositories that follow a naming convention (for example
"generator-ui5-<name>"). Scaffolder lists them, downloads the head revision
of the selected one into a local cache, installs its dependencies and hands
control to one of its sub-modules.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
