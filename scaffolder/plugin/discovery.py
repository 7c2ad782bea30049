"""
Plugin Sub-Module Discovery and Invocation.

This module finds the sub-modules of a cached plugin and dispatches to one.

Key features:
- Capability interface for sub-modules (namespace, display name, hidden, run)
- Scan of the plugin's generators directory
- Hidden filtering and unique subcommand names
- Selection by subcommand hint, "app" default, or prompt
- Invocation with a delegated context
"""

import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from scaffolder.errors import NoSubModulesAvailable, SubcommandNotFound
from scaffolder.plugin.loader import LoaderError, load_generator
from scaffolder.plugin.manifest import Manifest, ManifestError, load_manifest

logger = logging.getLogger(__name__)

DEFAULT_SUBCOMMAND = "app"
NAMESPACE_SEPARATOR = ":"


@dataclass
class InvocationContext:
    """
    Arguments handed to a sub-module when it runs.

    Attributes:
        args: Positional arguments forwarded verbatim
        options: Options forwarded verbatim
        embedded: Marks the run as delegated by the host
        verbose: Detailed output flag of the host
        cwd: Working directory the user started the host in
    """

    args: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)
    embedded: bool = True
    verbose: bool = False
    cwd: Path = field(default_factory=Path.cwd)


@runtime_checkable
class SubGenerator(Protocol):
    """
    Capability interface every discoverable sub-module exposes.

    namespace, display_name and hidden are optional attributes; only run()
    is required.
    """

    def run(self, context: InvocationContext) -> Any: ...


@dataclass
class SubModule:
    """
    A discovered sub-module.

    Attributes:
        namespace: Qualified name (e.g., "ui5-project:app")
        subcommand: Namespace without its scope
        display_name: Human-readable name
        hidden: Whether the sub-module is hidden from selection
        generator: Object implementing SubGenerator
    """

    namespace: str
    subcommand: str
    display_name: str
    hidden: bool
    generator: SubGenerator


@dataclass
class Choice:
    """A selectable prompt entry."""

    label: str
    value: Any


class Prompter(Protocol):
    """Interactive collaborator used for selections and diagnostics."""

    def select(self, message: str, choices: list[Choice], default: Any = None) -> Any: ...

    def notify(self, message: str) -> None: ...


def derive_subcommand(namespace: str) -> str:
    """Remove the scope of a namespace up to its last separator."""
    _, separator, subcommand = namespace.rpartition(NAMESPACE_SEPARATOR)
    return subcommand if separator and subcommand else namespace


def describe(generator: Any, plugin_name: str, package_name: str) -> SubModule:
    """Build the SubModule record for a loaded generator."""
    namespace = getattr(generator, "namespace", None) or (
        f"{plugin_name}{NAMESPACE_SEPARATOR}{package_name}"
    )
    subcommand = derive_subcommand(namespace)
    return SubModule(
        namespace=namespace,
        subcommand=subcommand,
        display_name=getattr(generator, "display_name", None) or subcommand,
        hidden=bool(getattr(generator, "hidden", False)),
        generator=generator,
    )


def discover(
    plugin_dir: Path, plugin_name: str, manifest: Manifest | None = None
) -> list[SubModule]:
    """
    Enumerate the visible sub-modules of a cached plugin.

    Sub-module packages that fail to load are skipped with a warning.
    When two sub-modules share a subcommand, the first one wins.

    Args:
        plugin_dir: Cached plugin directory
        plugin_name: Plugin name used to build default namespaces
        manifest: Parsed manifest (loaded from plugin_dir if omitted)

    Returns:
        Non-hidden sub-modules in directory order
    """
    if manifest is None:
        try:
            manifest = load_manifest(plugin_dir)
        except ManifestError as e:
            logger.warning("Ignoring invalid manifest of '%s': %s", plugin_name, e)
            manifest = Manifest(name=plugin_name, version="0.0.0")

    generators_dir = plugin_dir / manifest.generators
    if not generators_dir.is_dir():
        logger.debug("Plugin '%s' has no %s directory", plugin_name, manifest.generators)
        return []

    sub_modules: list[SubModule] = []
    seen: set[str] = set()

    for package_dir in sorted(generators_dir.iterdir()):
        if not package_dir.is_dir() or package_dir.name.startswith(("_", ".")):
            continue

        try:
            generator = load_generator(plugin_dir, package_dir, plugin_name)
        except LoaderError as e:
            logger.warning("Skipping sub-module '%s': %s", package_dir.name, e)
            continue

        sub_module = describe(generator, plugin_name, package_dir.name)
        if sub_module.hidden:
            continue

        if sub_module.subcommand in seen:
            logger.warning(
                "Skipping sub-module '%s': subcommand '%s' is already provided",
                sub_module.namespace,
                sub_module.subcommand,
            )
            continue

        seen.add(sub_module.subcommand)
        sub_modules.append(sub_module)

    return sub_modules


def select_sub_module(
    sub_modules: list[SubModule],
    hint: str | None,
    prompter: Prompter,
    plugin_name: str = "",
) -> SubModule:
    """
    Choose the sub-module to run.

    Args:
        sub_modules: Visible sub-modules
        hint: Optional subcommand name requested by the user
        prompter: Collaborator asked when more than one sub-module remains
        plugin_name: Plugin name for diagnostics

    Returns:
        Selected sub-module

    Raises:
        NoSubModulesAvailable: If there is nothing to select
    """
    if not sub_modules:
        raise NoSubModulesAvailable(f"The plugin {plugin_name} has no visible subcommands!")

    if hint:
        matches = [sub for sub in sub_modules if sub.subcommand == hint]
        if len(matches) == 1:
            return matches[0]
        prompter.notify(
            str(
                SubcommandNotFound(
                    f"The plugin {plugin_name} has no subcommand {hint}. "
                    f"Please select an existing subcommand!"
                )
            )
        )

    if len(sub_modules) == 1:
        return sub_modules[0]

    default = next(
        (sub for sub in sub_modules if sub.subcommand == DEFAULT_SUBCOMMAND),
        sub_modules[0],
    )
    width = max(len(sub.display_name) for sub in sub_modules)
    choices = [
        Choice(label=f"{sub.display_name.ljust(width + 2)} [{sub.subcommand}]", value=sub)
        for sub in sub_modules
    ]
    return prompter.select("What do you want to do?", choices, default=default)


async def invoke(sub_module: SubModule, context: InvocationContext) -> None:
    """
    Run a sub-module and wait for it to complete.

    Args:
        sub_module: Sub-module to run
        context: Invocation context (always marked as embedded)
    """
    context.embedded = True
    result = sub_module.generator.run(context)
    if inspect.isawaitable(result):
        await result


def format_listing(sub_modules: list[SubModule]) -> str:
    """
    Format the subcommand listing shown by --list.

    Returns:
        "Subcommands (N):" followed by one padded line per sub-module
    """
    width = max((len(sub.subcommand) for sub in sub_modules), default=0)
    lines = [f"Subcommands ({len(sub_modules)}):"]
    for sub in sub_modules:
        line = f"  {sub.subcommand.ljust(width + 2)}"
        if sub.display_name and sub.display_name != sub.subcommand:
            line += f" # {sub.display_name}"
        lines.append(line.rstrip())
    return "\n".join(lines)
