"""
Scaffolding Flow.

Runs one scaffolding session end to end:

    catalog listing -> plugin selection -> head revision -> cache check
    -> [miss] download & extract -> dependency install
    -> sub-module discovery -> selection -> invocation

Every step is awaited in order; there is no fan-out across plugins.
"""

import asyncio
import logging
import platform
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

from scaffolder import __version__
from scaffolder.busy import Busy
from scaffolder.cache.archive import fetch_and_extract
from scaffolder.cache.manager import CacheManager, CacheState
from scaffolder.catalog.catalog import list_plugins
from scaffolder.catalog.github import GitHubClient
from scaffolder.catalog.models import PluginRef
from scaffolder.catalog.resolver import resolve_head
from scaffolder.config.settings import Settings
from scaffolder.errors import InstallFailed, PluginNotFound, ScaffolderError
from scaffolder.plugin.discovery import (
    Choice,
    InvocationContext,
    Prompter,
    discover,
    format_listing,
    invoke,
    select_sub_module,
)
from scaffolder.plugin.installer import install_dependencies
from scaffolder.plugin.loader import unload_plugin_modules
from scaffolder.plugin.manifest import ManifestError, load_manifest

logger = logging.getLogger(__name__)

Installer = Callable[..., Awaitable[int]]


@dataclass
class RunRequest:
    """
    What the user asked for on the command line.

    Attributes:
        plugin_name: Plugin to use (prompted for when missing or unknown)
        subcommand: Sub-module to run (prompted for when missing or unknown)
        list_only: Only list the plugin's subcommands
        args: Positional arguments forwarded to the sub-module
        options: Options forwarded to the sub-module
    """

    plugin_name: str | None = None
    subcommand: str | None = None
    list_only: bool = False
    args: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)


class Scaffolder:
    """
    Orchestrates a scaffolding session.

    Example:
        async with GitHubClient(token=settings.gh_auth_token) as client:
            scaffolder = Scaffolder(settings, client, cache, prompter)
            exit_code = await scaffolder.run(RunRequest(plugin_name="project"))
    """

    def __init__(
        self,
        settings: Settings,
        client: GitHubClient,
        cache: CacheManager,
        prompter: Prompter,
        installer: Installer = install_dependencies,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ):
        """
        Initialize Scaffolder.

        Args:
            settings: Process settings
            client: GitHub API client
            cache: Plugin cache
            prompter: Interactive collaborator for selections
            installer: Dependency install gateway
            out: Stream for regular output (defaults to stdout)
            err: Stream for diagnostics and the busy indicator (defaults to stderr)
        """
        self.settings = settings
        self.client = client
        self.cache = cache
        self.prompter = prompter
        self.installer = installer
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def _print(self, message: str) -> None:
        print(message, file=self.out)

    def _diagnostic(self, message: str) -> None:
        print(message, file=self.err)

    async def run(self, request: RunRequest) -> int:
        """
        Run a scaffolding session.

        Returns:
            0 on success, 1 when the session was aborted with a diagnostic
        """
        try:
            await self._run(request)
        except ScaffolderError as e:
            self._diagnostic(f"Error: {e}")
            if self.settings.verbose:
                logger.debug("Scaffolding aborted", exc_info=True)
            else:
                self._diagnostic("Run with --verbose for details!")
            return 1
        return 0

    async def _run(self, request: RunRequest) -> None:
        plugins = await list_plugins(
            self.client, self.settings.primary_query, self.settings.additional_query
        )
        ref = self.select_plugin(plugins, request.plugin_name)

        plugin_dir = await self.prepare(ref)

        sub_modules = discover(plugin_dir, ref.plugin_name)
        if request.list_only:
            self._print(format_listing(sub_modules))
            return

        sub_module = select_sub_module(
            sub_modules, request.subcommand, self.prompter, ref.plugin_name
        )

        logger.debug("Calling %s...", sub_module.namespace)
        context = InvocationContext(
            args=list(request.args),
            options=dict(request.options),
            verbose=self.settings.verbose,
        )
        await invoke(sub_module, context)

    def select_plugin(self, plugins: list[PluginRef], name: str | None) -> PluginRef:
        """
        Pick the plugin to use.

        Raises:
            PluginNotFound: If the catalog is empty
        """
        if not plugins:
            raise PluginNotFound(
                f"No plugins found for organization '{self.settings.gh_org}' "
                f"with prefix '{self.settings.sub_generator_prefix}'"
            )

        if name:
            for ref in plugins:
                if ref.plugin_name == name:
                    return ref
            self.prompter.notify(
                f"The plugin {name} was not found. Please select an existing plugin!"
            )

        show_owner = self.settings.additional_query is not None
        choices = [
            Choice(
                label=f"{ref.plugin_name} [{ref.owner}]" if show_owner else ref.plugin_name,
                value=ref,
            )
            for ref in plugins
        ]
        return self.prompter.select("Select your plugin?", choices, default=plugins[0])

    async def prepare(self, ref: PluginRef) -> Path:
        """
        Make sure the cache holds the current revision of a plugin.

        Returns:
            Cached plugin directory

        Raises:
            ScaffolderError: If resolution, eviction, download or extraction fails
        """
        name = ref.plugin_name

        if self.cache.skip_update and self.cache.has_entry(name):
            logger.debug("Skipping the update of '%s'", name)
            return self.cache.entry_path(name)

        revision = await resolve_head(self.client, ref)
        logger.debug("Using commit %s from %s#%s", revision, ref.slug, ref.default_branch)

        status = self.cache.status(name, revision)

        if status.state is CacheState.STALE:
            logger.debug("Plugin '%s' in '%s' is outdated", name, self.cache.entry_path(name))
            async with Busy(self.err, f'  Removing old "{name}" templates'):
                await asyncio.to_thread(self.cache.evict, name)
            unload_plugin_modules(name)

        if status.state is not CacheState.FRESH:
            async with Busy(self.err, f'  Downloading and extracting "{name}" templates'):
                plugin_dir = await fetch_and_extract(self.client, ref, revision, self.cache)

            try:
                async with Busy(self.err, f'  Preparing "{name}"'):
                    await self.installer(plugin_dir, verbose=self.settings.verbose)
            except InstallFailed as e:
                # Printed once the spinner has released the stream
                self._diagnostic(f"Warning: {e}")

        return self.cache.entry_path(name)


def info_report(settings: Settings, cache: CacheManager) -> str:
    """
    Describe the environment and the cached plugins.

    Returns:
        Report text
    """
    lines = [
        f"Python: {platform.python_version()}",
        f"scaffolder: {__version__}",
        f"config: {settings.config_file}",
        f"pluginsHome: {cache.root}",
        "",
        "Available plugins:",
    ]

    for name in cache.list_entries():
        path = cache.entry_path(name)
        try:
            version = load_manifest(path).version
        except ManifestError:
            version = "invalid manifest"
        revision = cache.marker_revision(name)
        marker = revision.short if revision else "no marker"
        lines.append(f"  - {name}: {version} ({marker})")

    return "\n".join(lines)
