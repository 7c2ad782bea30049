"""
scaf run command (default operation).

Select a plugin, bring its cache entry up to date and run one of its
sub-modules.
"""

import asyncio
import sys
from typing import Any

import httpx

from scaf.commands import settings_from_args
from scaf.prompt import ConsolePrompter
from scaffolder.cache.manager import CacheManager
from scaffolder.catalog.github import GitHubClient
from scaffolder.config.settings import Settings
from scaffolder.flow import RunRequest, Scaffolder
from scaffolder.plugin.discovery import Prompter


def split_forwarded(tokens: list[str]) -> tuple[list[str], dict[str, Any]]:
    """
    Split forwarded command-line tokens into arguments and options.

    "--name=value" becomes {"name": "value"}, "--flag" and "-f" become True,
    everything else is a positional argument.

    Returns:
        Tuple of (arguments, options)
    """
    arguments: list[str] = []
    options: dict[str, Any] = {}
    for token in tokens:
        if token.startswith("--") and len(token) > 2:
            name, separator, value = token[2:].partition("=")
            options[name] = value if separator else True
        elif token.startswith("-") and len(token) > 1 and not token[1:].isdigit():
            for flag in token[1:]:
                options[flag] = True
        else:
            arguments.append(token)
    return arguments, options


def build_request(args: Any, extras: list[str]) -> RunRequest:
    """Build the run request from parsed arguments and unrecognized tokens."""
    targets = list(args.targets)
    plugin_name = targets.pop(0) if targets else None
    subcommand = targets.pop(0) if targets else None
    forwarded_args, options = split_forwarded(targets + list(extras))
    return RunRequest(
        plugin_name=plugin_name,
        subcommand=subcommand,
        list_only=bool(args.list),
        args=forwarded_args,
        options=options,
    )


async def run_async(
    settings: Settings,
    cache: CacheManager,
    request: RunRequest,
    prompter: Prompter | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Async run implementation."""
    async with GitHubClient(
        token=settings.gh_auth_token,
        base_url=settings.api_url,
        transport=transport,
    ) as client:
        scaffolder = Scaffolder(settings, client, cache, prompter or ConsolePrompter())
        return await scaffolder.run(request)


def run_command(args: Any, extras: list[str]) -> int:
    """
    Execute run command.

    Args:
        args: Parsed command-line arguments
        extras: Tokens not recognized by the parser

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    settings = settings_from_args(args)
    cache = CacheManager(root=settings.cache_dir, skip_update=settings.skip_update)

    if cache.used_fallback and settings.verbose:
        print(f"Plugin directory: {cache.root}", file=sys.stderr)

    return asyncio.run(run_async(settings, cache, build_request(args, extras)))
