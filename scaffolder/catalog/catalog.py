"""
Plugin Catalog.

Lists the repositories of an account and keeps those following the plugin
naming convention.
"""

import logging
from collections.abc import Iterable
from typing import Any

from scaffolder.catalog.github import GitHubClient
from scaffolder.catalog.models import CatalogQuery, PluginRef
from scaffolder.errors import RemoteUnavailable, RepositoryNotFound

logger = logging.getLogger(__name__)


def filter_plugins(repos: Iterable[dict[str, Any]], query: CatalogQuery) -> list[PluginRef]:
    """
    Keep repositories whose name starts with the query prefix.

    Args:
        repos: Repository payloads from the API
        query: Catalog query supplying the prefix and fallback owner

    Returns:
        PluginRef for every matching repository, in listing order
    """
    plugins = []
    for repo in repos:
        name = repo.get("name")
        if not isinstance(name, str) or not name.startswith(query.name_prefix):
            continue

        plugin_name = name[len(query.name_prefix):]
        if not plugin_name:
            continue
        if plugin_name.startswith("."):
            # Would be a hidden directory in the cache
            logger.debug("Skipping repository %s: unusable plugin name", name)
            continue

        owner = (repo.get("owner") or {}).get("login") or query.owner
        plugins.append(
            PluginRef(
                owner=owner,
                repository_name=name,
                default_branch=repo.get("default_branch") or "main",
                plugin_name=plugin_name,
            )
        )
    return plugins


async def list_plugins(
    client: GitHubClient,
    query: CatalogQuery,
    additional: CatalogQuery | None = None,
) -> list[PluginRef]:
    """
    List the plugins available for a query.

    The primary owner is listed as an organization. The additional owner is
    listed as an organization first and, if that fails, as a user.

    Args:
        client: GitHub API client
        query: Primary catalog query
        additional: Optional additional source merged after the primary plugins

    Returns:
        Plugins of the primary source followed by those of the additional one

    Raises:
        RemoteUnavailable: If a listing cannot be completed
        RepositoryNotFound: If the primary organization does not exist
        RateLimited: If the API quota is exhausted
    """
    plugins = filter_plugins(await client.list_org_repos(query.owner), query)
    logger.debug("Found %d plugins for organization '%s'", len(plugins), query.owner)

    if additional is None:
        return plugins

    try:
        repos = await client.list_org_repos(additional.owner)
    except (RemoteUnavailable, RepositoryNotFound) as e:
        logger.debug(
            "Failed to retrieve additional plugins for organization '%s' (%s). "
            "Trying to retrieve them for user...",
            additional.owner,
            e,
        )
        try:
            repos = await client.list_user_repos(additional.owner)
        except (RemoteUnavailable, RepositoryNotFound) as e:
            raise RemoteUnavailable(
                f"Failed to retrieve additional plugins for organization or user "
                f"'{additional.owner}'"
            ) from e

    extra = filter_plugins(repos, additional)
    logger.debug("Found %d additional plugins for '%s'", len(extra), additional.owner)
    return plugins + extra
