"""Revision resolution for catalog plugins."""

from scaffolder.catalog.github import GitHubClient
from scaffolder.catalog.models import PluginRef, Revision
from scaffolder.errors import RemoteUnavailable


async def resolve_head(client: GitHubClient, ref: PluginRef) -> Revision:
    """
    Fetch the head commit of a plugin's default branch.

    Two calls may return different revisions if the branch moved in between.

    Raises:
        RepositoryNotFound: If the repository does not exist
        BranchNotFound: If the default branch does not exist
        RemoteUnavailable: If the request fails or the payload has no commit id
    """
    branch = await client.get_branch(ref.owner, ref.repository_name, ref.default_branch)

    commit = branch.get("commit")
    sha = commit.get("sha") if isinstance(commit, dict) else None
    try:
        return Revision(sha)
    except ValueError as e:
        raise RemoteUnavailable(
            f"Branch '{ref.default_branch}' of {ref.slug} has no valid head commit"
        ) from e
