"""
Catalog value types.

Attributes are immutable; a PluginRef or Revision can be shared freely
between components.
"""

import re
from dataclasses import dataclass

_SHA_RE = re.compile(r"[0-9a-f]{7,64}")


@dataclass(frozen=True)
class CatalogQuery:
    """
    Which account to list and which naming convention marks a plugin.

    Attributes:
        owner: Organization or user name
        name_prefix: Repository name prefix (e.g., "generator-ui5-")
    """

    owner: str
    name_prefix: str


@dataclass(frozen=True)
class PluginRef:
    """
    A plugin repository found in the catalog.

    Attributes:
        owner: Repository owner login
        repository_name: Full repository name
        default_branch: Branch whose head is used
        plugin_name: Repository name without the catalog prefix
    """

    owner: str
    repository_name: str
    default_branch: str
    plugin_name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repository_name}"


@dataclass(frozen=True)
class Revision:
    """
    Commit identifier of a plugin repository at a point in time.

    Raises:
        ValueError: If sha is not a lowercase hex commit id
    """

    sha: str

    def __post_init__(self):
        if not isinstance(self.sha, str) or not _SHA_RE.fullmatch(self.sha):
            raise ValueError(f"Invalid commit id: {self.sha!r}")

    def __str__(self) -> str:
        return self.sha

    @property
    def short(self) -> str:
        return self.sha[:7]
