"""
Plugin Cache Manager.

This module owns the on-disk plugin cache.

Key features:
- Cache root selection with a per-user fallback
- Fresh/stale/absent detection through revision marker files
- Whole-entry eviction via rename-then-delete
- Atomic marker writes, performed after population

Layout:
    <root>/<plugin name>/.<commit sha>   freshness marker
    <root>/<plugin name>/...             extracted plugin files
"""

import logging
import os
import re
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from scaffolder.catalog.models import Revision
from scaffolder.errors import CacheError, FilesystemPermissionDenied

logger = logging.getLogger(__name__)

DEFAULT_CACHE_ROOT = Path(__file__).resolve().parent.parent / "plugin-generators"
FALLBACK_CACHE_ROOT = Path.home() / ".scaffolder" / "plugin-generators"

_TOMBSTONE_SUFFIX = ".evicting"
_MARKER_TMP_SUFFIX = ".tmp"

# Only full commit ids name a marker; shorter hex dotfiles belong to the plugin
_MARKER_RE = re.compile(r"\.([0-9a-f]{40}|[0-9a-f]{64})")


class CacheState(Enum):
    """Cache entry state enumeration."""

    ABSENT = "absent"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class CacheStatus:
    """
    Result of a cache lookup.

    Attributes:
        state: Entry state
        revision: Revision recorded by the marker (set for FRESH entries that have one)
    """

    state: CacheState
    revision: Revision | None = None


def _check_root(root: Path) -> None:
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemPermissionDenied(f"Cannot create cache root {root}: {e}") from e

    if not os.access(root, os.R_OK | os.W_OK | os.X_OK):
        raise FilesystemPermissionDenied(f"No read/write access to cache root {root}")


def resolve_cache_root(preferred: Path, fallback: Path) -> tuple[Path, bool]:
    """
    Pick the cache root for this process.

    Args:
        preferred: Root to use when it is readable and writable
        fallback: Per-user root created when the preferred one is not usable

    Returns:
        Tuple of (root, whether the fallback was used)

    Raises:
        CacheError: If neither root is usable
    """
    try:
        _check_root(preferred)
        return preferred, False
    except FilesystemPermissionDenied as e:
        logger.debug("Falling back to %s: %s", fallback, e)

    try:
        fallback.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CacheError(f"Cannot create plugin cache directory {fallback}: {e}") from e
    return fallback, True


class CacheManager:
    """
    On-disk plugin cache.

    The root is chosen once, at construction. No other component deletes
    or rewrites entry contents.
    """

    def __init__(
        self,
        root: Path | None = None,
        fallback_root: Path | None = None,
        skip_update: bool = False,
    ):
        """
        Initialize CacheManager.

        Args:
            root: Preferred cache root (defaults to the directory next to the package)
            fallback_root: Per-user root used when the preferred one is not writable
            skip_update: Treat every existing entry as fresh
        """
        self.root, self.used_fallback = resolve_cache_root(
            root or DEFAULT_CACHE_ROOT, fallback_root or FALLBACK_CACHE_ROOT
        )
        self.skip_update = skip_update

    def entry_path(self, name: str) -> Path:
        """
        Return the directory of a plugin entry.

        Raises:
            CacheError: If the name is not a single safe path segment
        """
        if (
            not name
            or name in (".", "..")
            or name.startswith(".")
            or "/" in name
            or "\\" in name
            or os.sep in name
        ):
            raise CacheError(f"Invalid plugin name for the cache: {name!r}")
        return self.root / name

    def has_entry(self, name: str) -> bool:
        """Check whether a plugin directory exists."""
        return self.entry_path(name).is_dir()

    def _markers(self, path: Path) -> list[Path]:
        return [
            child
            for child in path.iterdir()
            if _MARKER_RE.fullmatch(child.name) and child.is_file()
        ]

    def marker_revision(self, name: str) -> Revision | None:
        """
        Return the revision recorded for an entry.

        Returns:
            The revision, or None if the entry is absent or has no single marker
        """
        path = self.entry_path(name)
        if not path.is_dir():
            return None
        markers = self._markers(path)
        if len(markers) != 1:
            return None
        return Revision(markers[0].name[1:])

    def status(self, name: str, revision: Revision | None = None) -> CacheStatus:
        """
        Classify a plugin entry.

        Args:
            name: Plugin name
            revision: Revision the entry must reflect to be fresh

        Returns:
            ABSENT if there is no directory; FRESH if its single marker names
            revision (or skip-update mode is on); STALE otherwise
        """
        path = self.entry_path(name)
        if not path.is_dir():
            return CacheStatus(CacheState.ABSENT)

        recorded = self.marker_revision(name)
        if self.skip_update:
            return CacheStatus(CacheState.FRESH, recorded)

        if revision is not None and recorded == revision:
            return CacheStatus(CacheState.FRESH, recorded)
        return CacheStatus(CacheState.STALE)

    def evict(self, name: str) -> None:
        """
        Delete a plugin entry with its whole directory tree.

        The entry is first renamed to a hidden tombstone, so it is either
        complete or gone under its own name.

        Raises:
            CacheError: If the entry cannot be removed
        """
        path = self.entry_path(name)
        tombstone = self.root / f".{name}{_TOMBSTONE_SUFFIX}"

        try:
            if tombstone.exists():
                shutil.rmtree(tombstone)
            if not path.exists():
                return
            path.rename(tombstone)
            shutil.rmtree(tombstone)
        except OSError as e:
            raise CacheError(f"Failed to remove cached plugin '{name}': {e}") from e

        logger.debug("Evicted cached plugin '%s'", name)

    def mark_fresh(self, name: str, revision: Revision) -> Path:
        """
        Record the revision an entry was populated from.

        Must be called after the entry is completely extracted into an empty
        directory. Extracted files are never touched.

        Returns:
            Path of the marker file

        Raises:
            CacheError: If the entry does not exist, already records another
                revision, or the marker cannot be written
        """
        path = self.entry_path(name)
        if not path.is_dir():
            raise CacheError(f"Cannot mark missing cache entry '{name}'")

        marker = path / f".{revision.sha}"
        if not _MARKER_RE.fullmatch(marker.name):
            raise CacheError(f"Cannot mark '{name}' with abbreviated commit id {revision.sha}")

        others = [existing for existing in self._markers(path) if existing != marker]
        if others:
            raise CacheError(
                f"Cache entry '{name}' already records commit {others[0].name[1:]}; "
                f"evict it before repopulating"
            )

        tmp = path / f".{revision.sha}{_MARKER_TMP_SUFFIX}"
        try:
            tmp.write_text(revision.sha, encoding="utf-8")
            os.replace(tmp, marker)
        except OSError as e:
            raise CacheError(f"Failed to mark cached plugin '{name}': {e}") from e

        return marker

    def list_entries(self) -> list[str]:
        """List the names of all cached plugins."""
        return sorted(
            child.name
            for child in self.root.iterdir()
            if child.is_dir() and not child.name.startswith(".")
        )
