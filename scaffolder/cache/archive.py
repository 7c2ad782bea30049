"""
Archive Fetcher & Extractor.

This module downloads plugin snapshots and unpacks them into the cache.

Key features:
- Zipball download for an exact revision
- Stripping of the archive's synthetic root folder
- Path-traversal guard: every entry is validated before anything is written
- Freshness marker written only after a complete extraction
"""

import asyncio
import io
import logging
import shutil
import zipfile
from pathlib import Path, PurePosixPath

from scaffolder.cache.manager import CacheManager
from scaffolder.catalog.github import GitHubClient
from scaffolder.catalog.models import PluginRef, Revision
from scaffolder.errors import ExtractionError

logger = logging.getLogger(__name__)


def strip_root(entry_name: str) -> PurePosixPath | None:
    """
    Remove the synthetic root segment from an archive entry name.

    Args:
        entry_name: Name as stored in the archive

    Returns:
        Relative path inside the plugin, or None if nothing is left

    Raises:
        ExtractionError: If the remaining path is absolute or climbs upwards
    """
    normalized = entry_name.replace("\\", "/")
    if normalized.startswith("/"):
        raise ExtractionError(f"Archive entry has an absolute path: {entry_name!r}")

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if len(parts) < 2:
        return None

    remainder = parts[1:]
    if ".." in remainder:
        raise ExtractionError(f"Archive entry escapes the plugin directory: {entry_name!r}")
    if ":" in remainder[0]:
        raise ExtractionError(f"Archive entry has a drive prefix: {entry_name!r}")

    return PurePosixPath(*remainder)


def plan_extraction(archive: zipfile.ZipFile, dest: Path) -> list[tuple[zipfile.ZipInfo, Path]]:
    """
    Map every file entry of an archive to its target path.

    Raises:
        ExtractionError: If any entry would be written outside dest
    """
    root = dest.resolve()
    plan = []
    for info in archive.infolist():
        if info.is_dir():
            continue

        relative = strip_root(info.filename)
        if relative is None:
            continue

        target = (root / relative).resolve()
        if not target.is_relative_to(root) or target == root:
            raise ExtractionError(
                f"Archive entry escapes the plugin directory: {info.filename!r}"
            )
        plan.append((info, target))
    return plan


def extract_archive(data: bytes, dest: Path) -> list[Path]:
    """
    Extract a zip snapshot into a directory.

    Directory entries are not written; intermediate directories are created
    as needed. Nothing is written if any entry fails validation.

    Args:
        data: Raw zip archive
        dest: Destination directory (created if missing)

    Returns:
        Paths of the written files

    Raises:
        ExtractionError: If the archive is corrupt or an entry escapes dest
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ExtractionError(f"Downloaded archive is not a valid zip file: {e}") from e

    written = []
    with archive:
        dest.mkdir(parents=True, exist_ok=True)
        plan = plan_extraction(archive, dest)

        try:
            for info, target in plan:
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as source, open(target, "wb") as sink:
                    shutil.copyfileobj(source, sink)
                written.append(target)
        except (OSError, zipfile.BadZipFile) as e:
            raise ExtractionError(f"Failed to extract archive into {dest}: {e}") from e

    return written


async def fetch_and_extract(
    client: GitHubClient,
    ref: PluginRef,
    revision: Revision,
    cache: CacheManager,
) -> Path:
    """
    Download a plugin snapshot and populate its cache entry.

    Args:
        client: GitHub API client
        ref: Plugin to fetch
        revision: Exact revision to download
        cache: Cache manager owning the destination entry

    Returns:
        Path of the populated entry

    Raises:
        DownloadFailed: If the snapshot cannot be downloaded
        ExtractionError: If the snapshot cannot be extracted safely
        CacheError: If the freshness marker cannot be written
    """
    dest = cache.entry_path(ref.plugin_name)

    data = await client.download_zipball(ref.owner, ref.repository_name, revision.sha)
    logger.debug("Extracting %d bytes to %s", len(data), dest)

    written = await asyncio.to_thread(extract_archive, data, dest)
    logger.debug("Extracted %d files for %s", len(written), ref.slug)

    cache.mark_fresh(ref.plugin_name, revision)
    return dest
