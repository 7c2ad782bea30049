"""
Plugin Manifest.

A plugin repository may carry a manifest.json at its root:

    {
        "name": "project",
        "version": "1.4.0",
        "description": "Create a new UI5 project",
        "generators": "generators"
    }

Only name and version are required. Repositories without a manifest are
still usable; their defaults come from the cache directory name.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

MANIFEST_FILE = "manifest.json"
DEFAULT_GENERATORS_DIR = "generators"

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+")
_DIRECTORY_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class ManifestError(Exception):
    """Raised when a manifest cannot be read."""

    pass


class ValidationError(ManifestError):
    """Raised when a manifest has missing or malformed fields."""

    pass


@dataclass
class Manifest:
    """
    Metadata of a cached plugin.

    Attributes:
        name: Plugin name
        version: Plugin version (x.y.z)
        description: One-line description
        generators: Directory holding the sub-module packages
        raw_data: The manifest as read from disk
    """

    name: str
    version: str
    description: str = ""
    generators: str = DEFAULT_GENERATORS_DIR
    raw_data: dict[str, Any] = field(default_factory=dict)


def validate_manifest_structure(data: Any) -> None:
    """
    Check the fields of a decoded manifest.

    Raises:
        ValidationError: On the first invalid or missing field
    """
    if not isinstance(data, dict):
        raise ValidationError("Manifest must be a JSON object")

    missing = [key for key in ("name", "version") if key not in data]
    if missing:
        raise ValidationError(f"Missing required field: {missing[0]}")

    if not isinstance(data["name"], str) or not data["name"].strip():
        raise ValidationError(f"Invalid plugin name: {data['name']!r}")

    if not isinstance(data["version"], str) or not _VERSION_RE.match(data["version"]):
        raise ValidationError(
            f"Invalid version: {data['version']!r}. Expected x.y.z, e.g. '1.0.0'"
        )

    if not isinstance(data.get("description", ""), str):
        raise ValidationError("'description' field must be a string")

    generators = data.get("generators", DEFAULT_GENERATORS_DIR)
    if not isinstance(generators, str) or not _DIRECTORY_RE.match(generators):
        # The directory is joined to the plugin path, so it must stay inside it
        raise ValidationError(
            f"Invalid generators directory: {generators!r}. "
            f"Must be a single directory name inside the plugin."
        )


def parse_manifest(manifest_path: Path) -> Manifest:
    """
    Read and validate a manifest.json file.

    Raises:
        ManifestError: If the file cannot be read or is not JSON
        ValidationError: If the manifest fields are invalid
    """
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read {manifest_path}: {e}") from e
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise ManifestError(f"{manifest_path} is not valid JSON: {e}") from e

    validate_manifest_structure(data)

    return Manifest(
        name=data["name"],
        version=data["version"],
        description=data.get("description", ""),
        generators=data.get("generators", DEFAULT_GENERATORS_DIR),
        raw_data=data,
    )


def load_manifest(plugin_dir: Path) -> Manifest:
    """
    Return the manifest of a cached plugin.

    Plugins without a manifest get one named after their directory, with
    version 0.0.0.

    Raises:
        ManifestError: If an existing manifest cannot be read
        ValidationError: If an existing manifest is invalid
    """
    manifest_path = plugin_dir / MANIFEST_FILE
    if not manifest_path.is_file():
        return Manifest(name=plugin_dir.name, version="0.0.0")
    return parse_manifest(manifest_path)
