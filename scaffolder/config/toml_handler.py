"""
Settings File I/O.

Reads and writes the TOML file holding the persisted scaffolder settings.

Key features:
- Plain reads through tomllib (Python 3.11+)
- Editable documents through tomlkit, so user comments survive updates
- Atomic saves (temporary file + rename)
- New files are generated with the field descriptions as comments
"""

import os
import tomllib
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError


class SettingsFileError(Exception):
    """Raised when the settings file cannot be read, parsed or written."""

    pass


def read_settings_file(path: Path) -> dict[str, Any]:
    """
    Parse the settings file into plain Python values.

    Args:
        path: Settings file location

    Returns:
        Top-level key/value mapping

    Raises:
        SettingsFileError: If the file is missing, unreadable or not valid TOML
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsFileError(f"{path} is not valid TOML: {e}") from e
    except OSError as e:
        raise SettingsFileError(f"Cannot read {path}: {e}") from e


def load_settings_document(path: Path) -> tomlkit.TOMLDocument:
    """
    Load the settings file as an editable document.

    A missing file yields an empty document.

    Raises:
        SettingsFileError: If the file cannot be read or parsed
    """
    if not path.exists():
        return tomlkit.document()
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SettingsFileError(f"Cannot read {path}: {e}") from e
    except TOMLKitError as e:
        raise SettingsFileError(f"{path} is not valid TOML: {e}") from e


def save_settings_document(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """
    Write a settings document, replacing the file in one step.

    Raises:
        SettingsFileError: If the file cannot be written
    """
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(tomlkit.dumps(doc), encoding="utf-8")
        os.replace(tmp, path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise SettingsFileError(f"Cannot write {path}: {e}") from e


def new_settings_document(schema: dict[str, Any], values: dict[str, Any]) -> tomlkit.TOMLDocument:
    """
    Build a fresh settings document.

    Each written key is preceded by its schema description as a comment.

    Args:
        schema: Settings schema (key -> ConfigField)
        values: Values to write

    Returns:
        tomlkit document ready to be saved
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("scaffolder settings"))
    doc.add(tomlkit.comment("Command-line flags take precedence over these values."))
    doc.add(tomlkit.nl())

    for key, field in schema.items():
        if key not in values:
            continue
        if field.description:
            doc.add(tomlkit.comment(field.description))
        doc.add(key, values[key])

    return doc
