"""
Plugin Dependency Installer.

This module installs the Python dependencies of a freshly extracted plugin.

Key features:
- requirements.txt discovery
- pip install into a plugin-local directory
- Environment variable injection
- Output inherited in verbose mode, discarded otherwise
- Exit code handling
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from scaffolder.errors import InstallFailed, SpawnError
from scaffolder.plugin.loader import DEPENDENCIES_DIR

logger = logging.getLogger(__name__)

REQUIREMENTS_FILE = "requirements.txt"


def install_command(plugin_dir: Path) -> list[str]:
    """
    Build the install command for a plugin.

    Args:
        plugin_dir: Cached plugin directory

    Returns:
        Command line running pip with the current interpreter
    """
    return [
        sys.executable,
        "-m",
        "pip",
        "install",
        "--no-input",
        "--disable-pip-version-check",
        "--target",
        str(plugin_dir / DEPENDENCIES_DIR),
        "-r",
        REQUIREMENTS_FILE,
    ]


async def install_dependencies(
    plugin_dir: Path,
    verbose: bool = False,
    command: list[str] | None = None,
) -> int:
    """
    Install a plugin's dependencies inside its cache entry.

    Plugins without a requirements.txt need no install and return 0
    without spawning anything.

    Args:
        plugin_dir: Cached plugin directory (working directory of the command)
        verbose: Inherit the command's output instead of discarding it
        command: Command to run (defaults to install_command(plugin_dir))

    Returns:
        Exit code of the install command (always 0)

    Raises:
        SpawnError: If the command cannot be started
        InstallFailed: If the command exits with a non-zero code
    """
    if command is None:
        if not (plugin_dir / REQUIREMENTS_FILE).exists():
            logger.debug("No %s in %s, nothing to install", REQUIREMENTS_FILE, plugin_dir)
            return 0
        command = install_command(plugin_dir)

    env = os.environ.copy()
    env["PIP_DISABLE_PIP_VERSION_CHECK"] = "1"
    env["SCAFFOLDER_PLUGIN_DIR"] = str(plugin_dir)

    output = None if verbose else asyncio.subprocess.DEVNULL

    logger.debug("Running %s in %s", " ".join(command), plugin_dir)
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=plugin_dir,
            env=env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=output,
            stderr=output,
        )
    except OSError as e:
        raise SpawnError(f"Failed to start '{command[0]}': {e}") from e

    exit_code = await process.wait()
    if exit_code != 0:
        raise InstallFailed(
            f"Installing the dependencies in {plugin_dir} failed with exit code {exit_code}",
            exit_code=exit_code,
        )

    return exit_code
