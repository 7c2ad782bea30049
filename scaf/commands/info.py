"""
scaf info command (-p, --plugins).

Show version information and the cached plugins.
"""

from typing import Any

from scaf.commands import settings_from_args
from scaffolder.cache.manager import CacheManager
from scaffolder.flow import info_report


def info_command(args: Any) -> int:
    """
    Execute info command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    settings = settings_from_args(args)
    cache = CacheManager(root=settings.cache_dir)
    print(info_report(settings, cache))
    return 0
