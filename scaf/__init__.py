"""
scaf - Scaffolder command-line tool.

Lists the available scaffolding plugins, keeps the local plugin cache up to
date and runs the selected plugin sub-module.
"""

from scaffolder import __version__

__all__ = ["__version__"]
