"""
Scaffolder Catalog - plugin listing and revision resolution.

This module handles:
- Repository listing on GitHub with rate-limit handling
- Plugin naming-convention filtering
- Head revision lookup
"""

__all__ = []
