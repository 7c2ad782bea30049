"""
Scaffolder Cache - on-disk plugin storage.

This module handles:
- Cache root selection
- Freshness markers and staleness detection
- Eviction of stale plugins
- Safe archive extraction
"""

__all__ = []
