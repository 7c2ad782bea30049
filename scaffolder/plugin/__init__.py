"""
Scaffolder Plugin System - cached plugin handling.

This module handles:
- Plugin manifest parsing
- Dependency installation
- Dynamic loading of sub-modules
- Sub-module discovery, selection and invocation
"""

__all__ = []
