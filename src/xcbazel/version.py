"""
Version management for xcbazel.

This module provides the single source of truth for the package version.
"""

__version__ = "4.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))
