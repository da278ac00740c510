"""
xcbazel Command Line Interface.

This package provides the CLI commands for xcbazel.
"""

from xcbazel.cli.main import app

__all__ = ["app"]
