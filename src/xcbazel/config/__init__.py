"""
xcbazel Configuration Management.

This package provides configuration loading, validation, and management
for xcbazel.
"""

from xcbazel.config.manager import ConfigManager
from xcbazel.config.models import RunnerConfig, RunOptions

__all__ = ["ConfigManager", "RunnerConfig", "RunOptions"]
