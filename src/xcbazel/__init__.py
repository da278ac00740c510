"""
xcbazel - Xcode matrix build wrapper

Runs Bazel builds and tests for iOS targets against every installed Xcode
toolchain in a configured matrix, or against the currently selected one.
"""

from xcbazel.version import __version__

__all__ = ["__version__"]
