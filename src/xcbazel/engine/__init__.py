"""
xcbazel engine.

Key components:
- MatrixRunner (xcbazel.engine.runner): walks the toolchain matrix
- BazelInvoker (xcbazel.engine.bazel): build invocation
- XcodeSelector (xcbazel.engine.xcode): toolchain selection
- ProcessManager (xcbazel.engine.processes): process listing and termination
- normalize / Version: version tokens and ordering

Exception hierarchy:
- BuildRunnerError: Base exception for all xcbazel errors
- ConfigurationError: Configuration validation failures
- InvalidVersionFormat: Malformed version strings
- ToolchainNotFoundError: No readable Xcode selection
- ToolchainSwitchError: xcode-select or diagnostics failures
- ToolchainVersionError: Selected Xcode below the minimum
- BuildInvocationError: Non-zero Bazel exit
- ProcessTerminationError: Processes that survive their kill deadline
"""

from xcbazel.engine.exceptions import (
    BuildInvocationError,
    BuildRunnerError,
    ConfigurationError,
    InvalidVersionFormat,
    ProcessTerminationError,
    ToolchainNotFoundError,
    ToolchainSwitchError,
    ToolchainVersionError,
)
from xcbazel.engine.versions import Version, normalize

__all__ = [
    # Exceptions
    "BuildRunnerError",
    "ConfigurationError",
    "InvalidVersionFormat",
    "ToolchainNotFoundError",
    "ToolchainSwitchError",
    "ToolchainVersionError",
    "BuildInvocationError",
    "ProcessTerminationError",
    # Versions
    "Version",
    "normalize",
]
