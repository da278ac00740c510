"""
xcbazel Logging Infrastructure.

This package provides structured logging for xcbazel, with human-readable
console output for local runs and JSON output for CI logs.
"""

from xcbazel.logging.setup import (
    get_logger,
    log_error,
    log_execution_context,
    log_execution_end,
    log_execution_start,
    setup_logging,
    toolchain_context,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_execution_start",
    "log_execution_end",
    "log_error",
    "log_execution_context",
    "toolchain_context",
]
