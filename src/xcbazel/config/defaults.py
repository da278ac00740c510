"""
Default configuration values for xcbazel.

This module provides default configuration values used when no configuration
file is specified or when values are missing from the configuration.
"""

from typing import Any

# Default configuration dictionary
DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "console",
        "output": "stderr",
    },
    "ci": {
        "build_number_envvar": "KOKORO_BUILD_NUMBER",
        "workspace_dir": "github/repo",
        "force_verbose": True,
    },
    "xcode": {
        "app_path_template": "/Applications/Xcode_{version}.app/Contents/Developer",
        "matrix": [
            {"xcode_version": "8.3.3", "sdk_version": "10.3"},
            {"xcode_version": "9.0", "sdk_version": "11.0"},
            {"xcode_version": "9.1", "sdk_version": "11.1"},
            {"xcode_version": "9.2", "sdk_version": "11.2"},
        ],
        "reset_simulators": True,
        "simulator_service_pattern": r"com\.apple\.CoreSimulatorService",
        "simulator_app_name": "Simulator",
        "launchd_service": "com.apple.CoreSimulator.CoreSimulatorService",
        "kill_timeout": 10.0,
        "kill_poll_interval": 0.1,
        "max_respawns": 5,
    },
    "bazel": {
        "binary": "bazel",
        "simulator_device": "iPhone 6",
        "clean_before_build": True,
    },
}


def get_default_config_yaml() -> str:
    """
    Generate default configuration as YAML string.

    Returns:
        YAML-formatted default configuration with documentation comments.
    """
    return r'''# =============================================================================
# xcbazel - Xcode matrix build wrapper
# Configuration File
# =============================================================================
# Values can also be set through XCBAZEL_* environment variables, using a
# double underscore for nesting, e.g. XCBAZEL_BAZEL__BINARY=bazelisk
# =============================================================================

# -----------------------------------------------------------------------------
# Logging Configuration
# -----------------------------------------------------------------------------
logging:
  # Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
  level: INFO

  # Log format: "json" for CI, "console" for local runs
  format: console

  # Output destination: stdout, stderr, or file path
  output: stderr

# -----------------------------------------------------------------------------
# CI Detection
# -----------------------------------------------------------------------------
ci:
  # A non-empty value in this variable switches on the matrix run
  build_number_envvar: KOKORO_BUILD_NUMBER

  # Bazel runs from here on CI
  workspace_dir: github/repo

  # Always enable verbose output on CI runs
  force_verbose: true

# -----------------------------------------------------------------------------
# Xcode Toolchains
# -----------------------------------------------------------------------------
xcode:
  app_path_template: /Applications/Xcode_{version}.app/Contents/Developer

  # Walked in order on CI. Quote versions so YAML keeps them as strings.
  matrix:
    - xcode_version: "8.3.3"
      sdk_version: "10.3"
    - xcode_version: "9.0"
      sdk_version: "11.0"
    - xcode_version: "9.1"
      sdk_version: "11.1"
    - xcode_version: "9.2"
      sdk_version: "11.2"

  # Kill simulator processes left behind by the previous toolchain
  reset_simulators: true
  simulator_service_pattern: 'com\.apple\.CoreSimulatorService'
  simulator_app_name: Simulator
  launchd_service: com.apple.CoreSimulator.CoreSimulatorService

  # Seconds to keep retrying a kill, pause between attempts, respawn limit
  kill_timeout: 10.0
  kill_poll_interval: 0.1
  max_respawns: 5

# -----------------------------------------------------------------------------
# Bazel
# -----------------------------------------------------------------------------
bazel:
  binary: bazel
  simulator_device: iPhone 6
  clean_before_build: true
'''
