"""
Pydantic models for xcbazel configuration validation.

This module defines type-safe configuration models that ensure
configuration correctness at load time, plus the `RunOptions` struct
handed to the runner for a single invocation.
"""

from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from xcbazel.engine.versions import Version


class LogLevel(str, Enum):
    """Valid log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Valid log output formats."""

    JSON = "json"
    CONSOLE = "console"


class Action(str, Enum):
    """Bazel actions the runner knows how to drive."""

    BUILD = "build"
    TEST = "test"


def _coerce_version(value: Any) -> Any:
    # YAML reads unquoted 9.10 as the float 9.1, so only whole numbers are safe
    if isinstance(value, float):
        raise ValueError(
            f"version {value!r} was read as a number; quote it (e.g. \"9.10\") "
            "so trailing zeros are kept"
        )
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class ToolchainPair(BaseModel):
    """One row of the toolchain matrix."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    xcode_version: str = Field(description="Xcode version, e.g. 9.1")
    sdk_version: str = Field(description="iOS SDK version paired with it, e.g. 11.1")

    @field_validator("xcode_version", "sdk_version", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        """Accept unquoted numeric YAML values."""
        return _coerce_version(v)

    @field_validator("xcode_version", "sdk_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Reject strings that are not dotted versions."""
        Version.parse(v)
        return v.strip()

    @property
    def xcode(self) -> Version:
        """Parsed Xcode version."""
        return Version.parse(self.xcode_version)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format",
    )
    output: str = Field(
        default="stderr",
        description="Log output destination (stdout, stderr, or file path)",
    )


class CIConfig(BaseModel):
    """Configuration for CI detection."""

    model_config = ConfigDict(extra="forbid")

    build_number_envvar: str = Field(
        default="KOKORO_BUILD_NUMBER",
        description="Environment variable whose presence marks a CI run",
    )
    workspace_dir: Optional[str] = Field(
        default="github/repo",
        description="Directory Bazel runs from on CI (relative to the working directory)",
    )
    force_verbose: bool = Field(
        default=True,
        description="Always enable verbose output on CI runs",
    )


class XcodeConfig(BaseModel):
    """Configuration for Xcode toolchain selection."""

    model_config = ConfigDict(extra="forbid")

    app_path_template: str = Field(
        default="/Applications/Xcode_{version}.app/Contents/Developer",
        description="Developer directory for a given Xcode version",
    )
    matrix: list[ToolchainPair] = Field(
        default_factory=list,
        description="Ordered (Xcode, iOS SDK) pairs walked on CI",
    )
    reset_simulators: bool = Field(
        default=True,
        description="Kill simulator services after switching toolchains",
    )
    simulator_service_pattern: str = Field(
        default=r"com\.apple\.CoreSimulatorService",
        description="Regex matched against the end of process names",
    )
    simulator_app_name: str = Field(
        default="Simulator",
        description="Simulator application process name",
    )
    launchd_service: str = Field(
        default="com.apple.CoreSimulator.CoreSimulatorService",
        description="launchd label removed after switching toolchains",
    )
    kill_timeout: Annotated[float, Field(gt=0, le=600)] = Field(
        default=10.0,
        description="Seconds to keep retrying a kill before giving up",
    )
    kill_poll_interval: Annotated[float, Field(ge=0, le=10)] = Field(
        default=0.1,
        description="Seconds between kill attempts",
    )
    max_respawns: Annotated[int, Field(ge=0, le=100)] = Field(
        default=5,
        description="How many times a killed process may respawn before failing",
    )

    @field_validator("app_path_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Ensure the template has a {version} placeholder."""
        if "{version}" not in v:
            raise ValueError("app_path_template must contain '{version}'")
        return v


class BazelConfig(BaseModel):
    """Configuration for Bazel invocations."""

    model_config = ConfigDict(extra="forbid")

    binary: str = Field(
        default="bazel",
        description="Bazel executable",
    )
    simulator_device: str = Field(
        default="iPhone 6",
        description="Value for --ios_simulator_device",
    )
    clean_before_build: bool = Field(
        default=True,
        description="Run 'bazel clean' before every invocation",
    )


class RunnerConfig(BaseModel):
    """Root configuration model for xcbazel."""

    model_config = ConfigDict(extra="allow")

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    ci: CIConfig = Field(
        default_factory=CIConfig,
        description="CI detection",
    )
    xcode: XcodeConfig = Field(
        default_factory=XcodeConfig,
        description="Xcode toolchain configuration",
    )
    bazel: BazelConfig = Field(
        default_factory=BazelConfig,
        description="Bazel configuration",
    )


class RunOptions(BaseModel):
    """Options for one runner invocation."""

    model_config = ConfigDict(extra="forbid")

    action: Action
    target: str = Field(min_length=1, description="Bazel target label")
    min_xcode_version: Optional[str] = Field(
        default=None,
        description="Skip or reject Xcode versions older than this",
    )
    verbose: bool = False
    extra_args: list[str] = Field(default_factory=list)
    ci: Optional[bool] = Field(
        default=None,
        description="Force CI or local mode; detected from the environment when unset",
    )

    @field_validator("min_xcode_version", mode="before")
    @classmethod
    def validate_min_version(cls, v: Any) -> Any:
        """Reject a minimum that is not a dotted version."""
        v = _coerce_version(v)
        if v is None or v == "":
            return None
        Version.parse(v)
        return v

    @property
    def minimum(self) -> Optional[Version]:
        """Parsed lower bound, if any."""
        if self.min_xcode_version is None:
            return None
        return Version.parse(self.min_xcode_version)
