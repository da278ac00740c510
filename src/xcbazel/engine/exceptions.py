"""
Errors raised by xcbazel.

Every error has a stable code (CONFIG_001, XCODE_002, ...) and a few
troubleshooting tips, both shown in the CLI's error panel. The CLI maps
them to exit statuses: Bazel's own status for BuildInvocationError, 1 for
configuration errors and a too-old Xcode, 2 for everything else.
"""

from typing import Any, Optional


class BuildRunnerError(Exception):
    """
    Base class for xcbazel errors.

    Subclasses set `code` and override `default_tips()`; keyword fields
    that are None are left out of `context`.

    Attributes:
        message: One-line description.
        error_code: Stable code, `code` unless overridden.
        troubleshooting_tips: Suggestions shown under the message.
        context: Values describing the failure (versions, paths, exit codes).
    """

    code = "XCBAZEL_000"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        troubleshooting_tips: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
        **fields: Any,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.code
        self.troubleshooting_tips = troubleshooting_tips or self.default_tips()
        self.context = dict(context or {})
        self.context.update((key, value) for key, value in fields.items() if value is not None)
        super().__init__(str(self))

    def default_tips(self) -> list[str]:
        return []

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}"
        if self.troubleshooting_tips:
            text += "\n\nTroubleshooting:\n" + "\n".join(
                f"  {n}. {tip}" for n, tip in enumerate(self.troubleshooting_tips, 1)
            )
        if self.context:
            text += "\n\nContext: " + ", ".join(f"{k}={v}" for k, v in self.context.items())
        return text


class ConfigurationError(BuildRunnerError):
    """Settings that do not validate, or a missing CI workspace."""

    code = "CONFIG_001"

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs: Any) -> None:
        self.field_name = field_name
        super().__init__(message, field_name=field_name, **kwargs)

    def default_tips(self) -> list[str]:
        return [
            "Check your configuration file for syntax errors",
            "Run 'xcbazel config validate <file>' to see every problem",
        ]


class InvalidVersionFormat(ConfigurationError, ValueError):
    """
    A version string that is not 1 to 3 dot-separated integers.

    Also a ValueError, so pydantic validators report it as a field error.
    """

    code = "VERSION_001"

    def __init__(self, value: str, field_name: Optional[str] = None) -> None:
        self.value = value
        super().__init__(f"Invalid version string: {value!r}", field_name=field_name, value=value)

    def default_tips(self) -> list[str]:
        return ["Use 1 to 3 dot-separated non-negative integers, e.g. 9, 9.1 or 8.3.3"]


class ToolchainNotFoundError(BuildRunnerError):
    """No selected Xcode, or its version.plist cannot be read."""

    code = "XCODE_001"

    def __init__(self, message: str, path: Optional[str] = None, **kwargs: Any) -> None:
        self.path = path
        super().__init__(message, path=path, **kwargs)

    def default_tips(self) -> list[str]:
        return [
            "Check that Xcode is installed and 'xcode-select -p' prints its Developer directory",
            "Select an installation with: sudo xcode-select --switch <path>",
        ]


class ToolchainSwitchError(BuildRunnerError):
    """`xcode-select --switch` or a diagnostic command failed."""

    code = "XCODE_002"

    def __init__(
        self,
        message: str,
        xcode_version: Optional[str] = None,
        exit_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.xcode_version = xcode_version
        self.exit_code = exit_code
        super().__init__(message, xcode_version=xcode_version, exit_code=exit_code, **kwargs)

    def default_tips(self) -> list[str]:
        return [
            f"Check that Xcode {self.xcode_version or '<version>'} is installed under /Applications",
            "Ensure the CI user may run 'sudo xcode-select' without a password",
        ]


class ToolchainVersionError(BuildRunnerError):
    """The selected Xcode is older than --min-xcode-version."""

    code = "XCODE_003"

    def __init__(self, selected_version: str, minimum_version: str, **kwargs: Any) -> None:
        self.selected_version = selected_version
        self.minimum_version = minimum_version
        super().__init__(
            f"The currently selected Xcode version ({selected_version}) "
            f"is less than the desired version ({minimum_version})",
            selected_version=selected_version,
            minimum_version=minimum_version,
            **kwargs,
        )

    def default_tips(self) -> list[str]:
        return [
            f"Select Xcode {self.minimum_version} or newer with 'sudo xcode-select --switch'",
            "Or lower --min-xcode-version",
        ]


class BuildInvocationError(BuildRunnerError):
    """
    `bazel clean`, `bazel build` or `bazel test` exited non-zero.

    `exit_code` becomes xcbazel's own exit status.
    """

    code = "BUILD_001"

    def __init__(
        self,
        message: str,
        exit_code: int,
        command: Optional[list[str]] = None,
        xcode_version: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.exit_code = exit_code
        self.command = command or []
        self.xcode_version = xcode_version
        super().__init__(message, exit_code=exit_code, xcode_version=xcode_version, **kwargs)

    def default_tips(self) -> list[str]:
        return [
            "Scroll up for the Bazel output of the failing invocation",
            "Re-run with --verbose to see every subcommand and all test output",
        ]


class ProcessTerminationError(BuildRunnerError):
    """A simulator process outlived its kill deadline or kept respawning."""

    code = "PROC_001"

    def __init__(
        self,
        message: str,
        process_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        attempts: int = 0,
        **kwargs: Any,
    ) -> None:
        self.process_name = process_name
        self.timeout_seconds = timeout_seconds
        self.attempts = attempts
        super().__init__(
            message,
            process_name=process_name,
            timeout_seconds=timeout_seconds,
            attempts=attempts,
            **kwargs,
        )

    def default_tips(self) -> list[str]:
        return [
            f"Increase xcode.kill_timeout (current: {self.timeout_seconds}s)",
            "Reboot the build machine if the simulator service keeps respawning",
        ]


__all__ = [
    "BuildRunnerError",
    "ConfigurationError",
    "InvalidVersionFormat",
    "ToolchainNotFoundError",
    "ToolchainSwitchError",
    "ToolchainVersionError",
    "BuildInvocationError",
    "ProcessTerminationError",
]
