"""
Xcode toolchain selection for xcbazel.

This module wraps `xcode-select`, `xcodebuild`, `xcrun` and `launchctl`:
switching the active Xcode, reading the selected version, and printing the
diagnostics CI logs rely on after a switch.
"""

import plistlib
from pathlib import Path

from xcbazel.config.models import XcodeConfig
from xcbazel.engine.commands import run_command
from xcbazel.engine.exceptions import ToolchainNotFoundError, ToolchainSwitchError
from xcbazel.logging.setup import get_logger

_DIAGNOSTIC_COMMANDS = (
    ["xcodebuild", "-version"],
    ["xcrun", "simctl", "list"],
    ["xcodebuild", "-showsdks"],
)


class XcodeSelector:
    """
    Selects and inspects installed Xcode toolchains.

    Attributes:
        config: XcodeConfig with the install path template and launchd label.
        logger: Structured logger for operations.
    """

    def __init__(self, config: XcodeConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__)

    def developer_path(self, xcode_version: str) -> Path:
        """Return the Developer directory of an installed Xcode version."""
        return Path(self.config.app_path_template.format(version=xcode_version))

    def switch(self, xcode_version: str) -> None:
        """
        Make `xcode_version` the active toolchain.

        Raises:
            ToolchainSwitchError: If xcode-select fails.
        """
        path = self.developer_path(xcode_version)
        result = run_command(["sudo", "xcode-select", "--switch", str(path)])
        if result.returncode != 0:
            raise ToolchainSwitchError(
                message=f"Could not switch to Xcode {xcode_version}",
                xcode_version=xcode_version,
                exit_code=result.returncode,
                context={"developer_path": str(path)},
            )
        self.logger.info("toolchain_selected", xcode_version=xcode_version, developer_path=str(path))

    def selected_developer_path(self) -> Path:
        """
        Return the Developer directory of the active toolchain.

        Raises:
            ToolchainNotFoundError: If xcode-select cannot report one.
        """
        result = run_command(["xcode-select", "-p"], capture=True)
        path = result.stdout.strip() if result.stdout else ""
        if result.returncode != 0 or not path:
            raise ToolchainNotFoundError(
                message="No Xcode toolchain is selected",
                context={"exit_code": result.returncode},
            )
        return Path(path)

    def selected_version(self) -> str:
        """
        Return CFBundleShortVersionString of the active toolchain.

        Raises:
            ToolchainNotFoundError: If version.plist is missing or unreadable.
        """
        contents_path = self.selected_developer_path().parent
        plist_path = contents_path / "version.plist"

        try:
            with open(plist_path, "rb") as f:
                info = plistlib.load(f)
        except (OSError, plistlib.InvalidFileException) as e:
            raise ToolchainNotFoundError(
                message=f"Could not read the selected Xcode version: {e}",
                path=str(plist_path),
            ) from e

        version = info.get("CFBundleShortVersionString")
        if not version:
            raise ToolchainNotFoundError(
                message="version.plist has no CFBundleShortVersionString",
                path=str(plist_path),
            )

        self.logger.debug("selected_version_read", xcode_version=version, plist=str(plist_path))
        return str(version)

    def show_diagnostics(self) -> None:
        """
        Print the active Xcode version, simulators and SDKs.

        Raises:
            ToolchainSwitchError: If any of the tools fail.
        """
        for cmd in _DIAGNOSTIC_COMMANDS:
            result = run_command(list(cmd))
            if result.returncode != 0:
                raise ToolchainSwitchError(
                    message=f"'{' '.join(cmd)}' failed after switching toolchains",
                    exit_code=result.returncode,
                )

    def remove_simulator_service(self) -> None:
        """
        Remove the CoreSimulator launchd job.

        Works around "Failed to locate a valid instance of CoreSimulatorService
        in the bootstrap" after a switch. Failure is logged and ignored.
        """
        result = run_command(["launchctl", "remove", self.config.launchd_service], capture=True)
        if result.returncode != 0:
            self.logger.debug(
                "launchd_service_not_removed",
                service=self.config.launchd_service,
                exit_code=result.returncode,
            )
