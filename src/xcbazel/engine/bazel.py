"""
Bazel invocation for xcbazel.

This module provides the BazelInvoker class, which turns an action, a
target and a toolchain/SDK pair into a `bazel` command line and runs it.
"""

import time
from pathlib import Path
from typing import Optional, Union

from xcbazel.config.models import Action, BazelConfig
from xcbazel.engine.commands import run_command
from xcbazel.engine.exceptions import BuildInvocationError
from xcbazel.logging.setup import get_logger


class BazelInvoker:
    """
    Runs Bazel against a specific Xcode and iOS SDK.

    Attributes:
        config: BazelConfig with the binary, simulator device and clean flag.
        cwd: Directory Bazel runs from (None for the current directory).
        logger: Structured logger for operations.

    Example:
        >>> invoker = BazelInvoker(BazelConfig())
        >>> invoker.invoke(Action.TEST, "//:Tests", "9.1", "11.1", [], verbose=False)
        0
    """

    def __init__(
        self,
        config: BazelConfig,
        cwd: Optional[Union[str, Path]] = None,
    ) -> None:
        self.config = config
        self.cwd = cwd
        self.logger = get_logger(__name__)

    def build_args(
        self,
        action: Action,
        target: str,
        xcode_version: str,
        sdk_version: Optional[str],
        extra_args: list[str],
        verbose: bool = False,
    ) -> list[str]:
        """
        Build the Bazel command line for one invocation.

        Args:
            action: build or test.
            target: Bazel target label.
            xcode_version: Value for --xcode_version.
            sdk_version: Value for --ios_sdk_version; omitted when None.
            extra_args: Passed through after every generated flag.
            verbose: Adds -s, and full test output for tests.

        Returns:
            The full argument list, starting with the Bazel binary.
        """
        args = [self.config.binary, action.value, target, "--xcode_version", xcode_version]

        if sdk_version:
            args.extend(["--ios_sdk_version", sdk_version])

        args.extend(["--ios_simulator_device", self.config.simulator_device])

        if action is Action.TEST:
            args.append("--test_output=all" if verbose else "--test_output=errors")

        if verbose:
            args.append("-s")

        args.extend(extra_args)
        return args

    def clean(self) -> None:
        """
        Run `bazel clean`.

        Raises:
            BuildInvocationError: If the clean fails.
        """
        cmd = [self.config.binary, "clean"]
        result = run_command(cmd, cwd=self.cwd)
        if result.returncode != 0:
            raise BuildInvocationError(
                message="bazel clean failed",
                exit_code=result.returncode,
                command=cmd,
            )

    def invoke(
        self,
        action: Action,
        target: str,
        xcode_version: str,
        sdk_version: Optional[str],
        extra_args: list[str],
        verbose: bool = False,
    ) -> int:
        """
        Clean (if configured) and run one Bazel invocation.

        Returns:
            Bazel's exit status.

        Raises:
            BuildInvocationError: If the preceding clean fails.
        """
        if self.config.clean_before_build:
            self.clean()

        args = self.build_args(action, target, xcode_version, sdk_version, extra_args, verbose)

        self.logger.info(
            "bazel_invocation_started",
            action=action.value,
            target=target,
            xcode_version=xcode_version,
            sdk_version=sdk_version,
            args=args,
        )

        start_time = time.perf_counter()
        result = run_command(args, cwd=self.cwd)
        duration_ms = (time.perf_counter() - start_time) * 1000

        self.logger.info(
            "bazel_invocation_completed",
            action=action.value,
            target=target,
            xcode_version=xcode_version,
            exit_code=result.returncode,
            duration_ms=round(duration_ms, 2),
        )

        return result.returncode
