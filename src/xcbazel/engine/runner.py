"""
MatrixRunner - entry point for an xcbazel run.

On CI the runner walks the configured (Xcode, iOS SDK) matrix: for every
toolchain at or above the requested minimum it switches Xcode, clears out
stale simulator services and invokes Bazel, stopping at the first failure.
Locally it checks the currently selected Xcode against the minimum and
invokes Bazel once.
"""

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional

from xcbazel.config.models import Action, RunnerConfig, RunOptions, ToolchainPair
from xcbazel.engine.bazel import BazelInvoker
from xcbazel.engine.exceptions import (
    BuildInvocationError,
    ConfigurationError,
    ToolchainVersionError,
)
from xcbazel.engine.processes import ProcessManager
from xcbazel.engine.versions import Version
from xcbazel.engine.xcode import XcodeSelector
from xcbazel.logging.setup import get_logger, toolchain_context

# Called with (xcode_version, action, target) before each Bazel invocation
ProgressCallback = Callable[[str, Action, str], None]


@dataclass
class Invocation:
    """One completed Bazel invocation."""

    xcode_version: str
    sdk_version: Optional[str]
    exit_code: int
    duration_ms: float


@dataclass
class RunSummary:
    """Outcome of MatrixRunner.run()."""

    mode: str
    action: Action
    target: str
    invocations: list[Invocation] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(inv.exit_code == 0 for inv in self.invocations)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "action": self.action.value,
            "target": self.target,
            "invocations": [
                {
                    "xcode_version": inv.xcode_version,
                    "sdk_version": inv.sdk_version,
                    "exit_code": inv.exit_code,
                    "duration_ms": inv.duration_ms,
                }
                for inv in self.invocations
            ],
            "skipped": self.skipped,
        }


class MatrixRunner:
    """
    Runs Bazel across Xcode toolchains.

    Attributes:
        config: RunnerConfig with CI, Xcode and Bazel settings.
        bazel: BazelInvoker used for every build.
        xcode: XcodeSelector used to switch and inspect toolchains.
        processes: ProcessManager used to reset simulators.
        logger: Structured logger for operations.

    Example:
        >>> runner = MatrixRunner(config_manager.runner_config())
        >>> summary = runner.run(
        ...     RunOptions(action="test", target="//:Tests", min_xcode_version="9.0"),
        ... )
    """

    def __init__(
        self,
        config: RunnerConfig,
        bazel: Optional[BazelInvoker] = None,
        xcode: Optional[XcodeSelector] = None,
        processes: Optional[ProcessManager] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config = config
        self.bazel = bazel or BazelInvoker(config.bazel)
        self.xcode = xcode or XcodeSelector(config.xcode)
        self.processes = processes or ProcessManager.from_config(config.xcode)
        self._environ = os.environ if environ is None else environ
        self.logger = get_logger(__name__)

    def is_ci(self, options: RunOptions) -> bool:
        """Return True if this run walks the matrix."""
        if options.ci is not None:
            return options.ci
        return bool(self._environ.get(self.config.ci.build_number_envvar))

    def select_toolchains(
        self,
        minimum: Optional[Version] = None,
    ) -> tuple[list[ToolchainPair], list[str]]:
        """
        Split the matrix into pairs to run and Xcode versions to skip.

        Args:
            minimum: Lower bound; pairs with an older Xcode are skipped.

        Returns:
            (selected pairs in matrix order, skipped Xcode versions)
        """
        selected: list[ToolchainPair] = []
        skipped: list[str] = []
        for pair in self.config.xcode.matrix:
            if minimum is not None and pair.xcode < minimum:
                skipped.append(pair.xcode_version)
            else:
                selected.append(pair)
        return selected, skipped

    def prepare_toolchain(self, xcode_version: str) -> None:
        """
        Switch to `xcode_version` and clear simulator state from the last one.

        Raises:
            ToolchainSwitchError: If the switch or diagnostics fail.
            ProcessTerminationError: If a simulator service cannot be killed.
        """
        self.xcode.switch(xcode_version)
        if self.config.xcode.reset_simulators:
            self.processes.reset_simulator_service()
            self.processes.kill_all(self.config.xcode.simulator_app_name)
        self.xcode.show_diagnostics()
        self.xcode.remove_simulator_service()

    def run(
        self,
        options: RunOptions,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> RunSummary:
        """
        Run Bazel for `options`.

        Args:
            options: Action, target, minimum version and pass-through args.
            progress_callback: Called before each Bazel invocation.

        Returns:
            RunSummary of every invocation made.

        Raises:
            BuildInvocationError: On the first non-zero Bazel exit.
            ToolchainVersionError: If the local Xcode is below the minimum.
            ConfigurationError: If the CI workspace directory is missing.
        """
        ci = self.is_ci(options)
        verbose = options.verbose or (ci and self.config.ci.force_verbose)

        self.logger.info(
            "run_started",
            mode="ci" if ci else "local",
            action=options.action.value,
            target=options.target,
            min_xcode_version=options.min_xcode_version,
            verbose=verbose,
            extra_args=options.extra_args,
        )

        if ci:
            summary = self._run_matrix(options, verbose, progress_callback)
        else:
            summary = self._run_local(options, verbose, progress_callback)

        self.logger.info(
            "run_completed",
            mode=summary.mode,
            invocations=len(summary.invocations),
            skipped=summary.skipped,
        )
        return summary

    def _run_matrix(
        self,
        options: RunOptions,
        verbose: bool,
        progress_callback: Optional[ProgressCallback],
    ) -> RunSummary:
        workspace = self.config.ci.workspace_dir
        if workspace:
            if not Path(workspace).is_dir():
                raise ConfigurationError(
                    message=f"CI workspace directory not found: {workspace}",
                    field_name="ci.workspace_dir",
                )
            self.bazel.cwd = workspace

        selected, skipped = self.select_toolchains(options.minimum)
        summary = RunSummary(mode="ci", action=options.action, target=options.target, skipped=skipped)

        for version in skipped:
            self.logger.info("toolchain_skipped", xcode_version=version, minimum=options.min_xcode_version)

        if not selected:
            self.logger.warning(
                "no_toolchains_selected",
                minimum=options.min_xcode_version,
                matrix=[pair.xcode_version for pair in self.config.xcode.matrix],
            )
            return summary

        for pair in selected:
            with toolchain_context(pair.xcode_version, pair.sdk_version):
                self.prepare_toolchain(pair.xcode_version)
                summary.invocations.append(
                    self._invoke(options, pair.xcode_version, pair.sdk_version, verbose, progress_callback)
                )

        return summary

    def _run_local(
        self,
        options: RunOptions,
        verbose: bool,
        progress_callback: Optional[ProgressCallback],
    ) -> RunSummary:
        xcode_version = self.xcode.selected_version()
        minimum = options.minimum

        if minimum is not None and Version.parse(xcode_version) < minimum:
            raise ToolchainVersionError(
                selected_version=xcode_version,
                minimum_version=options.min_xcode_version or str(minimum),
            )

        summary = RunSummary(mode="local", action=options.action, target=options.target)
        with toolchain_context(xcode_version):
            summary.invocations.append(
                self._invoke(options, xcode_version, None, verbose, progress_callback)
            )
        return summary

    def _invoke(
        self,
        options: RunOptions,
        xcode_version: str,
        sdk_version: Optional[str],
        verbose: bool,
        progress_callback: Optional[ProgressCallback],
    ) -> Invocation:
        if progress_callback:
            progress_callback(xcode_version, options.action, options.target)

        start_time = time.perf_counter()
        exit_code = self.bazel.invoke(
            action=options.action,
            target=options.target,
            xcode_version=xcode_version,
            sdk_version=sdk_version,
            extra_args=options.extra_args,
            verbose=verbose,
        )
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        if exit_code != 0:
            raise BuildInvocationError(
                message=f"bazel {options.action.value} {options.target} failed with Xcode {xcode_version}",
                exit_code=exit_code,
                xcode_version=xcode_version,
                context={"sdk_version": sdk_version} if sdk_version else None,
            )

        return Invocation(
            xcode_version=xcode_version,
            sdk_version=sdk_version,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )
