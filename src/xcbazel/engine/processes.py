"""
OS process management for xcbazel.

Switching Xcode versions can leave the previous toolchain's simulator
services running, and some of them respawn after being killed. This module
lists processes by name, kills them, and keeps killing them within a
bounded deadline until they stay dead.
"""

import re
import time
from typing import Optional

from xcbazel.config.models import XcodeConfig
from xcbazel.engine.commands import run_command
from xcbazel.engine.exceptions import ProcessTerminationError
from xcbazel.logging.setup import get_logger


class ProcessManager:
    """
    Lists and terminates local processes.

    Attributes:
        kill_timeout: Seconds to keep retrying a kill before giving up.
        poll_interval: Seconds to sleep between kill attempts.
        max_respawns: How many times a process may come back before failing.
        simulator_service_pattern: Regex for the CoreSimulator service process.
        logger: Structured logger for operations.
    """

    def __init__(
        self,
        kill_timeout: float = 10.0,
        poll_interval: float = 0.1,
        max_respawns: int = 5,
        simulator_service_pattern: str = r"com\.apple\.CoreSimulatorService",
    ) -> None:
        self.kill_timeout = kill_timeout
        self.poll_interval = poll_interval
        self.max_respawns = max_respawns
        self.simulator_service_pattern = simulator_service_pattern
        self.logger = get_logger(__name__)

    @classmethod
    def from_config(cls, config: XcodeConfig) -> "ProcessManager":
        """Create a ProcessManager with the kill settings from XcodeConfig."""
        return cls(
            kill_timeout=config.kill_timeout,
            poll_interval=config.kill_poll_interval,
            max_respawns=config.max_respawns,
            simulator_service_pattern=config.simulator_service_pattern,
        )

    def list_matching(self, pattern: str) -> list[str]:
        """
        List running process names that end with a match of `pattern`.

        Args:
            pattern: Regular expression, anchored at the end of the name.

        Returns:
            Matching command names in `ps` order.
        """
        result = run_command(["ps", "-xc", "-o", "command"], capture=True)
        if result.returncode != 0:
            self.logger.warning(
                "process_listing_failed",
                exit_code=result.returncode,
            )
            return []

        regex = re.compile(f"(?:{pattern})$")
        names = []
        for line in result.stdout.splitlines():
            name = line.strip()
            if name and regex.search(name):
                names.append(name)
        return names

    def terminate(self, name: str) -> bool:
        """
        Send SIGKILL to every process called `name`.

        Returns:
            True if killall reported success.
        """
        result = run_command(["/usr/bin/killall", "-9", name], capture=True)
        return result.returncode == 0

    def kill_all(self, name: str) -> bool:
        """
        Send SIGTERM to every process called `name`.

        A missing process is not an error.

        Returns:
            True if a process was signalled.
        """
        result = run_command(["killall", name], capture=True)
        self.logger.debug("kill_all", process_name=name, signalled=result.returncode == 0)
        return result.returncode == 0

    def kill_mercilessly(self, pattern: str, timeout: Optional[float] = None) -> int:
        """
        Kill every process matching `pattern`, again if it respawns.

        Each kill is retried until it succeeds or `timeout` seconds pass on
        the monotonic clock.

        Args:
            pattern: Regular expression matched against the end of process names.
            timeout: Per-process deadline in seconds; defaults to kill_timeout.

        Returns:
            Number of processes killed.

        Raises:
            ProcessTerminationError: If a kill does not succeed before the
                deadline, or the process respawns more than max_respawns times.
        """
        timeout = self.kill_timeout if timeout is None else timeout
        killed_count = 0
        rounds = 0

        while True:
            matches = self.list_matching(pattern)
            if not matches:
                break

            name = matches[0]
            if rounds > self.max_respawns:
                raise ProcessTerminationError(
                    message=f"Process '{name}' keeps respawning",
                    process_name=name,
                    timeout_seconds=timeout,
                    attempts=rounds,
                    context={"max_respawns": self.max_respawns},
                )

            if self._terminate_before_deadline(name, pattern, timeout):
                killed_count += 1
            rounds += 1

        if killed_count:
            self.logger.info("processes_killed", pattern=pattern, count=killed_count)
        return killed_count

    def _terminate_before_deadline(self, name: str, pattern: str, timeout: float) -> bool:
        """Return True once `name` is killed, False if it exited on its own."""
        deadline = time.monotonic() + timeout
        attempts = 0

        while True:
            attempts += 1
            if self.terminate(name):
                self.logger.debug("process_terminated", process_name=name, attempts=attempts)
                return True
            if name not in self.list_matching(pattern):
                return False
            if time.monotonic() >= deadline:
                break
            time.sleep(self.poll_interval)

        self.logger.error(
            "process_termination_timeout",
            process_name=name,
            timeout_seconds=timeout,
            attempts=attempts,
        )
        raise ProcessTerminationError(
            message=f"Could not kill '{name}' within {timeout}s",
            process_name=name,
            timeout_seconds=timeout,
            attempts=attempts,
        )

    def reset_simulator_service(self) -> int:
        """
        Kill the CoreSimulator service left behind by a previous Xcode.

        After a toolchain switch the old service sometimes does not shut
        down, and the new simulators then fail to boot.

        Returns:
            Number of processes killed.
        """
        return self.kill_mercilessly(self.simulator_service_pattern)
