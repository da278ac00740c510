"""
External command execution.

Every binary xcbazel drives (bazel, xcode-select, xcodebuild, ps, killall,
launchctl) goes through `run_command`, so invocations are logged the same
way and tests can patch a single `subprocess.run`.
"""

import subprocess
from pathlib import Path
from typing import Optional, Union

from xcbazel.logging.setup import get_logger

logger = get_logger(__name__)


def run_command(
    cmd: list[str],
    capture: bool = False,
    cwd: Optional[Union[str, Path]] = None,
) -> subprocess.CompletedProcess:
    """
    Run an external command and wait for it to finish.

    Args:
        cmd: Command and arguments.
        capture: Capture stdout/stderr as text instead of inheriting them.
        cwd: Working directory for the command.

    Returns:
        The completed process. A missing executable is reported as exit
        status 127, the way a shell would.
    """
    logger.debug(
        "command_started",
        cmd=cmd,
        cwd=str(cwd) if cwd else None,
        capture=capture,
    )

    try:
        result = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            cwd=cwd,
            check=False,
        )
    except FileNotFoundError as e:
        logger.error(
            "command_not_found",
            cmd=cmd[:1],
            error=str(e),
        )
        return subprocess.CompletedProcess(cmd, 127, stdout="", stderr=str(e))

    if result.returncode != 0:
        logger.debug(
            "command_exit_nonzero",
            cmd=cmd[:3],
            exit_code=result.returncode,
            stderr_preview=result.stderr[:500] if capture and result.stderr else None,
        )

    return result
